"""Apache-style access logging for WSGI applications. Log formats are
compiled once, up front, into a sequence of directives, and rendered
per request with pooled buffers, so a bad format fails at startup and
a busy server doesn't pay for parsing.

BSD-licensed.
"""

from setuptools import setup, find_packages


__version__ = '0.1.0'
__license__ = 'BSD'

desc = ('Compiled Apache mod_log_config-style access logging'
        ' for WSGI applications.')


setup(name='apache-logformat',
      version=__version__,
      description=desc,
      long_description=__doc__,
      packages=find_packages(),
      install_requires=['boltons>=20.0.0'],
      extras_require={'test': ['pytest']},
      python_requires='>=3.7',
      include_package_data=True,
      zip_safe=False,
      license=__license__,
      platforms='any',
      classifiers=[
          'Intended Audience :: Developers',
          'Topic :: System :: Logging',
          'Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware',
          'License :: OSI Approved :: BSD License',
          'Programming Language :: Python :: 3',
          'Programming Language :: Python :: 3.7',
          'Programming Language :: Python :: 3.8',
          'Programming Language :: Python :: 3.9',
          'Programming Language :: Python :: 3.10',
          'Programming Language :: Python :: Implementation :: CPython',
          'Programming Language :: Python :: Implementation :: PyPy',
      ]
)
