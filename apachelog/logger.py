# -*- coding: utf-8 -*-
"""The :class:`ApacheLog` is the application developer's primary
interface to apachelog. It pairs a compiled :class:`~apachelog.format.Format`
with an output, and wraps WSGI applications so that every request
they serve is logged.

Two ready-made instances cover the usual cases:

  * :data:`CommonLog`: ``%h %l %u %t "%r" %>s %b``
  * :data:`CombinedLog`: the above, plus referer and user agent

Both write to stderr. Use :meth:`ApacheLog.clone` or the *output*
argument of :meth:`ApacheLog.wrap` to send lines elsewhere.
"""

import datetime

from boltons.typeutils import make_sentinel

from apachelog.format import Format
from apachelog.context import get_context
from apachelog.emitters import get_emitter
from apachelog.handler import AccessLogMiddleware, parse_status
from apachelog.logctx import acquire_ctx, release_ctx
from apachelog.pool import acquire_buffer, release_buffer

_MISSING = make_sentinel(var_name='_MISSING')

COMMON_PATTERN = '%h %l %u %t "%r" %>s %b'
COMBINED_PATTERN = '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i"'

PRESETS = {'common': COMMON_PATTERN,
           'combined': COMBINED_PATTERN}

NS_PER_SEC = 10 ** 9


def to_nanoseconds(duration):
    "Convert a :class:`~datetime.timedelta` or a number of seconds to integer nanoseconds."
    if isinstance(duration, datetime.timedelta):
        return (duration // datetime.timedelta(microseconds=1)) * 1000
    return int(round(duration * NS_PER_SEC))


class ApacheLog(object):
    """An access log format, compiled, and where to write it.

    Args:
        pattern (str): An Apache ``mod_log_config``-style format
            string, e.g., ``'%h %l %u %t "%r" %>s %b'``, or an
            already-compiled :class:`~apachelog.format.Format`.
        output: Where lines go: an emitter, a writable stream,
            ``"stdout"``, or ``"stderr"`` (the default).
        encoding (str): Encoding for the format's literal text.
            Defaults to UTF-8.

    The pattern is compiled immediately, so a bad pattern raises a
    :exc:`~apachelog.errors.CompileError` right here, not later, at
    request time.
    """
    def __init__(self, pattern, output=None, **kwargs):
        encoding = kwargs.pop('encoding', 'utf-8')
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r' % list(kwargs))
        if isinstance(pattern, Format):
            self.format = pattern
        else:
            self.format = Format(pattern, encoding=encoding)
        self.emitter = get_emitter(output)

    @property
    def pattern(self):
        return self.format.pattern

    def set_output(self, output):
        self.emitter = get_emitter(output)

    def clone(self, output=_MISSING):
        """Returns a new ApacheLog sharing this one's compiled format,
        writing to *output*, or to the same place as this one.
        """
        ret = self.__class__(self.format)
        ret.emitter = self.emitter if output is _MISSING else get_emitter(output)
        return ret

    def write_log(self, dst, ctx):
        "Render *ctx* into the file-like *dst*."
        self.format.write_to(dst, ctx)

    def render(self, ctx):
        return self.format.render(ctx)

    def emit(self, ctx, emitter=None):
        """Render *ctx* into a pooled buffer and hand the line to
        *emitter*, defaulting to this log's own.
        """
        if emitter is None:
            emitter = self.emitter
        buf = acquire_buffer()
        try:
            self.format.write_to(buf, ctx)
            emitter.emit_entry(buf.getvalue())
        finally:
            release_buffer(buf)
        return

    def log_line(self, environ, status=200, headers=None,
                 content_length=0, elapsed=0):
        """Log one request manually, for use outside of the
        middleware. *status* may be an integer or a WSGI status line,
        *headers* a list of ``(name, value)`` pairs, and *elapsed* a
        :class:`~datetime.timedelta` or a number of seconds. Errors
        are raised, not noted.
        """
        if not isinstance(status, int):
            status = parse_status(status)
        elapsed_ns = to_nanoseconds(elapsed)
        now = get_context().now()
        ctx = acquire_ctx(environ, now=now - elapsed_ns)
        try:
            ctx.response_time = now
            ctx.elapsed = elapsed_ns
            ctx.response_status = status
            ctx.response_headers = list(headers or [])
            ctx.response_content_length = content_length
            ctx.finalized = True
            self.emit(ctx)
        finally:
            release_ctx(ctx)
        return

    def wrap(self, app=None, output=None):
        """Wrap the WSGI application *app* in an
        :class:`~apachelog.handler.AccessLogMiddleware` logging with
        this ApacheLog. Works as a decorator, with or without
        arguments::

            @CommonLog.wrap
            def app(environ, start_response):
                ...

            @CombinedLog.wrap(output='stdout')
            def other_app(environ, start_response):
                ...
        """
        if app is None:
            return lambda app: self.wrap(app, output=output)
        return AccessLogMiddleware(app, self, output=output)

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s pattern=%r emitter=%r>' % (cn, self.pattern, self.emitter)


def get_preset(name, output=None):
    "Get a new ApacheLog for a named format, ``'common'`` or ``'combined'``."
    try:
        pattern = PRESETS[name.lower()]
    except KeyError:
        raise ValueError('unknown log format preset %r, expected one of %r'
                         % (name, sorted(PRESETS)))
    return ApacheLog(pattern, output)


def wrap(app=None, pattern=COMMON_PATTERN, output=None):
    """Wrap the WSGI application *app* so its requests are logged in
    *pattern* format to *output*. Usable as a decorator.
    """
    log = ApacheLog(pattern, output)
    return log.wrap(app)


CommonLog = ApacheLog(COMMON_PATTERN)
CombinedLog = ApacheLog(COMBINED_PATTERN)
