# -*- coding: utf-8 -*-
"""Compiled strftime(3)-style time formats.

Timestamps throughout apachelog are integer nanoseconds since the
epoch. A :class:`StrftimeFormatter` checks its format once, up front,
so that rendering a timestamp at request time cannot fail.
"""

import datetime

from boltons.timeutils import LocalTZ

from apachelog.errors import InvalidTimeFormat

NS_PER_SEC = 10 ** 9

# conversions understood by the platform strftime on every target
# system, plus %f from datetime and %v from Apache/BSD
_SUPPORTED_CONVERSIONS = frozenset('aAbBcCdDeFfgGhHIjklmMnpPrRsStTuUVwWxXyYzZ%')
_EXPANSIONS = {'v': '%e-%b-%Y'}

_MONTH_ABBRS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def ns2datetime(timestamp_ns, tz=LocalTZ):
    secs, rem_ns = divmod(timestamp_ns, NS_PER_SEC)
    dt = datetime.datetime.fromtimestamp(secs, tz=tz)
    return dt.replace(microsecond=rem_ns // 1000)


def format_utcoffset(dt):
    offset = dt.utcoffset() or datetime.timedelta(0)
    total_mins = int(offset.total_seconds()) // 60
    sign = '-' if total_mins < 0 else '+'
    hours, mins = divmod(abs(total_mins), 60)
    return '%s%02d%02d' % (sign, hours, mins)


def format_apache_time(timestamp_ns, tz=LocalTZ):
    """Render *timestamp_ns* in the Apache common log time format,
    e.g., ``[22/Jun/2013:06:41:43 -0700]``. Month names are always
    English, regardless of locale.
    """
    if timestamp_ns is None:
        return '[]'
    dt = ns2datetime(timestamp_ns, tz=tz)
    return ('[%02d/%s/%04d:%02d:%02d:%02d %s]'
            % (dt.day, _MONTH_ABBRS[dt.month - 1], dt.year,
               dt.hour, dt.minute, dt.second, format_utcoffset(dt)))


def compile_strftime(spec):
    """Translate *spec* into a format string suitable for
    :meth:`datetime.datetime.strftime`, raising
    :exc:`~apachelog.errors.InvalidTimeFormat` for unknown
    conversions or a dangling ``%``.
    """
    ret, i, max_i = [], 0, len(spec)
    while i < max_i:
        c = spec[i]
        if c != '%':
            ret.append(c)
            i += 1
            continue
        if i + 1 >= max_i:
            raise InvalidTimeFormat('dangling %% at end of time format %r'
                                    % spec)
        conv = spec[i + 1]
        if conv in _EXPANSIONS:
            ret.append(_EXPANSIONS[conv])
        elif conv in _SUPPORTED_CONVERSIONS:
            ret.append('%' + conv)
        else:
            raise InvalidTimeFormat('unsupported conversion %%%s in time'
                                    ' format %r' % (conv, spec))
        i += 2
    return ''.join(ret)


class StrftimeFormatter(object):
    def __init__(self, spec, tz=LocalTZ):
        self.spec = spec
        self.tz = tz
        self._py_spec = compile_strftime(spec)

    def format(self, timestamp_ns):
        if timestamp_ns is None:
            return ''
        return ns2datetime(timestamp_ns, tz=self.tz).strftime(self._py_spec)

    __call__ = format

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.spec)
