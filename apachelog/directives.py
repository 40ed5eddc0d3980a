# -*- coding: utf-8 -*-
"""Directives are the compiled form of a log format: each one renders
a piece of a log line, as bytes, from a
:class:`~apachelog.logctx.LogCtx`.

There is a closed set of directive *kinds*, each with one renderer
and, optionally, a compile-time argument (a header name, a time
formatter, a unit). Rendering never fails because of missing or
oddly-shaped data. Values conventionally absent from Apache logs
render as ``-``, values that are applicable but blank render as
nothing.

WSGI hands us "native strings" (bytes decoded as latin-1), so values
from the environ and response headers are encoded back as latin-1.
Everything else is UTF-8.
"""

import os

from urllib.parse import quote

from apachelog.errors import UnsupportedDirective
from apachelog.strftime import format_apache_time

DASH = b'-'
EMPTY = b''

NS_PER_SEC = 10 ** 9
NS_PER_MS = 10 ** 6
NS_PER_US = 10 ** 3

# directive kinds
LITERAL = 'literal'
REQUEST_FIELD = 'request_field'
RESPONSE_FIELD = 'response_field'
REQUEST_HEADER = 'request_header'
RESPONSE_HEADER = 'response_header'
ENVIRON_VAR = 'environ_var'
TIMESTAMP = 'timestamp'
EPOCH = 'epoch'
EPOCH_FRAC = 'epoch_frac'
ELAPSED = 'elapsed'

BEGIN, END = 'begin', 'end'

# unit name -> (divisor, modulus)
ELAPSED_UNITS = {'s': (NS_PER_SEC, None),
                 'ms': (NS_PER_MS, None),
                 'us': (NS_PER_US, None),
                 'ms_frac': (NS_PER_MS, NS_PER_SEC),
                 'us_frac': (NS_PER_US, NS_PER_MS)}

EPOCH_UNITS = {'sec': NS_PER_SEC, 'msec': NS_PER_MS, 'usec': NS_PER_US}
EPOCH_FRAC_UNITS = {'msec_frac': NS_PER_MS, 'usec_frac': NS_PER_US}


def wsgi_bytes(value, empty=EMPTY):
    if not value:
        return empty
    return value.encode('latin-1', 'backslashreplace')


def text_bytes(value, empty=EMPTY):
    if not value:
        return empty
    return value.encode('utf-8', 'backslashreplace')


def strip_port(addr):
    """Remove a trailing ``:port`` from *addr*. Bracketed IPv6
    literals keep their brackets, bare IPv6 addresses are left alone.
    """
    if addr.startswith('['):
        end = addr.find(']')
        if end > -1:
            return addr[:end + 1]
        return addr
    if addr.count(':') == 1:
        return addr.partition(':')[0]
    return addr


def get_environ_header(environ, name):
    key = name.upper().replace('-', '_')
    if key not in ('CONTENT_TYPE', 'CONTENT_LENGTH'):
        key = 'HTTP_' + key
    return environ.get(key, '')


def get_request_uri(environ):
    uri = environ.get('REQUEST_URI') or environ.get('RAW_URI')
    if uri:
        return uri
    path = environ.get('SCRIPT_NAME', '') + environ.get('PATH_INFO', '')
    uri = quote(path, safe='/;=,', encoding='latin1') or '/'
    query = environ.get('QUERY_STRING')
    if query:
        uri += '?' + query
    return uri


def _request_line(environ):
    return ' '.join([environ.get('REQUEST_METHOD', ''),
                     get_request_uri(environ),
                     environ.get('SERVER_PROTOCOL', '')])


def _raw_query(environ):
    query = environ.get('QUERY_STRING')
    return '?' + query if query else ''


def _host(environ):
    host = environ.get('HTTP_HOST') or environ.get('SERVER_NAME') or ''
    return strip_port(host)


_PID_BYTES = {}


def _pid_bytes():
    # cached per pid, so forked workers report their own
    pid = os.getpid()
    try:
        return _PID_BYTES[pid]
    except KeyError:
        ret = _PID_BYTES[pid] = str(pid).encode('ascii')
        return ret


# name -> getter(environ) -> bytes
REQUEST_FIELD_MAP = {
    'method': lambda env: wsgi_bytes(env.get('REQUEST_METHOD')),
    'protocol': lambda env: wsgi_bytes(env.get('SERVER_PROTOCOL')),
    'remote_addr': lambda env: wsgi_bytes(strip_port(env.get('REMOTE_ADDR') or ''), DASH),
    'host': lambda env: wsgi_bytes(_host(env), DASH),
    'path': lambda env: wsgi_bytes(env.get('SCRIPT_NAME', '') + env.get('PATH_INFO', '')),
    'query': lambda env: wsgi_bytes(_raw_query(env)),
    'username': lambda env: wsgi_bytes(env.get('REMOTE_USER'), DASH),
    'request_line': lambda env: wsgi_bytes(_request_line(env)),
    'pid': lambda env: _pid_bytes()}


def _status_bytes(ctx):
    if not ctx.response_status:
        return EMPTY
    return str(ctx.response_status).encode('ascii')


def _content_length_bytes(ctx):
    if not ctx.response_content_length:
        return DASH
    return str(ctx.response_content_length).encode('ascii')


# name -> getter(ctx) -> bytes
RESPONSE_FIELD_MAP = {'status': _status_bytes,
                      'content_length': _content_length_bytes}


def _render_literal(arg, ctx):
    return arg


def _render_request_field(arg, ctx):
    return REQUEST_FIELD_MAP[arg](ctx.environ or {})


def _render_response_field(arg, ctx):
    return RESPONSE_FIELD_MAP[arg](ctx)


def _render_request_header(arg, ctx):
    return wsgi_bytes(get_environ_header(ctx.environ or {}, arg), DASH)


def _render_response_header(arg, ctx):
    return wsgi_bytes(ctx.get_response_header(arg), DASH)


def _render_environ_var(arg, ctx):
    value = os.environ.get(arg)
    if not value:
        return DASH
    return os.fsencode(value)


def _get_timestamp(ctx, which):
    if which == END:
        return ctx.response_time
    return ctx.request_time


def _render_timestamp(arg, ctx):
    time_format, which = arg
    return text_bytes(time_format(_get_timestamp(ctx, which)), DASH)


def _render_epoch(arg, ctx):
    if ctx.request_time is None:
        return DASH
    return str(ctx.request_time // arg).encode('ascii')


def _render_epoch_frac(arg, ctx):
    # exact decimal of the remainder within the next larger unit, at
    # microsecond resolution, trailing zeros dropped: 200090us -> "200.09" msec
    if ctx.request_time is None:
        return DASH
    request_us = ctx.request_time // NS_PER_US
    rem = (request_us * NS_PER_US) % (arg * 1000)
    whole, frac = divmod(rem, arg)
    if not frac:
        return str(whole).encode('ascii')
    width = len(str(arg)) - 1
    frac_str = str(frac).rjust(width, '0').rstrip('0')
    return ('%d.%s' % (whole, frac_str)).encode('ascii')


def _render_elapsed(arg, ctx):
    elapsed = ctx.elapsed
    if elapsed <= 0:
        return EMPTY
    divisor, modulus = arg
    if modulus is None:
        return str(elapsed // divisor).encode('ascii')
    return ('%03d' % ((elapsed % modulus) // divisor)).encode('ascii')


_RENDERER_MAP = {LITERAL: _render_literal,
                 REQUEST_FIELD: _render_request_field,
                 RESPONSE_FIELD: _render_response_field,
                 REQUEST_HEADER: _render_request_header,
                 RESPONSE_HEADER: _render_response_header,
                 ENVIRON_VAR: _render_environ_var,
                 TIMESTAMP: _render_timestamp,
                 EPOCH: _render_epoch,
                 EPOCH_FRAC: _render_epoch_frac,
                 ELAPSED: _render_elapsed}

DIRECTIVE_KINDS = frozenset(_RENDERER_MAP)

_ARG_MAPS = {REQUEST_FIELD: REQUEST_FIELD_MAP,
             RESPONSE_FIELD: RESPONSE_FIELD_MAP}


class Directive(object):
    """One compiled piece of a log format.

    Args:
        kind (str): One of :data:`DIRECTIVE_KINDS`.
        arg: The compile-time parameter for *kind*: the bytes of a
            literal, a field name, a header or environment variable
            name, a ``(time_format, 'begin' or 'end')`` pair, or a unit.

    Directives are immutable and hold no per-request state, so one
    compiled format can be rendered by any number of threads at once.
    """
    __slots__ = ('kind', 'arg', '_renderer')

    def __init__(self, kind, arg=None):
        try:
            renderer = _RENDERER_MAP[kind]
        except KeyError:
            raise UnsupportedDirective('no renderer for directive kind %r'
                                       % (kind,), directive=kind)
        arg_map = _ARG_MAPS.get(kind)
        if arg_map is not None and arg not in arg_map:
            raise UnsupportedDirective('unknown %s %r' % (kind, arg),
                                       directive=arg)
        if kind == LITERAL and not isinstance(arg, bytes):
            raise TypeError('expected bytes for literal directive, not %r'
                            % (arg,))
        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'arg', arg)
        object.__setattr__(self, '_renderer', renderer)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    def render(self, ctx):
        return self._renderer(self.arg, ctx)

    def write_to(self, dst, ctx):
        chunk = self._renderer(self.arg, ctx)
        if chunk:
            dst.write(chunk)
        return chunk

    def __eq__(self, other):
        if not isinstance(other, Directive):
            return NotImplemented
        return self.kind == other.kind and self.arg == other.arg

    def __ne__(self, other):
        ret = self.__eq__(other)
        return ret if ret is NotImplemented else not ret

    def __hash__(self):
        return hash((self.kind, repr(self.arg)))

    def __repr__(self):
        return '%s(%r, %r)' % (self.__class__.__name__, self.kind, self.arg)


def literal(text, encoding='utf-8'):
    if isinstance(text, str):
        text = text.encode(encoding, 'backslashreplace')
    return Directive(LITERAL, text)


def request_field(name):
    return Directive(REQUEST_FIELD, name)


def response_field(name):
    return Directive(RESPONSE_FIELD, name)


def request_time(time_format=format_apache_time, which=BEGIN):
    return Directive(TIMESTAMP, (time_format, which))


def elapsed(unit):
    try:
        return Directive(ELAPSED, ELAPSED_UNITS[unit])
    except KeyError:
        raise UnsupportedDirective('unrecognised elapsed time unit: %s'
                                   % unit, directive=unit)


# single-letter directives, %b through %V. %P is deliberately absent.
SIMPLE_DIRECTIVE_MAP = {
    'b': response_field('content_length'),
    'D': elapsed('us'),
    'h': request_field('remote_addr'),
    'H': request_field('protocol'),
    'l': literal('-'),
    'm': request_field('method'),
    'p': request_field('pid'),
    'q': request_field('query'),
    'r': request_field('request_line'),
    's': response_field('status'),
    't': request_time(),
    'T': elapsed('s'),
    'u': request_field('username'),
    'U': request_field('path'),
    'v': request_field('host'),
    'V': request_field('host')}
