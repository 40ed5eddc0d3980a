# -*- coding: utf-8 -*-
"""Compiles Apache ``mod_log_config``-style format strings, e.g.,
``'%h %l %u %t "%r" %>s %b'``, into a :class:`Format`, and renders
:class:`~apachelog.logctx.LogCtx` instances with it.

Compilation happens once per format string. All of the parsing and
all of the error checking happens there, so rendering a compiled
:class:`Format` can only fail if the destination fails.
"""

from apachelog.errors import (InvalidEscapeSequence,
                              UnsupportedDirective,
                              RenderError)
from apachelog.strftime import StrftimeFormatter
from apachelog import directives as d

NEWLINE = b'\n'

_BEGIN_PREFIX = 'begin:'
_END_PREFIX = 'end:'


def _check_char(pattern, i):
    c = pattern[i]
    if '\ud800' <= c <= '\udfff':
        raise InvalidEscapeSequence('invalid character sequence at position'
                                    ' %d of log format %r' % (i, pattern),
                                    position=i)
    return c


def _time_directive(key):
    if key in d.EPOCH_UNITS:
        return d.Directive(d.EPOCH, d.EPOCH_UNITS[key])
    if key in d.EPOCH_FRAC_UNITS:
        return d.Directive(d.EPOCH_FRAC, d.EPOCH_FRAC_UNITS[key])
    which = d.BEGIN
    if key.startswith(_BEGIN_PREFIX):
        key = key[len(_BEGIN_PREFIX):]
    elif key.startswith(_END_PREFIX):
        key, which = key[len(_END_PREFIX):], d.END
    return d.request_time(StrftimeFormatter(key), which)


def _block_directive(key, block_type):
    if block_type == 'i':
        return d.Directive(d.REQUEST_HEADER, key)
    elif block_type == 'o':
        return d.Directive(d.RESPONSE_HEADER, key)
    elif block_type == 't':
        return _time_directive(key)
    elif block_type == 'e':
        return d.Directive(d.ENVIRON_VAR, key)
    elif block_type == 'T':
        return d.elapsed(key)
    raise UnsupportedDirective('unsupported block type %%{%s}%s'
                               % (key, block_type), directive=block_type)


def tokenize_log_format(pattern, encoding='utf-8'):
    """Scan *pattern* left to right and return a list of
    :class:`~apachelog.directives.Directive` objects, in order of
    appearance.

    Malformed input degrades to literal text where Apache would
    tolerate it: a trailing ``%``, ``%>`` followed by anything other
    than ``s``, and ``%{`` without a closing brace. Unknown directives
    raise :exc:`~apachelog.errors.UnsupportedDirective`.
    """
    if isinstance(pattern, bytes):
        try:
            pattern = pattern.decode('utf-8')
        except UnicodeDecodeError as ude:
            raise InvalidEscapeSequence('invalid byte sequence at position'
                                        ' %d of log format' % ude.start,
                                        position=ude.start)

    ret = []
    start, i, max_i = 0, 0, len(pattern)

    def add_literal(text):
        if text:
            ret.append(d.literal(text, encoding))

    while i < max_i:
        c = _check_char(pattern, i)
        i += 1
        if c != '%':
            continue

        add_literal(pattern[start:i - 1])
        if i == max_i:
            # stray percent at the end, keep it verbatim
            add_literal('%')
            start = i
            break

        c = _check_char(pattern, i)
        i += 1

        if c == '%':
            add_literal('%')
        elif c in d.SIMPLE_DIRECTIVE_MAP:
            ret.append(d.SIMPLE_DIRECTIVE_MAP[c])
        elif c == 'P':
            raise UnsupportedDirective('%P (thread id) is not supported',
                                       directive=c)
        elif c == '>':
            if i < max_i and pattern[i] == 's':
                # no internal redirects here, the last status is the status
                ret.append(d.SIMPLE_DIRECTIVE_MAP['s'])
                i += 1
            else:
                add_literal('%>')
        elif c == '{':
            end = pattern.find('}', i)
            if end == -1 or end == max_i - 1:
                add_literal('%{')
            else:
                block_type = _check_char(pattern, end + 1)
                for j in range(i, end):
                    _check_char(pattern, j)
                ret.append(_block_directive(pattern[i:end], block_type))
                i = end + 2
        else:
            raise UnsupportedDirective('unsupported directive %%%s' % c,
                                       directive=c)
        start = i

    add_literal(pattern[start:])
    return ret


class Format(object):
    """A compiled log format. Construct one with
    :func:`compile_format`, or directly from a pattern string:

    >>> fmt = Format('%m %U')
    >>> len(fmt)
    3

    A Format is immutable, holds no per-request state, and is safe to
    share across threads.
    """
    def __init__(self, pattern, encoding='utf-8'):
        self.pattern = pattern
        self.encoding = encoding
        self.directives = tuple(tokenize_log_format(pattern, encoding))

    def __len__(self):
        return len(self.directives)

    def __iter__(self):
        return iter(self.directives)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.pattern)

    def write_to(self, dst, ctx):
        """Render *ctx* into the file-like *dst*, directive by
        directive, then write a newline unless the output already ends
        with one. The first error from *dst* stops rendering and is
        raised as a :exc:`~apachelog.errors.RenderError`.
        """
        last = b''
        for directive in self.directives:
            try:
                chunk = directive.write_to(dst, ctx)
            except Exception as e:
                raise RenderError('failed to write %r: %r' % (directive, e)) from e
            if chunk:
                last = chunk
        if not last.endswith(NEWLINE):
            try:
                dst.write(NEWLINE)
            except Exception as e:
                raise RenderError('failed to write line terminator: %r' % (e,)) from e
        return

    def render(self, ctx):
        "Render *ctx* to bytes, trailing newline included."
        ret = []
        for directive in self.directives:
            ret.append(directive.render(ctx))
        line = b''.join(ret)
        if not line.endswith(NEWLINE):
            line += NEWLINE
        return line


def compile_format(pattern, encoding='utf-8'):
    return Format(pattern, encoding=encoding)
