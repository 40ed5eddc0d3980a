# -*- coding: utf-8 -*-

import io

import pytest

from apachelog import (Format,
                       compile_format,
                       CompileError,
                       InvalidEscapeSequence,
                       UnsupportedDirective,
                       InvalidTimeFormat,
                       RenderError)
from apachelog import directives as d

from conftest import make_ctx, make_environ


def _render(pattern, ctx=None):
    fmt = Format(pattern)
    return fmt.render(ctx or make_ctx()).decode('utf-8')


def test_fixed_sequence():
    for pattern in ['hello, world!', '', ' ', u'héllo, wörld ✓', '{not a block}']:
        assert _render(pattern) == pattern + '\n'


def test_trailing_newline_not_doubled():
    assert _render('already terminated\n') == 'already terminated\n'
    assert _render('%m\n') == 'GET\n'


def test_verbatim_percent():
    assert _render('This should be a verbatim percent sign -> %%') == \
        'This should be a verbatim percent sign -> %\n'
    assert _render('%%') == '%\n'
    assert _render('%%start') == '%start\n'
    assert _render('mid%%dle') == 'mid%dle\n'
    assert _render('%%%%') == '%%\n'


def test_stray_percent():
    assert _render('stray percent at the end: %') == 'stray percent at the end: %\n'
    assert _render('%') == '%\n'


def test_missing_closing_brace():
    pattern = 'Missing closing brace: %{Test <- this should be verbatim'
    ctx = make_ctx(make_environ(headers={'Test': 'Test Me Test Me'}))
    assert _render(pattern, ctx) == pattern + '\n'
    # a closing brace with no block type after it is still unterminated
    assert _render('%{Test}') == '%{Test}\n'


def test_percent_s_and_last_status():
    ctx = make_ctx(status=404)
    assert _render('%s = %>s', ctx) == '404 = 404\n'
    for status in (200, 301, 500):
        ctx = make_ctx(status=status)
        assert _render('%s', ctx) == _render('%>s', ctx)


def test_unknown_after_greater_than():
    assert _render('%>X should be verbatim') == '%>X should be verbatim\n'
    assert _render('trailing %>') == 'trailing %>\n'


def test_unsupported_directives():
    with pytest.raises(UnsupportedDirective):
        Format('%P')
    with pytest.raises(UnsupportedDirective) as exc_info:
        Format('%z')
    assert exc_info.value.directive == 'z'
    with pytest.raises(UnsupportedDirective):
        Format('%{foo}x')
    with pytest.raises(UnsupportedDirective) as exc_info:
        Format('%{h}T')
    assert str(exc_info.value) == 'unrecognised elapsed time unit: h'


def test_compile_errors_are_value_errors():
    for pattern in ['%P', '%{%Q}t', '%{end:%}t']:
        with pytest.raises(CompileError):
            Format(pattern)
        with pytest.raises(ValueError):
            Format(pattern)
    with pytest.raises(InvalidTimeFormat):
        Format('%{%Q}t')


def test_invalid_text():
    with pytest.raises(InvalidEscapeSequence) as exc_info:
        Format(b'abc\xff%h')
    assert exc_info.value.position == 3

    with pytest.raises(InvalidEscapeSequence) as exc_info:
        Format('abc\udcff')
    assert exc_info.value.position == 3

    with pytest.raises(InvalidEscapeSequence):
        Format('%{X-\udcff}i')

    fmt = Format(u'日本語 %m'.encode('utf-8'))
    assert fmt.render(make_ctx()).decode('utf-8') == u'日本語 GET\n'


def test_directive_order():
    fmt = compile_format('a%hb%{Foo}ic%>sd')
    kinds = [directive.kind for directive in fmt]
    assert kinds == [d.LITERAL, d.REQUEST_FIELD, d.LITERAL, d.REQUEST_HEADER,
                     d.LITERAL, d.RESPONSE_FIELD, d.LITERAL]
    assert fmt.directives[3].arg == 'Foo'
    assert len(fmt) == 7
    assert repr(fmt) == "Format('a%hb%{Foo}ic%>sd')"


def test_block_directives():
    fmt = Format('%{sec}t %{msec_frac}t %{begin:%Y}t %{end:%Y}t %{%Y}t %{HOME}e %{ms}T')
    kinds = [directive.kind for directive in fmt if directive.kind != d.LITERAL]
    assert kinds == [d.EPOCH, d.EPOCH_FRAC, d.TIMESTAMP, d.TIMESTAMP,
                     d.TIMESTAMP, d.ENVIRON_VAR, d.ELAPSED]
    time_args = [directive.arg[1] for directive in fmt
                 if directive.kind == d.TIMESTAMP]
    assert time_args == [d.BEGIN, d.END, d.BEGIN]


def test_write_to_matches_render():
    ctx = make_ctx(make_environ(path='/hello', query='a=b'),
                   status=201, content_length=1234, elapsed=2 * 10 ** 9)
    fmt = Format('%h %l %u "%r" %>s %b %T %U%q')
    buf = io.BytesIO()
    fmt.write_to(buf, ctx)
    assert buf.getvalue() == fmt.render(ctx)
    assert buf.getvalue() == b'127.0.0.1 - - "GET /hello?a=b HTTP/1.1" 201 1234 2 /hello?a=b\n'


def test_render_idempotent():
    ctx = make_ctx(make_environ(headers={'User-Agent': 'pytest'}),
                   status=418, content_length=7, elapsed=1500,
                   request_time=10 ** 18, response_time=10 ** 18 + 1500)
    fmt = Format('%h %t "%r" %>s %b %D %{User-Agent}i %{usec_frac}t')
    first = fmt.render(ctx)
    assert fmt.render(ctx) == first

    buf1, buf2 = io.BytesIO(), io.BytesIO()
    fmt.write_to(buf1, ctx)
    fmt.write_to(buf2, ctx)
    assert buf1.getvalue() == buf2.getvalue() == first


class FailingWriter(object):
    def __init__(self, fail_after):
        self.fail_after = fail_after
        self.chunks = []

    def write(self, data):
        if len(self.chunks) >= self.fail_after:
            raise IOError('disk full')
        self.chunks.append(data)


def test_render_error_fails_fast():
    fmt = Format('one %m two %U three')
    dst = FailingWriter(fail_after=2)
    with pytest.raises(RenderError) as exc_info:
        fmt.write_to(dst, make_ctx())
    assert isinstance(exc_info.value.__cause__, IOError)
    assert dst.chunks == [b'one ', b'GET']


def test_render_error_on_newline():
    fmt = Format('abc')
    with pytest.raises(RenderError):
        fmt.write_to(FailingWriter(fail_after=1), make_ctx())
