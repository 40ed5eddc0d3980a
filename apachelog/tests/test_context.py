# -*- coding: utf-8 -*-

import pytest

from apachelog.context import (get_context,
                               set_context,
                               note,
                               stderr_note_handler,
                               ApacheLogContext)


def test_note_formatting(notes):
    note('test', 'hello %s, %d times', 'world', 3)
    note('test', 'no args, %s stays')
    note('test', 'bad args %d', 'not a number')
    assert notes == [('test', 'hello world, 3 times'),
                     ('test', 'no args, %s stays'),
                     ('test', 'bad args %d')]


def test_stderr_note_handler(capsys):
    stderr_note_handler('access_log', 'something went wrong')
    out, err = capsys.readouterr()
    assert not out
    assert err == 'apachelog: access_log: something went wrong\n'


def test_default_context(capsys):
    orig = get_context()
    try:
        ctx = set_context(ApacheLogContext())
        assert get_context() is ctx
        note('ctx', 'through %s', 'stderr')
        assert capsys.readouterr()[1] == 'apachelog: ctx: through stderr\n'
    finally:
        set_context(orig)


def test_no_note_handlers():
    ctx = ApacheLogContext(note_handlers=[])
    assert ctx.note('quiet', 'nobody hears this') is None


def test_clock():
    ctx = ApacheLogContext(clock=lambda: 42)
    assert ctx.now() == 42
    assert isinstance(ApacheLogContext().now(), int)
    assert 'clock=' in repr(ctx)


def test_bad_kwargs():
    with pytest.raises(TypeError):
        ApacheLogContext(colour='blue')
    with pytest.raises(TypeError):
        ApacheLogContext(clock='not callable')
