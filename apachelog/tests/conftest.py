# -*- coding: utf-8 -*-

import pytest

from apachelog.context import get_context, set_context, ApacheLogContext
from apachelog.logctx import LogCtx

NS_PER_SEC = 10 ** 9


class MockClock(object):
    "A clock that only moves when told to, in integer nanoseconds."
    def __init__(self, now=0):
        self.now = now

    def add(self, seconds=0, nanoseconds=0):
        self.now += int(round(seconds * NS_PER_SEC)) + nanoseconds

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    orig = get_context()
    mock = MockClock()
    set_context(ApacheLogContext(clock=mock))
    yield mock
    set_context(orig)


@pytest.fixture
def notes():
    orig = get_context()
    ret = []
    set_context(ApacheLogContext(note_handlers=[lambda name, msg: ret.append((name, msg))]))
    yield ret
    set_context(orig)


def make_environ(path='/', query='', method='GET', headers=None, **kw):
    environ = {'REQUEST_METHOD': method,
               'SCRIPT_NAME': '',
               'PATH_INFO': path,
               'QUERY_STRING': query,
               'SERVER_NAME': 'localhost',
               'SERVER_PORT': '80',
               'SERVER_PROTOCOL': 'HTTP/1.1',
               'REMOTE_ADDR': '127.0.0.1',
               'HTTP_HOST': '127.0.0.1',
               'wsgi.url_scheme': 'http'}
    for name, value in (headers or {}).items():
        key = name.upper().replace('-', '_')
        if key not in ('CONTENT_TYPE', 'CONTENT_LENGTH'):
            key = 'HTTP_' + key
        environ[key] = value
    environ.update(kw)
    return environ


def make_ctx(environ=None, status=200, headers=None, content_length=0,
             elapsed=0, request_time=None, response_time=None):
    ctx = LogCtx()
    ctx.environ = environ if environ is not None else make_environ()
    ctx.request_time = request_time
    ctx.response_time = response_time
    ctx.elapsed = elapsed
    ctx.response_status = status
    ctx.response_headers = list(headers or [])
    ctx.response_content_length = content_length
    ctx.finalized = True
    return ctx
