# -*- coding: utf-8 -*-
"""The :class:`LogCtx` is the per-request record of everything an
access log line can reference.

A LogCtx is checked out of a pool when a request arrives, filled in
by the middleware as the response is produced, finalized once the
application is done, rendered, and then reset and returned to the
pool. It is never shared between two in-flight requests.
"""

from apachelog.pool import get_pool
from apachelog.context import get_context

DEFAULT_STATUS = 200


class LogCtx(object):
    def __init__(self):
        self.reset()

    def reset(self):
        self.environ = None
        self.request_time = None
        self.response_time = None
        self.elapsed = 0
        self.response_status = DEFAULT_STATUS
        self.response_headers = []
        self.response_content_length = 0
        self.finalized = False

    def begin(self, environ, now=None):
        self.environ = environ
        self.request_time = get_context().now() if now is None else now
        return self

    def finalize(self, observer, now=None):
        """Fix the response side of the record, using the status,
        headers, and byte count gathered by *observer* (a
        :class:`~apachelog.handler.ResponseObserver` or anything with
        the same attributes). Only the first call has any effect.
        """
        if self.finalized:
            return
        self.response_time = get_context().now() if now is None else now
        if self.request_time is not None:
            self.elapsed = self.response_time - self.request_time
        self.response_status = observer.status
        self.response_headers = list(observer.headers)
        self.response_content_length = observer.content_length
        self.finalized = True

    def get_response_header(self, name):
        name = name.lower()
        for hname, hvalue in self.response_headers:
            if hname.lower() == name:
                return hvalue
        return ''

    def __repr__(self):
        cn = self.__class__.__name__
        return ('<%s status=%r content_length=%r elapsed=%r finalized=%r>'
                % (cn, self.response_status, self.response_content_length,
                   self.elapsed, self.finalized))


def get_ctx_pool():
    return get_pool('log_ctx', LogCtx, LogCtx.reset)


def acquire_ctx(environ, now=None):
    return get_ctx_pool().acquire().begin(environ, now=now)


def release_ctx(ctx):
    get_ctx_pool().release(ctx)
