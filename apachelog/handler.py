# -*- coding: utf-8 -*-
"""WSGI integration. :class:`AccessLogMiddleware` wraps any WSGI
application and writes one access log line per request:

    app = AccessLogMiddleware(app, CombinedLog, 'stdout')

The line is written when the response iterable is closed, which
PEP 3333 servers always do, whether the body was sent in full,
iteration failed, or the client went away. Errors writing the line
cannot be reported to the client (the response is already gone), so
they are reported through :func:`apachelog.context.note` instead.
"""

from functools import partial

from boltons.tbutils import ExceptionInfo

from apachelog.pool import get_pool
from apachelog.context import note
from apachelog.emitters import get_emitter
from apachelog.logctx import acquire_ctx, release_ctx, DEFAULT_STATUS


def parse_status(status):
    "Get the integer code from a WSGI status line, e.g., ``'404 Not Found'``."
    try:
        return int(status.split(None, 1)[0])
    except (AttributeError, IndexError, ValueError):
        return 0


class ResponseObserver(object):
    """Stands in for the server's ``start_response`` and ``write``
    callables, recording the status, headers, and number of body
    bytes, and passing everything through unbuffered.

    As with HTTP, the first status wins. The exception is a later
    ``start_response`` call with *exc_info* before any body was sent,
    which replaces the response the server will send.
    """
    def __init__(self):
        self.reset()

    def reset(self):
        self._start_response = None
        self._write = None
        self.status = DEFAULT_STATUS
        self.headers = []
        self.content_length = 0
        self.started = False

    def bind(self, start_response):
        self._start_response = start_response
        return self

    def start_response(self, status, headers, exc_info=None):
        if not self.started or (exc_info and not self.content_length):
            self.status = parse_status(status)
            self.headers = list(headers)
            self.started = True
        if exc_info:
            self._write = self._start_response(status, headers, exc_info)
        else:
            self._write = self._start_response(status, headers)
        return self.write

    def write(self, data):
        self._write(data)
        self.content_length += len(data)

    def __repr__(self):
        cn = self.__class__.__name__
        return ('<%s status=%r content_length=%r>'
                % (cn, self.status, self.content_length))


def get_observer_pool():
    return get_pool('response_observer', ResponseObserver,
                    ResponseObserver.reset)


def acquire_observer(start_response):
    return get_observer_pool().acquire().bind(start_response)


def release_observer(observer):
    get_observer_pool().release(observer)


class LoggingIterator(object):
    """Wraps the iterable returned by a WSGI application, counting the
    bytes of each chunk as it passes through, and calling *on_close*
    exactly once, when the server closes the response.
    """
    def __init__(self, app_iter, observer, on_close):
        self._iter = iter(app_iter)
        self._app_close = getattr(app_iter, 'close', None)
        self._observer = observer
        self._on_close = on_close
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        chunk = next(self._iter)
        self._observer.content_length += len(chunk)
        return chunk

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            if self._app_close is not None:
                self._app_close()
        finally:
            self._on_close()


class AccessLogMiddleware(object):
    """Wraps the WSGI application *app*, logging each request with
    *log*, an :class:`~apachelog.logger.ApacheLog`.

    Args:
        app (callable): The WSGI application to wrap.
        log (ApacheLog): Supplies the compiled format, and the
            default output.
        output: Optionally override *log*'s output, with an emitter, a
            writable stream, or ``"stdout"``/``"stderr"``.
    """
    def __init__(self, app, log, output=None):
        if not callable(app):
            raise TypeError('expected callable WSGI application, not %r' % app)
        self.app = app
        self.log = log
        if output is None:
            self.emitter = log.emitter
        else:
            self.emitter = get_emitter(output)
        self.__apachelog_wrapped__ = (log, app)

    def __call__(self, environ, start_response):
        ctx = acquire_ctx(environ)
        observer = acquire_observer(start_response)
        on_close = partial(self._finish, ctx, observer)
        try:
            app_iter = self.app(environ, observer.start_response)
            return LoggingIterator(app_iter, observer, on_close)
        except BaseException:
            on_close()
            raise

    def _finish(self, ctx, observer):
        try:
            ctx.finalize(observer)
            self.log.emit(ctx, self.emitter)
        except Exception:
            exc_info = ExceptionInfo.from_current()
            note('access_log', 'could not write access log line for %s %s:'
                 ' %s', ctx.environ.get('REQUEST_METHOD'),
                 ctx.environ.get('PATH_INFO'), exc_info.get_formatted())
        finally:
            release_observer(observer)
            release_ctx(ctx)
        return

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s app=%r log=%r>' % (cn, self.app, self.log)
