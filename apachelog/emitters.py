# -*- coding: utf-8 -*-
"""Emitters take a rendered log line, as bytes, and write it to a
persistence resource, such as stdout/stderr, a file, or an in-memory
buffer.

Emitters may be shared by many threads. Each line is written whole,
under a lock, so lines from concurrent requests never interleave.
"""

import io
import os
import sys
from collections import deque
from threading import Lock

from apachelog.errors import SinkError


class EncodingLookupError(LookupError):
    pass


class ErrorBehaviorLookupError(LookupError):
    pass


def check_encoding_settings(encoding, errors, reraise=True):
    try:
        ''.encode(encoding)
    except LookupError as le:
        if reraise:
            raise EncodingLookupError(le.args[0])
        return False
    try:
        # then test error-handler
        '\xdd'.encode('ascii', errors)
    except LookupError as le:
        if reraise:
            raise ErrorBehaviorLookupError(le.args[0])
        return False
    except Exception:
        # that ascii encode should never work
        return True
    return True


class AggregateEmitter(object):
    "Keeps the most recent *limit* lines in memory. Handy for tests."
    def __init__(self, limit=None):
        self._limit = limit
        self.items = deque(maxlen=limit)

    def get_entries(self):
        return list(self.items)

    def get_entry(self, idx):
        return self.items[idx]

    def clear(self):
        self.items.clear()

    def emit_entry(self, entry):
        # deque.append is atomic
        self.items.append(entry)

    def flush(self):
        return

    def __repr__(self):
        cn = self.__class__.__name__
        args = (cn, self._limit, len(self.items))
        msg = '<%s limit=%r entry_count=%r>' % args
        return msg


def _get_sys_stream(name):
    stream = getattr(sys, name)
    return getattr(stream, 'buffer', stream)


def is_text_stream(stream):
    """Guess whether *stream* wants str rather than bytes. Streams
    outside the io hierarchy are judged by their file *mode*, if any,
    else by whether they declare an *encoding*.
    """
    if isinstance(stream, io.TextIOBase):
        return True
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return False
    mode = getattr(stream, 'mode', None)
    if isinstance(mode, str):
        return 'b' not in mode
    return isinstance(getattr(stream, 'encoding', None), str)


class StreamEmitter(object):
    '''Writes log lines to a stream, be it BytesIO or console
    (stdout/stderr). Binary streams get the rendered bytes as-is, text
    streams get them decoded with *encoding*.

    Text streams need not subclass :class:`io.TextIOBase`, see
    :func:`is_text_stream`.

    Avoid using StreamEmitter directly when you have a file path for
    your log file. Use FileEmitter instead.
    '''
    def __init__(self, stream, encoding='utf-8', **kwargs):
        errors = kwargs.pop('errors', 'backslashreplace')
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r' % list(kwargs))
        check_encoding_settings(encoding, errors)  # raises on error

        if stream in ('stdout', 'stderr'):
            stream = _get_sys_stream(stream)
        if not callable(getattr(stream, 'write', None)):
            raise TypeError('%s expected a writable stream, or shortcut'
                            ' values "stderr" or "stdout", not: %r'
                            % (self.__class__.__name__, stream))
        self.stream = stream
        self.is_text = is_text_stream(stream)
        self.encoding = encoding
        self.errors = errors
        self._lock = Lock()

    def emit_entry(self, entry):
        if self.is_text:
            entry = entry.decode(self.encoding, self.errors)
        try:
            with self._lock:
                self.stream.write(entry)
                self.flush()
        except Exception as e:
            raise SinkError('got %r on %r.emit_entry()' % (e, self)) from e
        return

    def flush(self):
        stream_flush = getattr(self.stream, 'flush', None)
        if callable(stream_flush):
            stream_flush()

    def __repr__(self):
        return '<%s stream=%r>' % (self.__class__.__name__, self.stream)


class FileEmitter(StreamEmitter):
    """
    The convenient and correct way to write logs to a file when you have a path available.
    """
    def __init__(self, filepath, encoding='utf-8', **kwargs):
        self.filepath = os.path.abspath(filepath)
        mode = 'ab' if not kwargs.pop('overwrite', False) else 'wb'
        stream = io.open(self.filepath, mode)
        super(FileEmitter, self).__init__(stream, encoding=encoding, **kwargs)

    def close(self):
        if self.stream is None:
            return
        with self._lock:
            self.flush()
            self.stream.close()
            self.stream = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def get_emitter(output=None):
    """Turn *output* into an emitter. *output* may already be an
    emitter (anything with an ``emit_entry`` method), a writable
    stream, ``"stdout"`` or ``"stderr"``. ``None`` means stderr.
    """
    if output is None:
        output = 'stderr'
    if callable(getattr(output, 'emit_entry', None)):
        return output
    return StreamEmitter(output)
