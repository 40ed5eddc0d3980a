# -*- coding: utf-8 -*-
"""Process-wide settings for apachelog: the clock used to timestamp
requests, the size limit of the object pools, and the *note* hooks
used to report errors that must not propagate.
"""

import sys
import time

DEFAULT_POOL_LIMIT = 256

APACHELOG_CONTEXT = None


def get_context():
    if not APACHELOG_CONTEXT:
        set_context(ApacheLogContext())

    return APACHELOG_CONTEXT


def set_context(context):
    global APACHELOG_CONTEXT

    APACHELOG_CONTEXT = context

    return context


def note(name, message, *a, **kw):
    return get_context().note(name, message, *a, **kw)


def stderr_note_handler(name, message):
    try:
        sys.stderr.write('apachelog: %s: %s\n' % (name, message))
        sys.stderr.flush()
    except Exception:
        # stderr is the last resort, nowhere left to report to
        pass


class ApacheLogContext(object):
    def __init__(self, **kwargs):
        self.clock = kwargs.pop('clock', time.time_ns)
        if not callable(self.clock):
            raise TypeError('expected callable clock, not %r' % self.clock)
        self.pool_limit = kwargs.pop('pool_limit', DEFAULT_POOL_LIMIT)
        note_handlers = kwargs.pop('note_handlers', None)
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r' % list(kwargs))

        if note_handlers is None:
            note_handlers = [stderr_note_handler]
        self.note_handlers = list(note_handlers)

    def now(self):
        return self.clock()

    def note(self, name, message, *a, **kw):
        """apachelog can't log through itself. This is a hook for
        recording all of those error conditions that need to be
        robustly ignored, such as an access log line that could not be
        written after the response was already sent.
        """
        if not self.note_handlers:
            return
        if a:
            try:
                message = message % a
            except Exception:
                pass
        for nh in self.note_handlers:
            nh(name, message)
        return

    def __repr__(self):
        cn = self.__class__.__name__
        return '<%s clock=%r note_handlers=%r>' % (cn, self.clock,
                                                   self.note_handlers)
