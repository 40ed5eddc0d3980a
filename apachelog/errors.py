# -*- coding: utf-8 -*-
"""Exception types raised by apachelog.

Compile-time problems are all :class:`CompileError` subtypes (and
``ValueError`` subtypes, for convenience), raised when a format is
constructed. :class:`RenderError` and :class:`SinkError` wrap I/O
failures at render and emit time, respectively.
"""


class ApacheLogError(Exception):
    pass


class CompileError(ApacheLogError, ValueError):
    pass


class InvalidEscapeSequence(CompileError):
    def __init__(self, message, position=None):
        super(InvalidEscapeSequence, self).__init__(message)
        self.position = position


class UnsupportedDirective(CompileError):
    def __init__(self, message, directive=None):
        super(UnsupportedDirective, self).__init__(message)
        self.directive = directive


class InvalidTimeFormat(CompileError):
    pass


class RenderError(ApacheLogError, IOError):
    pass


class SinkError(ApacheLogError, IOError):
    pass
