# -*- coding: utf-8 -*-

from apachelog.context import get_context, set_context, ApacheLogContext

from apachelog.errors import (ApacheLogError,
                              CompileError,
                              InvalidEscapeSequence,
                              UnsupportedDirective,
                              InvalidTimeFormat,
                              RenderError,
                              SinkError)
from apachelog.format import Format, compile_format
from apachelog.logctx import LogCtx
from apachelog.emitters import StreamEmitter, FileEmitter, AggregateEmitter
from apachelog.handler import AccessLogMiddleware
from apachelog.logger import (ApacheLog,
                              CommonLog,
                              CombinedLog,
                              COMMON_PATTERN,
                              COMBINED_PATTERN,
                              get_preset,
                              wrap)
