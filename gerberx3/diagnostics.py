#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Sebastian Götte <gerbonara@jaseg.de>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

import warnings
from dataclasses import dataclass
from enum import Enum

from .utils import GerberWarning, UnknownStatementWarning, DeprecatedStatementWarning, GerberErrorWarning, shorten


class Severity(Enum):
    WARNING = 'warning'
    ERROR = 'error'
    #: Parsing stopped. Only ever carried by :py:class:`.GerberSyntaxError`.
    FATAL = 'fatal'


class DiagnosticKind(Enum):
    """ What went wrong. The value is the default :py:class:`.Severity` of diagnostics of this kind. """
    # Warnings
    DUPLICATE_APERTURE = Severity.WARNING
    DUPLICATE_MACRO = Severity.WARNING
    FORMAT_REDEFINED = Severity.WARNING
    UNITS_REDEFINED = Severity.WARNING
    UNKNOWN_COMMAND = Severity.WARNING
    DEPRECATED_COMMAND = Severity.WARNING
    TRAILING_CONTENT = Severity.WARNING
    MISSING_EOF = Severity.WARNING
    NO_APERTURE_SELECTED = Severity.WARNING
    UNDEFINED_APERTURE = Severity.WARNING
    UNKNOWN_ATTRIBUTE = Severity.WARNING
    SUSPICIOUS_VALUE = Severity.WARNING
    UNCLOSED_BLOCK = Severity.WARNING
    MISSING_UNITS = Severity.WARNING
    MISSING_QUADRANT_MODE = Severity.WARNING
    MISSING_TERMINATOR = Severity.WARNING
    # Errors, the offending statement or macro is discarded
    INVALID_LITERAL = Severity.ERROR
    MISSING_FORMAT = Severity.ERROR
    UNDEFINED_VARIABLE = Severity.ERROR
    DIVISION_BY_ZERO = Severity.ERROR
    INVALID_MACRO = Severity.ERROR
    INVALID_APERTURE = Severity.ERROR
    INVALID_STATEMENT = Severity.ERROR
    INVALID_STATE = Severity.ERROR
    UNTERMINATED_STATEMENT = Severity.ERROR
    # Fatal, no document is produced
    UNTERMINATED_BLOCK = Severity.FATAL
    INVALID_ENCODING = Severity.FATAL

    # Enum members with equal values are aliases, so give every member a distinct identity.
    def __new__(cls, severity):
        obj = object.__new__(cls)
        obj._value_ = len(cls.__members__)
        obj.severity = severity
        return obj

    @property
    def warning_class(self):
        if self == DiagnosticKind.UNKNOWN_COMMAND:
            return UnknownStatementWarning
        elif self == DiagnosticKind.DEPRECATED_COMMAND:
            return DeprecatedStatementWarning
        elif self.severity == Severity.WARNING:
            return GerberWarning
        else:
            return GerberErrorWarning


@dataclass(frozen=True, slots=True)
class SourcePosition:
    """ Location of the first character of a statement in the input. ``line`` and ``column`` are 1-based, ``offset``
    is the 0-based character index. """
    line: int = 1
    column: int = 1
    offset: int = 0

    def __str__(self):
        return f'{self.line}:{self.column}'


@dataclass(frozen=True, slots=True)
class Diagnostic:
    severity: Severity
    kind: DiagnosticKind
    position: SourcePosition
    message: str

    @property
    def is_error(self):
        return self.severity in (Severity.ERROR, Severity.FATAL)

    def format(self, filename=None):
        filename = filename or '<unknown>'
        return f'{filename}:{self.position}: {self.severity.value}: {self.message} [{self.kind.name}]'

    def __str__(self):
        return self.format()


class GerberSyntaxError(SyntaxError):
    """ Raised when an input cannot be tokenized any further: an unterminated ``%`` extended command block, or input
    that is not valid UTF-8 text.

    :ivar diagnostic: The fatal :py:class:`.Diagnostic`.
    :ivar diagnostics: All diagnostics collected up to and including the fatal one.
    """

    def __init__(self, diagnostic, diagnostics=(), filename=None):
        super().__init__(diagnostic.format(filename))
        self.diagnostic = diagnostic
        self.diagnostics = tuple(diagnostics)
        self.filename = filename
        self.lineno = diagnostic.position.line


class Reporter:
    """ Collects the diagnostics of one parse. Every diagnostic is also emitted through :py:func:`warnings.warn` unless
    ``emit_warnings`` is ``False``.
    """

    def __init__(self, filename=None, emit_warnings=True):
        self.filename = filename
        self.emit_warnings = emit_warnings
        self.diagnostics = []

    def report(self, kind, position, message, statement=''):
        diag = Diagnostic(kind.severity, kind, position, message)
        self.diagnostics.append(diag)
        if self.emit_warnings:
            warnings.warn(f'{self.filename or "<unknown>"}:{position.line} "{shorten(statement)}": {message}',
                          kind.warning_class, stacklevel=2)
        return diag

    def fatal(self, kind, position, message):
        diag = Diagnostic(Severity.FATAL, kind, position, message)
        self.diagnostics.append(diag)
        raise GerberSyntaxError(diag, self.diagnostics, self.filename)

    @property
    def has_errors(self):
        return any(diag.is_error for diag in self.diagnostics)
