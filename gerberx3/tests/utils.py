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

from ..rs274x import parse
from ..diagnostics import DiagnosticKind, Severity

HEADER = '%FSLAX24Y24*%\n%MOMM*%\n'


def parse_quiet(data, **kwargs):
    return parse(data, emit_warnings=False, **kwargs)

def gerber(*statements, header=HEADER, eof=True):
    """ Build a small Gerber file from the given statements. """
    return header + '\n'.join(statements) + ('\nM02*\n' if eof else '\n')

def kinds(doc, severity=None):
    return [diag.kind for diag in doc.diagnostics if severity is None or diag.severity == severity]

def errors(doc):
    return kinds(doc, Severity.ERROR)

def warnings_(doc):
    return kinds(doc, Severity.WARNING)
