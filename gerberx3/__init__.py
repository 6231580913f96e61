#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Sebastian Götte <code@jaseg.de>
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

"""
gerberx3
========

gerberx3 parses Gerber X3 layer files into a validated document model: aperture and macro definitions, attributes and
fully resolved flashes, lines, arcs and regions, together with a list of diagnostics describing everything in the file
that does not conform to the Gerber format.
"""

__version__ = '0.1.0'

from .rs274x import parse, parse_file, GraphicsState
from .document import Document
from .diagnostics import Diagnostic, DiagnosticKind, Severity, SourcePosition, GerberSyntaxError
from .settings import FormatSpec
from .utils import MM, Inch
