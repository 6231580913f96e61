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


import math

import pytest

from ..document import *
from ..diagnostics import *
from ..apertures import CircleAperture
from .. import commands as cmd
from ..utils import MM, GerberWarning, GerberErrorWarning, UnknownStatementWarning


def test_diagnostic_kinds():
    assert DiagnosticKind.DUPLICATE_APERTURE.severity == Severity.WARNING
    assert DiagnosticKind.MISSING_FORMAT.severity == Severity.ERROR
    assert DiagnosticKind.UNTERMINATED_BLOCK.severity == Severity.FATAL
    # Members sharing a severity must not be aliases of each other
    assert DiagnosticKind.DUPLICATE_APERTURE is not DiagnosticKind.DUPLICATE_MACRO
    assert len({kind.value for kind in DiagnosticKind}) == len(DiagnosticKind.__members__)

    assert DiagnosticKind.UNKNOWN_COMMAND.warning_class is UnknownStatementWarning
    assert DiagnosticKind.SUSPICIOUS_VALUE.warning_class is GerberWarning
    assert DiagnosticKind.INVALID_STATE.warning_class is GerberErrorWarning


def test_diagnostic_format():
    diag = Diagnostic(Severity.ERROR, DiagnosticKind.INVALID_STATE, SourcePosition(12, 3, 200), 'Oops')
    assert diag.is_error
    assert diag.format('foo.gbr') == 'foo.gbr:12:3: error: Oops [INVALID_STATE]'
    assert str(diag) == '<unknown>:12:3: error: Oops [INVALID_STATE]'


def test_reporter():
    reporter = Reporter('foo.gbr', emit_warnings=False)
    reporter.report(DiagnosticKind.MISSING_EOF, SourcePosition(), 'No EOF')
    assert not reporter.has_errors

    with pytest.raises(GerberSyntaxError) as exc_info:
        reporter.fatal(DiagnosticKind.INVALID_ENCODING, SourcePosition(2, 1, 10), 'Bad byte')
    assert exc_info.value.lineno == 2
    assert exc_info.value.filename == 'foo.gbr'
    assert [d.kind for d in exc_info.value.diagnostics] == [DiagnosticKind.MISSING_EOF, DiagnosticKind.INVALID_ENCODING]
    assert reporter.has_errors


def test_reporter_warns():
    reporter = Reporter('foo.gbr')
    with pytest.warns(GerberWarning, match=r'foo.gbr:4 "D10\*": Something'):
        reporter.report(DiagnosticKind.SUSPICIOUS_VALUE, SourcePosition(4, 1, 30), 'Something', 'D10*')


def test_step_repeat_offsets():
    flash = Flash(1, 1, CircleAperture(1, number=10), unit=MM)
    block = StepRepeatBlock(2, 3, 10, 20, (flash, Move(0, 0)))
    assert list(block.offsets) == [(0, 0), (0, 20), (0, 40), (10, 0), (10, 20), (10, 40)]
    copies = list(block.copies())
    assert len(copies) == 12
    assert (copies[2].x, copies[2].y) == (1, 21)

    moved = block.offset(1, 2)
    assert (moved.items[0].x, moved.items[0].y) == (2, 3)


def test_region_offset():
    contour = (Line(0, 0, 1, 0), Line(1, 0, 0, 1), Arc(0, 1, 0, 0, 0, -0.5, True))
    region = Region((contour,)).offset(10, 10)
    assert region.contours[0][0].p1 == (10, 10)
    assert region.contours[0][2].center == (10, 10.5)
    assert region.contours[0][0].primitives == ()


def test_line_and_arc():
    assert Line(0, 0, 3, 4).curve_length() == pytest.approx(5)

    arc = Arc(1, 0, -1, 0, -1, 0, False)
    assert arc.sweep_angle() == pytest.approx(math.pi)
    assert arc.numeric_error() == pytest.approx(0)
    assert Arc(1, 0, -1, 0, -1, 0, True).sweep_angle() == pytest.approx(math.pi)


def test_builder():
    builder = DocumentBuilder()
    ap = CircleAperture(1, number=10)
    assert builder.define_aperture(ap)
    assert not builder.define_aperture(CircleAperture(2, number=10))

    sr = cmd.StepRepeat(2, 1, 5.0, 0.0)
    builder.open_frame_with(sr)
    assert builder.open_frame is sr
    builder.add_item(Flash(0, 0, ap))

    with pytest.raises(ValueError):
        builder.build(None, ())

    block = builder.close_step_repeat()
    doc = builder.build(None, ())
    assert doc.items == (ap, block)
    assert doc.apertures == {10: ap}
    assert len(doc.flatten()) == 2
    assert doc.errors == doc.warnings == ()
