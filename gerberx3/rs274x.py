#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# copyright 2014 Hamilton Kibbe <ham@hamiltonkib.be>
# Modified from parser.py by Paulo Henrique Silva <ph.silva@gmail.com>
# Copyright 2022 Jan Götte <code@jaseg.de>
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
gerberx3.rs274x
===============
**Gerber X3 (RS-274X) statement parser and graphics state tracker**

:py:func:`parse` is the entry point. The input is split into ``*``-terminated statements and ``%``-delimited extended
command blocks, every statement is parsed into a :py:class:`~.commands.Command`, and every command is applied to the
:py:class:`.GraphicsState` by a :py:class:`.GraphicsStateTracker`, which hands the results to a
:py:class:`.DocumentBuilder`.

Problems that only concern a single statement are reported as :py:class:`.Diagnostic` and the statement is skipped.
Only input that cannot be split into statements at all raises :py:class:`.GerberSyntaxError`.
"""

import re
import math
import bisect
from types import MappingProxyType
from pathlib import Path
from dataclasses import dataclass, field, replace

from . import commands as cmd
from . import document as doc
from .apertures import APERTURE_CLASSES, ApertureMacroInstance, InvalidApertureError
from .aperture_macros.parse import ApertureMacro, MacroSyntaxError
from .aperture_macros.expression import MacroEvaluationError, UndefinedVariableError, MacroDivisionByZero
from .data import DecodeError, COORDINATE
from .data import decode_aperture_number, decode_decimal, decode_unsigned_decimal, decode_positive_integer
from .data import decode_name, decode_user_name, decode_fields
from .diagnostics import DiagnosticKind as Kind, SourcePosition, Reporter
from .settings import FormatSpec, NumberFormat, MissingFormatError
from .utils import MM, Inch, LengthUnit, InterpMode, QuadrantMode, Polarity, Mirroring, ZeroOmission, Notation
from .utils import shorten


class InvalidStatementError(ValueError):
    """ A statement is well-formed, but its content does not make sense. """
    pass

class InvalidStateError(ValueError):
    """ A command is not allowed in the current graphics state. """
    pass


#: Exceptions caught at statement boundaries, most specific first, and the kind of diagnostic they are reported as.
ERROR_KINDS = (
    (UndefinedVariableError, Kind.UNDEFINED_VARIABLE),
    (MacroDivisionByZero, Kind.DIVISION_BY_ZERO),
    (MacroEvaluationError, Kind.INVALID_MACRO),
    (MacroSyntaxError, Kind.INVALID_MACRO),
    (MissingFormatError, Kind.MISSING_FORMAT),
    (DecodeError, Kind.INVALID_LITERAL),
    (InvalidApertureError, Kind.INVALID_APERTURE),
    (InvalidStatementError, Kind.INVALID_STATEMENT),
    (InvalidStateError, Kind.INVALID_STATE),
)
STATEMENT_ERRORS = tuple(exc for exc, _kind in ERROR_KINDS)

def error_kind(exc):
    for exc_cls, kind in ERROR_KINDS:
        if isinstance(exc, exc_cls):
            return kind
    raise TypeError(f'No diagnostic kind for {type(exc).__name__}')


FILE_ATTRIBUTES = {'.Part', '.FileFunction', '.FilePolarity', '.SameCoordinates', '.CreationDate',
                   '.GenerationSoftware', '.ProjectId', '.MD5'}
APERTURE_ATTRIBUTES = {'.AperFunction', '.DrillTolerance', '.FlashText'}
OBJECT_ATTRIBUTES = {'.N', '.P', '.C', '.CRot', '.CMfr', '.CMPN', '.CVal', '.CMnt', '.CFtp', '.CPgN', '.CPgD',
                     '.CHgt', '.CLbN', '.CLbD', '.CSup'}

DEPRECATED_STATEMENTS = {
        'IP': 'IP (image polarity)',
        'IR': 'IR (image rotation)',
        'IN': 'IN (image name)',
        'LN': 'LN (load name)',
        'AS': 'AS (axis selection)',
        'MI': 'MI (mirror image)',
        'OF': 'OF (offset)',
        'SF': 'SF (scale factor)',
        'IF': 'IF (include file)',
        'G54': 'G54 (select aperture)',
        'G55': 'G55 (prepare for flash)',
        'G70': 'G70 (inch unit)',
        'G71': 'G71 (metric unit)',
        'G90': 'G90 (absolute notation)',
        'G91': 'G91 (incremental notation)',
        'M00': 'M00 (program stop)',
        'M01': 'M01 (optional stop)',
    }


@dataclass(frozen=True)
class GraphicsState:
    """ Graphics state of a file at one point during parsing. Instances are immutable, the tracker replaces its state
    with an updated copy for every change. The :py:class:`.Document` keeps the final state.
    """
    #: :py:class:`.LengthUnit` set by ``MO``, ``None`` before that.
    unit: LengthUnit = None
    #: :py:class:`.FormatSpec` set by ``FS``, ``None`` before that.
    format: FormatSpec = None
    #: Number of the currently selected aperture. This may be the number of an undefined aperture.
    aperture: int = None
    polarity: Polarity = Polarity.DARK
    interpolation_mode: InterpMode = InterpMode.LINEAR
    #: ``None`` until the first ``G74`` / ``G75``
    quadrant_mode: QuadrantMode = None
    region_mode: bool = False
    #: Current point as ``(x, y)`` tuple in file units, ``None`` before the first operation.
    point: tuple = None
    mirroring: Mirroring = Mirroring.NONE
    rotation: float = 0.0
    scale: float = 1.0
    #: ``TO`` attributes applied to newly created objects
    object_attrs: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    @property
    def transform(self):
        return doc.ApertureTransform(self.mirroring, self.rotation, self.scale)


def _single_quadrant_center(start, end, i, j, clockwise):
    """ In single quadrant mode, I and J are unsigned and the arc spans at most 90 degree. Pick the signs that give an
    arc in the right direction with the smallest radius mismatch. """
    candidates = []
    for cx, cy in [(i, j), (-i, j), (i, -j), (-i, -j)]:
        center = start[0] + cx, start[1] + cy
        a1 = math.atan2(start[1] - center[1], start[0] - center[0])
        a2 = math.atan2(end[1] - center[1], end[0] - center[0])
        sweep = ((a1 - a2) if clockwise else (a2 - a1)) % (2*math.pi)
        if sweep <= math.pi/2 + 1e-9:
            error = abs(math.dist(center, start) - math.dist(center, end))
            candidates.append((error, (cx, cy)))

    if not candidates:
        return i, j
    _error, center = min(candidates)
    return center


class GraphicsStateTracker:
    """ Applies parsed commands to a :py:class:`.GraphicsState`.

    Coordinates are decoded here, using the :py:class:`.NumberFormat` passed in by the caller. Apertures, macros,
    attributes and the resolved graphic items go to the :py:class:`.DocumentBuilder`.

    :py:meth:`apply` raises one of the exceptions in :py:data:`STATEMENT_ERRORS` if a command cannot be applied. In that
    case, the graphics state is left unchanged.
    """

    def __init__(self, reporter, number_format, builder):
        self.reporter = reporter
        self.number_format = number_format
        self.builder = builder
        self.state = GraphicsState()
        self.aperture_attrs = {}
        self.object_attrs = {}
        self.contours = None
        self.contour = None
        self.region_start = None
        self.last_operation = None
        self.eof_found = False
        self.unit_warning = False
        self.quadrant_warning = False
        self.position = SourcePosition()
        self.statement = ''

    def _update(self, **changes):
        self.state = replace(self.state, **changes)

    def warn(self, kind, msg):
        self.reporter.report(kind, self.position, msg, self.statement)

    def apply(self, command, statement=''):
        self.position, self.statement = command.position, statement
        self.builder.add_command(command)

        match command:
            case cmd.Comment() | cmd.UnrecognizedStatement():
                pass

            case cmd.UnitMode(unit=unit):
                if self.state.unit is None:
                    self._update(unit=unit)
                elif self.state.unit != unit:
                    self.warn(Kind.UNITS_REDEFINED, f'Re-definition of file units from {self.state.unit} to {unit}. '
                              'Ignoring.')

            case cmd.FormatSpecification(spec=spec):
                if not self.number_format.set(spec):
                    self.warn(Kind.FORMAT_REDEFINED, 'Re-definition of coordinate format. Ignoring.')
                self._update(format=self.number_format.spec)

            case cmd.ApertureDefinition():
                self._define_aperture(command)

            case cmd.ApertureMacroDefinition(macro=macro):
                if not self.builder.define_macro(macro, command.position):
                    self.warn(Kind.DUPLICATE_MACRO, f'Re-definition of aperture macro {macro.name}. Ignoring.')

            case cmd.SelectAperture(number=number):
                if number not in self.builder.apertures:
                    self.warn(Kind.UNDEFINED_APERTURE, f'Selected undefined aperture D{number}')
                self._update(aperture=number)

            case cmd.Plot() | cmd.ImplicitOperation():
                self._plot(command)

            case cmd.Move():
                self._move(command)

            case cmd.Flash():
                self._flash(command)

            case cmd.SetInterpolationMode(mode=mode):
                self._update(interpolation_mode=mode)

            case cmd.SetQuadrantMode(mode=mode):
                if mode == QuadrantMode.SINGLE:
                    self.warn(Kind.DEPRECATED_COMMAND, 'Deprecated G74 single quadrant mode')
                self._update(quadrant_mode=mode)

            case cmd.RegionStart():
                if self.state.region_mode:
                    raise InvalidStateError('G36 region start inside region')
                self._update(region_mode=True)
                self.contours, self.contour = [], []
                self.region_start = command.position

            case cmd.RegionEnd():
                if not self.state.region_mode:
                    raise InvalidStateError('G37 region end without G36 region start')
                self._close_region()

            case cmd.LoadPolarity(polarity=polarity):
                self._update(polarity=polarity)

            case cmd.LoadMirroring(mirroring=mirroring):
                self._update(mirroring=mirroring)

            case cmd.LoadRotation(rotation=rotation):
                self._update(rotation=rotation)

            case cmd.LoadScaling(scale=scale):
                self._update(scale=scale)

            case cmd.StepRepeat():
                self._step_repeat(command)

            case cmd.ApertureBlock():
                self._aperture_block(command)

            case cmd.Attribute():
                self._attribute(command)

            case cmd.EndOfFile():
                self.eof_found = True

            case _:
                raise TypeError(f'Unhandled command {command!r}')

    def finish(self, position):
        """ Close everything that is still open at the end of the input. """
        self.position, self.statement = position, ''

        if self.state.region_mode:
            self.warn(Kind.UNCLOSED_BLOCK, f'Region started at line {self.region_start.line} is never closed with '
                      'G37. Closing it.')
            self._close_region()

        while (frame := self.builder.open_frame) is not None:
            if isinstance(frame, cmd.StepRepeat):
                self.warn(Kind.UNCLOSED_BLOCK, f'Step and repeat block opened at line {frame.position.line} is never '
                          'closed. Closing it.')
                self.builder.close_step_repeat()
            else:
                self.warn(Kind.UNCLOSED_BLOCK, f'Block aperture D{frame.number} opened at line {frame.position.line} '
                          'is never closed. Closing it.')
                self._close_aperture_block()

        if not self.eof_found:
            self.warn(Kind.MISSING_EOF, 'File is missing mandatory M02 EOF marker. File may be truncated.')

    def _require_unit(self):
        if self.state.unit is None and not self.unit_warning:
            self.warn(Kind.MISSING_UNITS, 'Gerber file does not contain a unit definition (MO) before its first use.')
            self.unit_warning = True

    def _current_aperture(self, operation):
        if (number := self.state.aperture) is None:
            self.warn(Kind.NO_APERTURE_SELECTED, f'{operation} without a selected aperture. Ignoring.')
            return None

        if (aperture := self.builder.apertures.get(number)) is None:
            self.warn(Kind.UNDEFINED_APERTURE, f'{operation} with undefined aperture D{number}. Ignoring.')
            return None

        return aperture

    def _object_args(self):
        return dict(polarity=self.state.polarity, unit=self.state.unit, attrs=tuple(self.object_attrs.items()),
                    position=self.position)

    def _decode_point(self, command):
        """ Decode the coordinates of an operation. Returns ``(start, end, i, j)``. Does not modify any state. """
        fmt = self.number_format
        x = fmt.decode_coordinate(command.x, 'X') if command.x is not None else None
        y = fmt.decode_coordinate(command.y, 'Y') if command.y is not None else None
        i = fmt.decode_coordinate(command.i, 'I') if command.i is not None else None
        j = fmt.decode_coordinate(command.j, 'J') if command.j is not None else None

        if (start := self.state.point) is None:
            if x is None or y is None:
                self.warn(Kind.SUSPICIOUS_VALUE, 'Coordinate omitted from first coordinate statement in the file. '
                          'Assuming the omitted coordinate is 0.')
            start = (0.0, 0.0)

        if fmt.active is not None and fmt.active.is_incremental:
            end = start[0] + (x or 0.0), start[1] + (y or 0.0)
        else:
            end = (start[0] if x is None else x), (start[1] if y is None else y)

        return start, end, i, j

    def _segment(self, start, end, i, j, aperture, **kwargs):
        if self.state.interpolation_mode == InterpMode.LINEAR:
            if i is not None or j is not None:
                self.warn(Kind.SUSPICIOUS_VALUE, 'I/J offsets given for linear D01 interpolation. Ignoring them.')
            return doc.Line(*start, *end, aperture, **kwargs)

        if i is None and j is None:
            self.warn(Kind.SUSPICIOUS_VALUE, 'Circular interpolation without I/J offsets. Treating it as a line.')
            return doc.Line(*start, *end, aperture, **kwargs)

        if self.state.quadrant_mode is None and not self.quadrant_warning:
            self.warn(Kind.MISSING_QUADRANT_MODE, 'Circular interpolation without preceding G75 multi quadrant mode '
                      'statement.')
            self.quadrant_warning = True

        i, j = i or 0.0, j or 0.0
        clockwise = self.state.interpolation_mode == InterpMode.CIRCULAR_CW
        if self.state.quadrant_mode == QuadrantMode.SINGLE:
            i, j = _single_quadrant_center(start, end, abs(i), abs(j), clockwise)
        return doc.Arc(*start, *end, i, j, clockwise, aperture, **kwargs)

    def _plot(self, command):
        if isinstance(command, cmd.ImplicitOperation):
            if self.last_operation is not cmd.Plot:
                raise InvalidStateError('Coordinate statement without D01/D02/D03 operation code, and the previous '
                                        'operation was not D01.')
            self.warn(Kind.DEPRECATED_COMMAND, 'Coordinate statement without explicit D01 operation code.')

        start, end, i, j = self._decode_point(command)

        if self.state.region_mode:
            segment = self._segment(start, end, i, j, None, unit=self.state.unit, position=self.position)
            self.contour.append(segment)

        else:
            if (aperture := self._current_aperture('D01 interpolation')) is None:
                return
            self._require_unit()
            segment = self._segment(start, end, i, j, aperture, transform=self.state.transform,
                                    **self._object_args())
            self.builder.add_item(segment)

        self._update(point=end)
        self.last_operation = cmd.Plot

    def _move(self, command):
        start, end, i, j = self._decode_point(command)
        if i is not None or j is not None:
            self.warn(Kind.SUSPICIOUS_VALUE, 'I/J offsets given for D02 move. Ignoring them.')

        if self.state.region_mode:
            self._close_contour()
        else:
            self.builder.add_item(doc.Move(*end, unit=self.state.unit, position=self.position))

        self._update(point=end)
        self.last_operation = cmd.Move

    def _flash(self, command):
        if self.state.region_mode:
            raise InvalidStateError('D03 flash inside region')

        start, end, i, j = self._decode_point(command)
        if i is not None or j is not None:
            self.warn(Kind.SUSPICIOUS_VALUE, 'I/J offsets given for D03 flash. Ignoring them.')

        if (aperture := self._current_aperture('D03 flash')) is None:
            return

        self._require_unit()
        self.builder.add_item(doc.Flash(*end, aperture, self.state.transform, **self._object_args()))
        self._update(point=end)
        self.last_operation = cmd.Flash

    def _close_contour(self):
        if not self.contour:
            return

        first, last = self.contour[0].p1, self.contour[-1].p2
        if not (math.isclose(first[0], last[0], abs_tol=1e-9) and math.isclose(first[1], last[1], abs_tol=1e-9)):
            self.warn(Kind.SUSPICIOUS_VALUE, f'Region contour is not closed, it ends at ({last[0]:g}, {last[1]:g}) '
                      f'instead of ({first[0]:g}, {first[1]:g}).')

        self.contours.append(tuple(self.contour))
        self.contour = []

    def _close_region(self):
        self._close_contour()
        if self.contours: # empty regions do not produce any item
            self.builder.add_item(doc.Region(tuple(self.contours), **{**self._object_args(),
                                                                      'position': self.region_start}))
        self._update(region_mode=False)
        self.contours = self.contour = self.region_start = None

    def _define_aperture(self, command):
        number, template = command.number, command.template
        if number in self.builder.apertures:
            self.warn(Kind.DUPLICATE_APERTURE, f'Re-definition of aperture D{number}. Ignoring.')
            return

        self._require_unit()
        kwargs = dict(number=number, unit=self.state.unit, attrs=tuple(self.aperture_attrs.items()))

        if (kls := APERTURE_CLASSES.get(template)) is not None:
            aperture = kls.from_modifiers(command.modifiers, **kwargs)
            sizes = command.modifiers[:2] if template in 'RO' else command.modifiers[:1]
            if any(math.isclose(size, 0) for size in sizes):
                self.warn(Kind.SUSPICIOUS_VALUE, f'Definition of zero-size {aperture.shape} aperture D{number}.')

        elif (macro := self.builder.macros.get(template)) is not None:
            try:
                primitives = macro.expand(command.modifiers)
            except MacroEvaluationError as e:
                self.reporter.report(error_kind(e), self.builder.macro_positions[macro.name],
                                     f'Cannot expand aperture macro {macro.name} for aperture D{number} defined in line '
                                     f'{self.position.line}: {e}. The aperture is empty.', f'AM{macro.name}')
                primitives = ()
            aperture = ApertureMacroInstance(macro.name, command.modifiers, primitives, **kwargs)

        else:
            raise InvalidApertureError(f'Aperture D{number} uses undefined aperture macro {template}')

        self.builder.define_aperture(aperture)

    def _step_repeat(self, command):
        if command.is_close:
            if not isinstance(self.builder.open_frame, cmd.StepRepeat):
                raise InvalidStateError('SR step and repeat close without open step and repeat block')
            self.builder.close_step_repeat()
            return

        if isinstance(self.builder.open_frame, cmd.StepRepeat):
            self.warn(Kind.UNCLOSED_BLOCK, 'SR step and repeat block opened while previous one is still open. '
                      'Closing previous block.')
            self.builder.close_step_repeat()
        self.builder.open_frame_with(command)

    def _aperture_block(self, command):
        if not command.is_close:
            self.builder.open_frame_with(command)
            return

        if not isinstance(self.builder.open_frame, cmd.ApertureBlock):
            raise InvalidStateError('AB block aperture close without open block aperture')
        self._close_aperture_block()

    def _close_aperture_block(self):
        aperture = self.builder.close_aperture_block(self.state.unit, tuple(self.aperture_attrs.items()))
        if not self.builder.define_aperture(aperture):
            self.warn(Kind.DUPLICATE_APERTURE, f'Re-definition of aperture D{aperture.number} by block aperture. '
                      'Ignoring.')

    def _attribute(self, command):
        name, values = command.name, command.values

        match command:
            case cmd.FileAttribute():
                if name.startswith('.') and name not in FILE_ATTRIBUTES:
                    self.warn(Kind.UNKNOWN_ATTRIBUTE, f'Unknown standard file attribute {name}')
                self.builder.set_file_attribute(name, values)

            case cmd.ApertureAttribute():
                if name.startswith('.') and name not in APERTURE_ATTRIBUTES:
                    self.warn(Kind.UNKNOWN_ATTRIBUTE, f'Unknown standard aperture attribute {name}')
                self.aperture_attrs[name] = values

            case cmd.ObjectAttribute():
                if name.startswith('.') and name not in OBJECT_ATTRIBUTES:
                    self.warn(Kind.UNKNOWN_ATTRIBUTE, f'Unknown standard object attribute {name}')
                self.object_attrs[name] = values

            case cmd.DeleteAttribute(name=None):
                self.aperture_attrs.clear()
                self.object_attrs.clear()

            case cmd.DeleteAttribute():
                found = self.aperture_attrs.pop(name, None) is not None
                found = self.object_attrs.pop(name, None) is not None or found
                if not found:
                    self.warn(Kind.UNKNOWN_ATTRIBUTE, f'TD deletion of undefined attribute {name}')

        self._update(object_attrs=MappingProxyType(dict(self.object_attrs)))
        self.builder.add_definition(command)


class GerberParser:
    """ Internal class that contains all of the actual Gerber parsing magic.

    One instance parses one file. Use :py:func:`parse` instead of using this class directly.
    """

    STATEMENT_REGEXES = {
        'comment': r'G0?4(?P<text>.*)',
        'coord': fr'(?:G0?(?P<interp>[123]))?(?:X(?P<x>{COORDINATE}))?(?:Y(?P<y>{COORDINATE}))?' \
            fr'(?:I(?P<i>{COORDINATE}))?(?:J(?P<j>{COORDINATE}))?(?:D0?(?P<op>[123]))?',
        'invalid_coord': r'(?:G0?[123])?[XYIJ][+-]?[0-9.].*',
        'region_start': r'G36',
        'region_end': r'G37',
        'quadrant_mode': r'G7(?P<mode>[45])',
        'aperture': r'(?P<g54>G54)?(?P<number>D[0-9]+)',
        'eof': r'M0?2',
        'format_spec': r'FS(?P<zeros>[LTD])?(?P<notation>[AI])(?P<legacy>[NG0-9]*)X(?P<x>[0-9]{2})Y(?P<y>[0-9]{2})' \
            r'(?P<legacy_trailing>[DM0-9]*)',
        'unit_mode': r'MO(?P<unit>MM|IN)',
        'aperture_definition': r'AD(?P<number>D[0-9]+)(?P<template>[^,]+)(?:,(?P<modifiers>.*))?',
        'aperture_macro': r'AM(?P<name>[^*]*)(?:\*(?P<body>.*))?',
        'load_polarity': r'LP(?P<polarity>[DC])',
        'load_mirroring': r'LM(?P<mirroring>N|XY|X|Y)',
        'load_rotation': r'LR(?P<rotation>.+)',
        'load_scaling': r'LS(?P<scale>.+)',
        'step_repeat': r'SR(?:X(?P<x>[^Y]*)Y(?P<y>[^I]*)I(?P<i>[^J]*)J(?P<j>.*))?',
        'aperture_block': r'AB(?P<number>D[0-9]+)?',
        'attribute': r'(?P<code>T[FAOD])(?P<name>[^,]*)(?:,(?P<values>.*))?',
        'deprecated': r'(?P<code>IP|IR|IN|LN|AS|MI|OF|SF|IF).*|(?P<gcode>G5[45]|G7[01]|G9[01]|M0?[01])',
        }

    def __init__(self, filename=None, emit_warnings=True, override_format=None):
        self.filename = filename
        self.reporter = Reporter(filename, emit_warnings)
        self.number_format = NumberFormat(override_format)
        self.builder = doc.DocumentBuilder()
        self.tracker = GraphicsStateTracker(self.reporter, self.number_format, self.builder)
        self.statement = ''
        self.position = SourcePosition()
        self._line_starts = [0]

    def warn(self, kind, msg):
        self.reporter.report(kind, self.position, msg, self.statement)

    def _position_of(self, offset):
        line = bisect.bisect_right(self._line_starts, offset)
        return SourcePosition(line, offset - self._line_starts[line-1] + 1, offset)

    def _index_lines(self, data):
        self._line_starts = [0, *(match.end() for match in re.finditer('\n', data))]

    def _decode(self, data):
        if isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data)
            try:
                return data.decode('utf-8')
            except UnicodeDecodeError as e:
                prefix = data[:e.start].decode('utf-8')
                self._index_lines(prefix)
                self.reporter.fatal(Kind.INVALID_ENCODING, self._position_of(len(prefix)),
                                    f'Invalid UTF-8 byte 0x{data[e.start]:02x}. Gerber files must be UTF-8 encoded.')

        try:
            data.encode('utf-8')
        except UnicodeEncodeError as e:
            self._index_lines(data)
            self.reporter.fatal(Kind.INVALID_ENCODING, self._position_of(e.start),
                                f'Character {data[e.start]!r} cannot be encoded as UTF-8.')
        return data

    def _enter(self, statement, offset):
        self.statement, self.position = statement, self._position_of(offset)

    def _split_statements(self, data):
        """ Yield ``(statement, offset)`` tuples. Statements are stripped of their ``*`` terminator and the ``%``
        delimiters of extended commands. """
        whitespace = re.compile(r'[\s\ufeff]*')
        terminator = re.compile(r'[*%]')
        pos, end = 0, len(data)

        while (pos := whitespace.match(data, pos).end()) < end:
            if data[pos] == '%':
                if (close := data.find('%', pos+1)) < 0:
                    self._enter(data[pos:pos+80], pos)
                    self.reporter.fatal(Kind.UNTERMINATED_BLOCK, self.position,
                                        'Extended command block started with "%" is never closed.')
                yield from self._split_block(data, pos+1, close)
                pos = close + 1
                continue

            # Ignore '%' within G04 comments, some tools put broken attributes with unbalanced % signs in comments.
            if data.startswith('G04', pos):
                stop = data.find('*', pos)
            else:
                stop = match.start() if (match := terminator.search(data, pos)) else -1

            if stop < 0 or data[stop] == '%':
                self._enter(data[pos:stop if stop >= 0 else end].rstrip(), pos)
                self.warn(Kind.UNTERMINATED_STATEMENT, 'Statement is missing its "*" terminator. Ignoring.')
                if stop < 0:
                    return
                pos = stop
                continue

            statement = data[pos:stop].rstrip()
            if not statement.startswith('G04'):
                statement = re.sub(r'[\r\n]', '', statement)
            yield statement, pos
            pos = stop + 1

    def _split_block(self, data, start, stop):
        content = data[start:stop]
        stripped = content.lstrip()
        offset = start + len(content) - len(stripped)

        # Aperture macro bodies are made of several *-terminated blocks, but form a single statement.
        if stripped.startswith('AM'):
            statement = stripped.rstrip()
            if statement.endswith('*'):
                statement = statement[:-1]
            else:
                self._enter(statement, offset)
                self.warn(Kind.MISSING_TERMINATOR, 'Aperture macro is missing its final "*" terminator.')
            yield statement, offset
            return

        # Some tools combine several extended commands in one block, e.g. %FSLAX24Y24*MOMM*%
        pieces = content.split('*')
        offset = start
        for n, piece in enumerate(pieces):
            if statement := piece.strip():
                piece_offset = offset + len(piece) - len(piece.lstrip())
                statement = re.sub(r'[\r\n]', '', statement)
                if n == len(pieces) - 1:
                    self._enter(statement, piece_offset)
                    self.warn(Kind.MISSING_TERMINATOR, 'Extended command is missing its "*" terminator.')
                yield statement, piece_offset
            offset += len(piece) + 1

    def parse(self, data):
        """ Parse a complete Gerber file given as :py:obj:`str` or UTF-8 :py:obj:`bytes`.

        :rtype: :py:class:`.Document`
        :raises GerberSyntaxError: if the input cannot be split into statements.
        """
        data = self._decode(data)
        self._index_lines(data)

        regex_cache = [ (re.compile(exp, re.DOTALL), getattr(self, f'_parse_{name}'))
                       for name, exp in self.STATEMENT_REGEXES.items() ]

        for statement, offset in self._split_statements(data):
            self._enter(statement, offset)

            if self.tracker.eof_found:
                self.warn(Kind.TRAILING_CONTENT, 'Statement found after M02 end of file.')

            try:
                for command in self._parse_statement(statement, regex_cache):
                    self.tracker.apply(command, statement)
            except STATEMENT_ERRORS as e:
                self.warn(error_kind(e), f'{e}. Statement discarded.')

        self.tracker.finish(self._position_of(len(data)))
        return self.builder.build(self.tracker.state, self.reporter.diagnostics, self.filename)

    def _parse_statement(self, statement, regex_cache):
        for le_regex, fun in regex_cache:
            if (match := le_regex.fullmatch(statement)):
                result = fun(match)
                return result if isinstance(result, tuple) else (result,)

        self.warn(Kind.UNKNOWN_COMMAND, f'Unknown statement found: "{shorten(statement)}". Keeping it as-is.')
        return (cmd.UnrecognizedStatement(text=statement, position=self.position),)

    def _parse_comment(self, match):
        return cmd.Comment(match['text'].strip(), position=self.position)

    def _parse_coord(self, match):
        interp, x, y, i, j, op = match.groups() # faster than name-based group access
        has_coord = any(val is not None for val in (x, y, i, j))
        result = []

        if interp:
            mode = {'1': InterpMode.LINEAR, '2': InterpMode.CIRCULAR_CW, '3': InterpMode.CIRCULAR_CCW}[interp]
            result.append(cmd.SetInterpolationMode(mode, position=self.position))
            if has_coord or op:
                self.warn(Kind.DEPRECATED_COMMAND, f'G0{interp} combined with coordinate data in one statement.')

        if has_coord or op:
            kls = {'1': cmd.Plot, '2': cmd.Move, '3': cmd.Flash, None: cmd.ImplicitOperation}[op]
            result.append(kls(x, y, i, j, position=self.position))

        return tuple(result)

    def _parse_invalid_coord(self, match):
        raise DecodeError(f'Invalid coordinate data "{shorten(match[0])}"')

    def _parse_region_start(self, _match):
        return cmd.RegionStart(position=self.position)

    def _parse_region_end(self, _match):
        return cmd.RegionEnd(position=self.position)

    def _parse_quadrant_mode(self, match):
        mode = QuadrantMode.SINGLE if match['mode'] == '4' else QuadrantMode.MULTI
        return cmd.SetQuadrantMode(mode, position=self.position)

    def _parse_aperture(self, match):
        number = decode_aperture_number(match['number'])
        if match['g54']:
            self.warn(Kind.DEPRECATED_COMMAND, f'Deprecated G54 prefix on aperture selection D{number}.')
        return cmd.SelectAperture(number, position=self.position)

    def _parse_eof(self, _match):
        return cmd.EndOfFile(position=self.position)

    def _parse_format_spec(self, match):
        if match['x'] != match['y']:
            raise InvalidStatementError(f'FS specifies different coordinate formats for X and Y '
                                        f'({match["x"]} != {match["y"]})')

        integer_digits, decimal_digits = int(match['x'][0]), int(match['x'][1])
        if not (1 <= integer_digits <= 6 and 1 <= decimal_digits <= 6):
            raise InvalidStatementError(f'Invalid coordinate format {match["x"]}. Integer and decimal digits must be '
                                        'between 1 and 6.')

        if match['legacy'] or match['legacy_trailing']:
            self.warn(Kind.DEPRECATED_COMMAND, 'Legacy N, G, D or M fields in FS statement. Ignoring them.')

        zeros = {'L': ZeroOmission.LEADING, 'T': ZeroOmission.TRAILING}.get(match['zeros'], ZeroOmission.NONE)
        if zeros == ZeroOmission.TRAILING:
            self.warn(Kind.DEPRECATED_COMMAND, 'Deprecated trailing zero omission in FS statement.')

        notation = Notation.INCREMENTAL if match['notation'] == 'I' else Notation.ABSOLUTE
        if notation == Notation.INCREMENTAL:
            self.warn(Kind.DEPRECATED_COMMAND, 'Deprecated incremental notation in FS statement.')

        spec = FormatSpec(integer_digits, decimal_digits, zeros, notation)
        return cmd.FormatSpecification(spec, position=self.position)

    def _parse_unit_mode(self, match):
        return cmd.UnitMode(MM if match['unit'] == 'MM' else Inch, position=self.position)

    def _parse_aperture_definition(self, match):
        number = decode_aperture_number(match['number'])
        template = match['template'].strip()
        if template not in APERTURE_CLASSES:
            decode_user_name(template)

        modifiers = ()
        if match['modifiers'] is not None:
            modifiers = tuple(decode_decimal(val.strip()) for val in match['modifiers'].split('X'))

        return cmd.ApertureDefinition(number, template, modifiers, position=self.position)

    def _parse_aperture_macro(self, match):
        name = decode_user_name(match['name'].strip())
        macro = ApertureMacro.parse_macro(name, match['body'] or '',
                                          warn=lambda msg: self.warn(Kind.DEPRECATED_COMMAND, msg))
        return cmd.ApertureMacroDefinition(macro, position=self.position)

    def _parse_load_polarity(self, match):
        return cmd.LoadPolarity(Polarity(match['polarity']), position=self.position)

    def _parse_load_mirroring(self, match):
        return cmd.LoadMirroring(Mirroring(match['mirroring']), position=self.position)

    def _parse_load_rotation(self, match):
        return cmd.LoadRotation(decode_decimal(match['rotation']), position=self.position)

    def _parse_load_scaling(self, match):
        if (scale := decode_decimal(match['scale'])) <= 0:
            raise InvalidStatementError(f'LS scale factor must be positive, not {scale:g}')
        return cmd.LoadScaling(scale, position=self.position)

    def _parse_step_repeat(self, match):
        if match['x'] is None:
            return cmd.StepRepeat(position=self.position)

        return cmd.StepRepeat(
                decode_positive_integer(match['x']),
                decode_positive_integer(match['y']),
                decode_unsigned_decimal(match['i']),
                decode_unsigned_decimal(match['j']),
                position=self.position)

    def _parse_aperture_block(self, match):
        number = decode_aperture_number(match['number']) if match['number'] else None
        return cmd.ApertureBlock(number, position=self.position)

    def _parse_attribute(self, match):
        code, name, values = match['code'], match['name'], match['values']

        if code == 'TD':
            if values is not None:
                raise InvalidStatementError('TD attribute deletion command must not contain attribute values')
            return cmd.DeleteAttribute(decode_name(name) if name else None, position=self.position)

        if not name:
            raise InvalidStatementError(f'{code} attribute without name')

        kls = {'TF': cmd.FileAttribute, 'TA': cmd.ApertureAttribute, 'TO': cmd.ObjectAttribute}[code]
        return kls(decode_name(name), decode_fields(values), position=self.position)

    def _parse_deprecated(self, match):
        code = match['code'] or re.sub(r'^M([01])$', r'M0\1', match['gcode'])
        self.warn(Kind.DEPRECATED_COMMAND, f'Deprecated {DEPRECATED_STATEMENTS[code]} statement found. Ignoring it.')
        return cmd.UnrecognizedStatement(text=match[0], deprecated=True, position=self.position)


def parse(data, filename=None, emit_warnings=True, override_format=None):
    """ Parse a Gerber X3 file.

    :param data: File contents as :py:obj:`str`, or as :py:obj:`bytes` that are decoded as UTF-8.
    :param str filename: Only used in diagnostic and warning messages.
    :param bool emit_warnings: Set to ``False`` to not emit diagnostics through :py:func:`warnings.warn`. The returned
                               document's :py:attr:`~.Document.diagnostics` are filled either way.
    :param override_format: :py:class:`.FormatSpec` to use for files that do not contain an ``FS`` statement.
    :rtype: :py:class:`.Document`
    :raises GerberSyntaxError: on unterminated ``%`` blocks and on input that is not valid UTF-8.
    """
    parser = GerberParser(filename=filename, emit_warnings=emit_warnings, override_format=override_format)
    return parser.parse(data)


def parse_file(path, emit_warnings=True, override_format=None):
    """ Read and parse the Gerber file at ``path``. See :py:func:`parse`. """
    path = Path(path)
    return parse(path.read_bytes(), filename=path.name, emit_warnings=emit_warnings, override_format=override_format)
