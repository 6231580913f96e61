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

"""
Parsed Gerber statements. There is one :py:class:`.Command` subclass per Gerber function code or extended command;
the set is closed and matches the Gerber X3 command list. Coordinates are kept as the raw digit strings found in the
file since their meaning depends on the format specification active at the time they are applied.
"""

from dataclasses import dataclass, field, KW_ONLY

from .diagnostics import SourcePosition
from .utils import LengthUnit, InterpMode, QuadrantMode, Polarity, Mirroring
from .settings import FormatSpec
from .aperture_macros.parse import ApertureMacro


@dataclass(frozen=True, slots=True)
class Command:
    """ Base class of all commands. """
    _ : KW_ONLY
    #: Where the statement this command was parsed from starts in the input.
    position: SourcePosition = field(default=SourcePosition(), compare=False)

    def __str__(self):
        return f'{self.code} {self.position}'


@dataclass(frozen=True, slots=True)
class Comment(Command):
    """ ``G04`` comment. The body is kept verbatim and not parsed any further. """
    code = 'G04'
    text: str = ''


@dataclass(frozen=True, slots=True)
class UnitMode(Command):
    code = 'MO'
    unit: LengthUnit = None


@dataclass(frozen=True, slots=True)
class FormatSpecification(Command):
    code = 'FS'
    spec: FormatSpec = None


@dataclass(frozen=True, slots=True)
class ApertureDefinition(Command):
    """ ``AD`` aperture definition. ``template`` is one of the standard shape codes ``C``, ``R``, ``O`` or ``P``, or the
    name of an aperture macro. """
    code = 'AD'
    number: int = None
    template: str = None
    modifiers: tuple = ()


@dataclass(frozen=True, slots=True)
class ApertureMacroDefinition(Command):
    code = 'AM'
    macro: ApertureMacro = None


@dataclass(frozen=True, slots=True)
class SelectAperture(Command):
    """ ``Dnn`` with nn >= 10 """
    code = 'Dnn'
    number: int = None


@dataclass(frozen=True, slots=True)
class CoordinateCommand(Command):
    """ Common base of the operation codes ``D01``, ``D02`` and ``D03``. Each coordinate is the raw, possibly signed,
    digit string from the file or ``None`` if it was omitted. """
    x: str = None
    y: str = None
    i: str = None
    j: str = None


@dataclass(frozen=True, slots=True)
class Plot(CoordinateCommand):
    """ ``D01`` draws a line or arc to the given point, or adds a segment to the current region contour. """
    code = 'D01'


@dataclass(frozen=True, slots=True)
class Move(CoordinateCommand):
    """ ``D02`` moves the current point. """
    code = 'D02'


@dataclass(frozen=True, slots=True)
class Flash(CoordinateCommand):
    """ ``D03`` flashes the current aperture. """
    code = 'D03'


@dataclass(frozen=True, slots=True)
class ImplicitOperation(CoordinateCommand):
    """ Coordinate data without an operation code. Deprecated, means "same as the previous D01". """
    code = 'D--'


@dataclass(frozen=True, slots=True)
class SetInterpolationMode(Command):
    """ ``G01``, ``G02`` or ``G03`` """
    code = 'G0x'
    mode: InterpMode = InterpMode.LINEAR


@dataclass(frozen=True, slots=True)
class SetQuadrantMode(Command):
    """ ``G74`` (single quadrant, deprecated) or ``G75`` (multi quadrant) """
    code = 'G7x'
    mode: QuadrantMode = QuadrantMode.MULTI


@dataclass(frozen=True, slots=True)
class RegionStart(Command):
    code = 'G36'


@dataclass(frozen=True, slots=True)
class RegionEnd(Command):
    code = 'G37'


@dataclass(frozen=True, slots=True)
class LoadPolarity(Command):
    code = 'LP'
    polarity: Polarity = Polarity.DARK


@dataclass(frozen=True, slots=True)
class LoadMirroring(Command):
    code = 'LM'
    mirroring: Mirroring = Mirroring.NONE


@dataclass(frozen=True, slots=True)
class LoadRotation(Command):
    """ Rotation in degree counter-clockwise """
    code = 'LR'
    rotation: float = 0.0


@dataclass(frozen=True, slots=True)
class LoadScaling(Command):
    code = 'LS'
    scale: float = 1.0


@dataclass(frozen=True, slots=True)
class StepRepeat(Command):
    """ ``SR`` step and repeat. Without parameters, this closes the currently open step and repeat block. """
    code = 'SR'
    x_repeat: int = None
    y_repeat: int = None
    x_step: float = None
    y_step: float = None

    @property
    def is_close(self):
        return self.x_repeat is None


@dataclass(frozen=True, slots=True)
class ApertureBlock(Command):
    """ ``AB`` block aperture. With a number, this opens a block; without one, it closes the innermost open block. """
    code = 'AB'
    number: int = None

    @property
    def is_close(self):
        return self.number is None


@dataclass(frozen=True, slots=True)
class Attribute(Command):
    """ Common base of the attribute commands. ``values`` is a tuple of string fields, passed through verbatim. """
    name: str = None
    values: tuple = ()


@dataclass(frozen=True, slots=True)
class FileAttribute(Attribute):
    code = 'TF'


@dataclass(frozen=True, slots=True)
class ApertureAttribute(Attribute):
    code = 'TA'


@dataclass(frozen=True, slots=True)
class ObjectAttribute(Attribute):
    code = 'TO'


@dataclass(frozen=True, slots=True)
class DeleteAttribute(Attribute):
    """ ``TD``. Without a name, deletes all aperture and object attributes. """
    code = 'TD'


@dataclass(frozen=True, slots=True)
class EndOfFile(Command):
    code = 'M02'


@dataclass(frozen=True, slots=True)
class UnrecognizedStatement(Command):
    """ A statement that is unknown or deprecated. It is kept as-is so tools can still see where it was. """
    code = '??'
    text: str = ''
    deprecated: bool = False
