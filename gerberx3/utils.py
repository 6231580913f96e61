#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2014 Hamilton Kibbe <ham@hamiltonkib.be>
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
gerberx3.utils
==============
**Shared enums, units and warning categories**

This module contains the small value types that are shared between the decoder, the statement parser, the graphics
state tracker and the document model.
"""

from enum import Enum


class GerberWarning(Warning):
    """ Base class of all warnings emitted by gerberx3 while parsing. """
    pass

class UnknownStatementWarning(GerberWarning):
    """ gerberx3 found an unknown Gerber statement. """
    pass

class DeprecatedStatementWarning(GerberWarning, DeprecationWarning):
    """ gerberx3 found a statement that has been deprecated by the Gerber format. """
    pass

class GerberErrorWarning(GerberWarning):
    """ A statement or aperture macro was discarded because it could not be interpreted. """
    pass


class LengthUnit:
    """ Length unit of a Gerber file as set by its ``MO`` statement. Recorded in :py:class:`.GraphicsState`, on every
    aperture and on every graphic object.

    Singleton, use only global instances ``utils.MM`` and ``utils.Inch``.
    """

    def __init__(self, name, shorthand, this_in_mm):
        self.name = name
        self.shorthand = shorthand
        self.factor = this_in_mm

    def to_mm(self, value):
        """ Convert ``value`` given in this unit to millimeters. """
        return None if value is None else value * self.factor

    def __eq__(self, other):
        if isinstance(other, str):
            return other.lower() in (self.name, self.shorthand)
        else:
            return id(self) == id(other)

    def __hash__(self):
        return hash(self.name)

    # This class is a singleton, we don't want copies around
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __str__(self):
        return self.shorthand

    def __repr__(self):
        return f'<LengthUnit {self.name}>'


MILLIMETERS_PER_INCH = 25.4
Inch = LengthUnit('inch', 'in', MILLIMETERS_PER_INCH)
MM = LengthUnit('millimeter', 'mm', 1)

def _raise_error(*args, **kwargs):
    raise SystemError('LengthUnit is a singleton. Use gerberx3.utils.MM or gerberx3.utils.Inch.')
LengthUnit.__init__ = _raise_error


class InterpMode(Enum):
    """ Gerber interpolation mode. """
    #: straight line
    LINEAR = 0
    #: clockwise circular arc
    CIRCULAR_CW = 1
    #: counterclockwise circular arc
    CIRCULAR_CCW = 2


class QuadrantMode(Enum):
    """ Arc quadrant mode as set by ``G74`` / ``G75``. """
    SINGLE = 'single'
    MULTI = 'multi'


class Polarity(Enum):
    """ Object polarity as set by ``LP``. """
    DARK = 'D'
    CLEAR = 'C'


class ZeroOmission(Enum):
    """ Which zeros may be omitted from coordinate digit strings, from the ``FS`` statement. """
    LEADING = 'leading'
    TRAILING = 'trailing'
    NONE = 'none'


class Notation(Enum):
    ABSOLUTE = 'absolute'
    INCREMENTAL = 'incremental'


class Mirroring(Enum):
    """ Aperture mirroring as set by ``LM``. """
    NONE = 'N'
    X = 'X'
    Y = 'Y'
    XY = 'XY'


def shorten(line, limit=80):
    """ Shorten a statement for inclusion in a diagnostic message. """
    line_joined = line.replace('\r', '').replace('\n', '\\n')
    if len(line_joined) > limit:
        return f'{line_joined[:20]}[...]{line_joined[-20:]}'
    else:
        return line_joined
