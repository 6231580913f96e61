#! /usr/bin/env python
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

from dataclasses import dataclass

from .utils import ZeroOmission, Notation
from .data import decode_coordinate_digits


class MissingFormatError(ValueError):
    """ A coordinate was decoded before the file contained a format specification. """
    pass


@dataclass(frozen=True, slots=True)
class FormatSpec:
    ''' Coordinate format from a Gerber ``FS`` statement.

    .. note::
        Zero omission follows Gerber terminology: ``ZeroOmission.LEADING`` means leading zeros are *omitted* from
        coordinate digit strings, so digit strings are right-aligned against the decimal digits.
    '''
    #: Number of integer digits, 1 to 6.
    integer_digits : int = 2
    #: Number of decimal digits, 1 to 6.
    decimal_digits : int = 6
    #: Which zeros are omitted from coordinate digit strings.
    zeros : ZeroOmission = ZeroOmission.LEADING
    #: Coordinate notation. Absolute mode is universally used today. Incremental mode is technically still supported,
    #: but exceedingly rare in the wild.
    notation : Notation = Notation.ABSOLUTE

    # input validation
    def __post_init__(self):
        for name in ('integer_digits', 'decimal_digits'):
            value = getattr(self, name)
            if not isinstance(value, int) or not 1 <= value <= 6:
                raise ValueError(f'{name} must be an integer between 1 and 6, not {value!r}')

        if not isinstance(self.zeros, ZeroOmission):
            raise ValueError(f'zeros must be a ZeroOmission, not {self.zeros!r}')

        if not isinstance(self.notation, Notation):
            raise ValueError(f'notation must be a Notation, not {self.notation!r}')

    @property
    def number_format(self):
        return self.integer_digits, self.decimal_digits

    @property
    def is_incremental(self):
        return self.notation == Notation.INCREMENTAL

    def __str__(self):
        return f'<Format {self.integer_digits}.{self.decimal_digits} zeros={self.zeros.value} notation={self.notation.value}>'

    def parse_gerber_value(self, value):
        """ Parse a coordinate digit string such as ``-01234`` using this format. """
        negative, digits = decode_coordinate_digits(value)
        integer_digits, decimal_digits = self.number_format

        if self.zeros == ZeroOmission.TRAILING:
            digits = digits.ljust(integer_digits + decimal_digits, '0')
            result = float(digits[:integer_digits] + '.' + digits[integer_digits:])

        else: # leading zero omission or no omission
            digits = digits.rjust(integer_digits + decimal_digits, '0')
            result = float(digits[:-decimal_digits] + '.' + digits[-decimal_digits:])

        return -result if negative else result


class NumberFormat:
    """ Number-format context of one parse. Holds the active :py:class:`.FormatSpec`, if any, and decodes coordinate
    digit strings with it. One instance is owned by each parser and passed explicitly to everything that needs to
    decode coordinates.

    :param override: Optional :py:class:`.FormatSpec` used for files that lack an ``FS`` statement.
    """

    def __init__(self, override=None):
        self.spec = None
        self.override = override

    @property
    def active(self):
        return self.spec or self.override

    @property
    def is_set(self):
        return self.spec is not None

    def set(self, spec):
        """ Set the format. Returns ``False`` and changes nothing if a different format was set before. """
        if self.spec is not None:
            return self.spec == spec
        self.spec = spec
        return True

    def decode_coordinate(self, raw_digits, axis):
        """ Decode one coordinate digit string such as ``'-1234'`` into a float.

        :param str raw_digits: digit string, possibly signed, without decimal point.
        :param str axis: ``'X'``, ``'Y'``, ``'I'`` or ``'J'``, for error messages.
        :raises MissingFormatError: if no format specification is active.
        :raises DecodeError: if ``raw_digits`` is not a valid coordinate.
        """
        if (spec := self.active) is None:
            raise MissingFormatError(f'{axis} coordinate {raw_digits!r} found before format specification (FS)')
        return spec.parse_gerber_value(raw_digits)
