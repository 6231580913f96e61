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
Decoders for Gerber's primitive data types. Every function takes the raw character span of a single value and either
returns the decoded value or raises :py:class:`.DecodeError`.
"""

import re

#: Maximum length of user and system names.
MAX_NAME_LENGTH = 127

UNSIGNED_INTEGER = r'[0-9]+'
INTEGER = r'[+-]?[0-9]+'
UNSIGNED_DECIMAL = r'(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)'
DECIMAL = fr'[+-]?{UNSIGNED_DECIMAL}'
COORDINATE = r'[+-]?[0-9]+'
USER_NAME = r'[a-zA-Z_$][a-zA-Z_$.0-9]*'
SYSTEM_NAME = r'\.[a-zA-Z_$][a-zA-Z_$.0-9]*'
NAME = fr'(?:{SYSTEM_NAME}|{USER_NAME})'

_ESCAPE_RE = re.compile(r'\\([uU])')
_HEX = frozenset('0123456789abcdefABCDEF')


class DecodeError(ValueError):
    """ A value could not be decoded as the expected data type. """
    pass


def _check(regex, value, what):
    if value is None or not re.fullmatch(regex, value):
        raise DecodeError(f'Invalid {what} {value!r}')
    return value


def decode_unsigned_integer(value):
    return int(_check(UNSIGNED_INTEGER, value, 'unsigned integer'))

def decode_positive_integer(value):
    num = decode_unsigned_integer(value)
    if num < 1:
        raise DecodeError(f'Invalid positive integer {value!r}')
    return num

def decode_integer(value):
    return int(_check(INTEGER, value, 'integer'))

def decode_unsigned_decimal(value):
    return float(_check(UNSIGNED_DECIMAL, value, 'unsigned decimal'))

def decode_decimal(value):
    """ Decode a decimal such as ``-1.5``, ``1.`` or ``.5``. Exponents are not allowed. """
    return float(_check(DECIMAL, value, 'decimal'))


def decode_coordinate_digits(value):
    """ Validate a coordinate digit string. Its meaning depends on the active format specification, so this only
    splits off the sign. See :py:meth:`.NumberFormat.decode_coordinate`.

    :returns: ``(negative, digits)`` tuple
    """
    _check(COORDINATE, value, 'coordinate')
    return value[0] == '-', value.lstrip('+-')


def decode_aperture_number(value):
    """ Decode the number of an aperture identifier like ``D012`` (with or without the leading ``D``). """
    if value[:1] == 'D':
        value = value[1:]
    number = decode_positive_integer(value)
    if number < 10:
        raise DecodeError(f'Invalid aperture number D{number}: Aperture numbers must be >= 10.')
    return number


def decode_name(value):
    """ Decode a user defined (``Foo_1``) or system (``.Foo``) name. """
    _check(NAME, value, 'name')
    if len(value) > MAX_NAME_LENGTH:
        raise DecodeError(f'Name {value[:20]}... is longer than {MAX_NAME_LENGTH} characters')
    return value

def decode_user_name(value):
    _check(USER_NAME, value, 'user name')
    return decode_name(value)


def _check_escapes(value):
    # Escapes are passed through verbatim, we only check that they are well-formed.
    for match in _ESCAPE_RE.finditer(value):
        digits = 4 if match[1] == 'u' else 8
        hex_digits = value[match.end():match.end()+digits]
        if len(hex_digits) != digits or not set(hex_digits) <= _HEX:
            raise DecodeError(f'Malformed unicode escape sequence {value[match.start():match.end()+digits]!r}, '
                              f'\\{match[1]} must be followed by exactly {digits} hex digits')
    return value

def decode_string(value):
    """ Decode a string. Strings may contain any character except for ``*`` and ``%``. Unicode escapes (``\\uXXXX`` and
    ``\\UXXXXXXXX``) are checked but not expanded. """
    if '*' in value or '%' in value:
        raise DecodeError(f'Invalid character in string {value!r}')
    return _check_escapes(value)

def decode_field(value):
    """ Decode an attribute field. Fields are strings that additionally cannot contain a ``,``. """
    if ',' in value:
        raise DecodeError(f'Invalid character in field {value!r}')
    return decode_string(value)

def decode_fields(value):
    """ Split a comma-separated list of fields, decoding each. ``None`` yields an empty tuple. """
    if value is None:
        return ()
    return tuple(decode_field(field) for field in value.split(','))
