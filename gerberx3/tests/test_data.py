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

import pytest

from ..data import *


@pytest.mark.parametrize('value,expected', [
    ('0', 0),
    ('12', 12),
    ('+12', 12),
    ('-12', -12),
    ('007', 7),
    ])
def test_integer(value, expected):
    assert decode_integer(value) == expected


@pytest.mark.parametrize('value', ['', '-', '1.0', '1e3', ' 1', '++1', 'x'])
def test_invalid_integer(value):
    with pytest.raises(DecodeError):
        decode_integer(value)


def test_unsigned_and_positive_integer():
    assert decode_unsigned_integer('0') == 0
    assert decode_positive_integer('3') == 3

    with pytest.raises(DecodeError):
        decode_unsigned_integer('-1')

    with pytest.raises(DecodeError):
        decode_positive_integer('0')


@pytest.mark.parametrize('value,expected', [
    ('1', 1.0),
    ('1.5', 1.5),
    ('-1.5', -1.5),
    ('+0.25', 0.25),
    ('1.', 1.0),
    ('.5', 0.5),
    ('-.5', -0.5),
    ])
def test_decimal(value, expected):
    assert decode_decimal(value) == pytest.approx(expected)


@pytest.mark.parametrize('value', ['', '.', '-', '1.2.3', '1e5', '1,5', 'nan', 'inf', '--1'])
def test_invalid_decimal(value):
    with pytest.raises(DecodeError):
        decode_decimal(value)


def test_unsigned_decimal():
    assert decode_unsigned_decimal('2.54') == pytest.approx(2.54)
    with pytest.raises(DecodeError):
        decode_unsigned_decimal('-2.54')


@pytest.mark.parametrize('value,expected', [
    ('1234', (False, '1234')),
    ('-1234', (True, '1234')),
    ('+0', (False, '0')),
    ])
def test_coordinate_digits(value, expected):
    assert decode_coordinate_digits(value) == expected


@pytest.mark.parametrize('value', ['', '1.5', '-', '12a'])
def test_invalid_coordinate_digits(value):
    with pytest.raises(DecodeError):
        decode_coordinate_digits(value)


@pytest.mark.parametrize('value,expected', [
    ('D10', 10),
    ('D010', 10),
    ('10', 10),
    ('D999', 999),
    ])
def test_aperture_number(value, expected):
    assert decode_aperture_number(value) == expected


@pytest.mark.parametrize('value', ['D0', 'D09', 'D3', 'D', 'Dx10', 'D-10'])
def test_invalid_aperture_number(value):
    with pytest.raises(DecodeError):
        decode_aperture_number(value)


@pytest.mark.parametrize('value', ['Foo', '_foo', '$bar', 'a.b.c', 'OC8', '.FileFunction', '.N', 'x' * 127])
def test_name(value):
    assert decode_name(value) == value


@pytest.mark.parametrize('value', ['', '1abc', 'foo bar', 'foo-bar', '.', '..x', 'ä', 'x' * 128])
def test_invalid_name(value):
    with pytest.raises(DecodeError):
        decode_name(value)


def test_user_name_rejects_system_names():
    assert decode_user_name('Thermal_1') == 'Thermal_1'
    with pytest.raises(DecodeError):
        decode_user_name('.Thermal')


@pytest.mark.parametrize('value', [
    'plain text, with commas',
    r'escaped \u00e4 umlaut',
    r'astral \U0001F600 plane',
    'ünïcödé',
    ])
def test_string_passes_through_verbatim(value):
    assert decode_string(value) == value


@pytest.mark.parametrize('value', [r'\u00e', r'\u00eg', r'short \U0001F60', 'star*', 'percent%'])
def test_invalid_string(value):
    with pytest.raises(DecodeError):
        decode_string(value)


def test_fields():
    assert decode_fields(None) == ()
    assert decode_fields('Copper,L1,Top') == ('Copper', 'L1', 'Top')
    assert decode_fields('') == ('',)
    assert decode_fields(r'\u0041BC,x') == (r'\u0041BC', 'x')

    with pytest.raises(DecodeError):
        decode_field('a,b')
