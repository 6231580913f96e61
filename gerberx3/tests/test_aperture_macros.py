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

from ..aperture_macros.parse import ApertureMacro, MacroSyntaxError, _parse_expression
from ..aperture_macros.expression import MacroEvaluationError, UndefinedVariableError, MacroDivisionByZero
from ..aperture_macros import primitive as amp


@pytest.mark.parametrize('expr,expected', [
    ('1+2x3', 7),
    ('(1+2)x3', 9),
    ('2X3', 6),
    ('-2x3', -6),
    ('-(2+3)', -5),
    ('10/4/5', 0.5),
    ('8-3-2', 3),
    ('1-2x3+4', -1),
    ('.5+1.', 1.5),
    ('007', 7),
    ])
def test_expression_precedence(expr, expected):
    assert _parse_expression(expr).calculate() == pytest.approx(expected)


def test_expression_variables():
    expr = _parse_expression('$1x2+$2')
    assert expr.calculate({1: 3.0, 2: 1.0}) == pytest.approx(7)
    assert {p.number for p in expr.parameters()} == {1, 2}

    with pytest.raises(UndefinedVariableError):
        expr.calculate({1: 3.0})


def test_expression_to_gerber():
    assert _parse_expression('-$1x(2+$2)').to_gerber() == '-$1x(2+$2)'
    assert _parse_expression('1.50').to_gerber() == '1.5'


@pytest.mark.parametrize('expr', ['', '2xx3', '1+', '$', 'abc', '1.2.3', '()', '1,2', '2^3'])
def test_expression_syntax_errors(expr):
    with pytest.raises(MacroSyntaxError):
        _parse_expression(expr)


def test_division_by_zero():
    with pytest.raises(MacroDivisionByZero):
        _parse_expression('1/(2-2)').calculate()

    macro = ApertureMacro.parse_macro('DIV', '1,1,1/$1,0,0')
    with pytest.raises(MacroDivisionByZero):
        macro.expand((0,))
    assert macro.expand((4,)) == (amp.Circle(1, 0.25, 0, 0),)


def test_variable_definition():
    macro = ApertureMacro.parse_macro('VAR', '$1=2x3*1,1,$1,0,0')
    assert macro.num_parameters == 0
    assert macro.expand() == (amp.Circle(1, 6, 0, 0),)


def test_undefined_variable():
    macro = ApertureMacro.parse_macro('UNDEF', '1,1,$1,0,0*1,1,$2,0,0')
    assert macro.num_parameters == 2
    with pytest.raises(UndefinedVariableError):
        macro.expand((1.0,))


def test_variables_are_write_once():
    macro = ApertureMacro.parse_macro('TWICE', '$2=1*$2=2*1,1,$2,0,0')
    with pytest.raises(MacroEvaluationError):
        macro.expand()

    macro = ApertureMacro.parse_macro('SHADOW', '$1=2*1,1,$1,0,0')
    with pytest.raises(MacroEvaluationError):
        macro.expand((3,))


def test_expansion_environment_is_per_call():
    macro = ApertureMacro.parse_macro('DONUT', '$3=$1+$2*1,1,$3,0,0')
    assert macro.expand((1, 2)) == (amp.Circle(1, 3, 0, 0),)
    assert macro.expand((2, 2)) == (amp.Circle(1, 4, 0, 0),)


def test_num_parameters():
    macro = ApertureMacro.parse_macro('PARAMS', '$3=$1x2*1,1,$3,$2,0')
    assert macro.num_parameters == 2


def test_outline():
    macro = ApertureMacro.parse_macro('TRI', '4,1,3,\n0,0,\n1,0,\n1,1,\n0,0,\n0')
    outline, = macro.expand()
    assert isinstance(outline, amp.Outline)
    assert outline.length == 3
    assert list(outline.points) == [(0, 0), (1, 0), (1, 1), (0, 0)]


@pytest.mark.parametrize('body', [
    '4,1,3,0,0,1,0,1,1,0', # only three coordinate pairs
    '4,1,3,0,0,1,0,1,1,2,2,0', # not closed
    '4,1,2,0,0,1,0,0,0,0', # too few vertices
    '4,1,3.5,0,0,1,0,1,1,0,0,0',
    ])
def test_invalid_outline(body):
    macro = ApertureMacro.parse_macro('BAD', body)
    with pytest.raises(MacroEvaluationError):
        macro.expand()


@pytest.mark.parametrize('body', [
    '1,3,1,0,0', # exposure must be 0, 1 or 2
    '5,1,13,0,0,1,0', # polygons have at most 12 vertices
    '7,0,0,1,2,0.1,0', # thermal inner diameter larger than outer
    ])
def test_invalid_primitive_parameters(body):
    macro = ApertureMacro.parse_macro('BAD', body)
    with pytest.raises(MacroEvaluationError):
        macro.expand()


def test_primitives():
    macro = ApertureMacro.parse_macro('ALL', '''0 every primitive*
        1,1,1.5,0,0*
        20,1,0.2,0,0,1,1,0*
        21,0,1,2,0,0,45*
        5,1,6,0,0,2*
        7,0,0,1,0.8,0.1,45''')
    assert macro.comments == ('every primitive',)
    circle, vector, center, polygon, thermal = macro.expand()

    assert circle == amp.Circle(1, 1.5, 0, 0, 0)
    assert vector.length == pytest.approx(math.sqrt(2))
    assert center.rotation == 45
    assert not center.exposure_on
    assert polygon.n_vertices == 6
    assert thermal.d_inner == pytest.approx(0.8)


def test_deprecated_primitives():
    messages = []
    macro = ApertureMacro.parse_macro('OLD', '2,1,0.1,0,0,1,1,0*22,1,1,1,0,0,0', warn=messages.append)
    assert len(messages) == 2
    legacy, lower_left = macro.expand()
    assert isinstance(legacy, amp.LegacyVectorLine)
    assert isinstance(lower_left, amp.LowerLeftLine)


@pytest.mark.parametrize('body', [
    '99,1,1', # unknown primitive code
    '1,1', # too few parameters
    '1,1,1,0,0,0,0', # too many parameters
    '$0=1',
    '$x=1',
    'foo',
    '1,1,1+,0,0',
    ])
def test_macro_syntax_errors(body):
    with pytest.raises(MacroSyntaxError):
        ApertureMacro.parse_macro('BAD', body)
