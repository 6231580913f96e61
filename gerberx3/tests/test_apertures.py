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

from ..apertures import *
from ..aperture_macros import primitive as amp
from ..utils import MM


@pytest.mark.parametrize('template,modifiers,shape', [
    ('C', (1.5,), 'circle'),
    ('C', (1.5, 0.5), 'circle'),
    ('R', (1, 2), 'rect'),
    ('R', (1, 2, 0.3), 'rect'),
    ('O', (1, 2), 'obround'),
    ('P', (1, 6), 'polygon'),
    ('P', (1, 6, 30, 0.2), 'polygon'),
    ])
def test_from_modifiers(template, modifiers, shape):
    ap = APERTURE_CLASSES[template].from_modifiers(modifiers, number=10, unit=MM)
    assert ap.shape == shape
    assert ap.number == 10
    assert ap.unit == MM
    assert ap.primitives


@pytest.mark.parametrize('template,modifiers', [
    ('C', ()),
    ('C', (1, 2, 3)),
    ('R', (1,)),
    ('O', (1, 2, 3, 4)),
    ('P', (1,)),
    ('C', (-1,)),
    ('R', (1, -2)),
    ('P', (1, 2)),
    ('P', (1, 13)),
    ('P', (1, 4.5)),
    ('P', (-1, 6)),
    ])
def test_invalid_modifiers(template, modifiers):
    with pytest.raises(InvalidApertureError):
        APERTURE_CLASSES[template].from_modifiers(modifiers, number=10)


def test_circle_primitives():
    assert CircleAperture(1.5).primitives == (amp.Circle(1, 1.5, 0, 0),)
    assert CircleAperture(1.5, 0.5).primitives == (amp.Circle(1, 1.5, 0, 0), amp.Circle(0, 0.5, 0, 0))


def test_obround_primitives():
    line, c1, c2 = ObroundAperture(3, 1).primitives
    assert line == amp.CenterLine(1, 2, 1, 0, 0)
    assert (c1.x, c2.x) == (-1, 1)
    assert c1.diameter == 1

    line, c1, c2 = ObroundAperture(1, 3).primitives
    assert (c1.y, c2.y) == (-1, 1)

    assert ObroundAperture(2, 2).primitives == (amp.Circle(1, 2, 0, 0),)


def test_polygon():
    ap = PolygonAperture(1, 6.0)
    assert ap.n_vertices == 6
    assert isinstance(ap.n_vertices, int)
    poly, = ap.primitives
    assert poly == amp.Polygon(1, 6, 0, 0, 1, 0)


def test_macro_instance_equality():
    a = ApertureMacroInstance('M', (1.0,), (amp.Circle(1, 1, 0, 0),), number=10)
    b = ApertureMacroInstance('M', (1.0,), (amp.Circle(1, 1, 0, 0),), number=10)
    c = ApertureMacroInstance('M', (2.0,), (amp.Circle(1, 2, 0, 0),), number=10)
    assert a == b
    assert a != c
    assert a.shape == 'macro'


def test_block_aperture():
    ap = BlockAperture((), number=12)
    assert ap.primitives == ()
    assert ap.shape == 'block'
