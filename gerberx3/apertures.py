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
from dataclasses import dataclass, fields, KW_ONLY, MISSING

from .utils import LengthUnit
from .aperture_macros import primitive as amp


class InvalidApertureError(ValueError):
    """ The parameters of an aperture definition do not fit its shape. """
    pass


def _hole(hole_dia):
    if hole_dia:
        return (amp.Circle(0, hole_dia, 0, 0),)
    return ()


@dataclass(frozen=True, slots=True)
class Aperture:
    """ Base class for all apertures. """
    _ : KW_ONLY
    #: D code this aperture was defined with, e.g. ``10`` for ``D10``
    number: int = None
    unit: LengthUnit = None
    #: ``(name, values)`` tuples of the ``TA`` aperture attributes in effect when this aperture was defined.
    attrs: tuple = ()

    @classmethod
    def from_modifiers(kls, modifiers, **kwargs):
        """ Build an aperture from the list of numeric modifiers of its ``AD`` statement. """
        positional = [f for f in fields(kls) if not f.kw_only]
        required = [f for f in positional if f.default is MISSING]
        if not len(required) <= len(modifiers) <= len(positional):
            raise InvalidApertureError(f'{kls._human_readable_shape} aperture takes {len(required)} to '
                                       f'{len(positional)} parameters, not {len(modifiers)}')
        return kls(*modifiers, **kwargs)

    @property
    def primitives(self):
        """ This aperture's shape as a tuple of numeric aperture macro primitives centered on the origin. """
        raise NotImplementedError()

    @property
    def shape(self):
        return self._human_readable_shape


@dataclass(frozen=True, slots=True)
class CircleAperture(Aperture):
    """ Besides flashing circles or rings, CircleApertures are used to set the width of interpolated lines and arcs. """
    _human_readable_shape = 'circle'
    #: float with diameter of the circle in :py:attr:`unit` units.
    diameter : float
    #: float with the hole diameter of this aperture in :py:attr:`unit` units. ``None`` for no hole.
    hole_dia : float = None

    def __post_init__(self):
        if self.diameter < 0:
            raise InvalidApertureError(f'Circle diameter must not be negative, not {self.diameter}')

    def __str__(self):
        return f'<circle aperture D{self.number} d={self.diameter:.3} [{self.unit}]>'

    @property
    def primitives(self):
        return (amp.Circle(1, self.diameter, 0, 0), *_hole(self.hole_dia))


@dataclass(frozen=True, slots=True)
class RectangleAperture(Aperture):
    """ Gerber rectangle aperture. """
    _human_readable_shape = 'rect'
    #: float with the width of the rectangle in :py:attr:`unit` units.
    w : float
    #: float with the height of the rectangle in :py:attr:`unit` units.
    h : float
    #: float with the hole diameter of this aperture in :py:attr:`unit` units. ``None`` for no hole.
    hole_dia : float = None

    def __post_init__(self):
        if self.w < 0 or self.h < 0:
            raise InvalidApertureError(f'Rectangle width and height must not be negative, not {self.w}x{self.h}')

    def __str__(self):
        return f'<rect aperture D{self.number} {self.w:.3}x{self.h:.3} [{self.unit}]>'

    @property
    def primitives(self):
        return (amp.CenterLine(1, self.w, self.h, 0, 0), *_hole(self.hole_dia))


@dataclass(frozen=True, slots=True)
class ObroundAperture(Aperture):
    """ Aperture whose shape is the convex hull of two circles of equal radii.

    Obrounds are specified through width and height of their bounding rectangle. The smaller one of these will be the
    diameter of the obround's ends. If :py:attr:`w` is larger, the result will be a landscape obround. If :py:attr:`h`
    is larger, it will be a portrait obround.
    """
    _human_readable_shape = 'obround'
    #: float with the width of the bounding rectangle of this obround in :py:attr:`unit` units.
    w : float
    #: float with the height of the bounding rectangle of this obround in :py:attr:`unit` units.
    h : float
    #: float with the hole diameter of this aperture in :py:attr:`unit` units. ``None`` for no hole.
    hole_dia : float = None

    def __post_init__(self):
        if self.w < 0 or self.h < 0:
            raise InvalidApertureError(f'Obround width and height must not be negative, not {self.w}x{self.h}')

    def __str__(self):
        return f'<obround aperture D{self.number} {self.w:.3}x{self.h:.3} [{self.unit}]>'

    @property
    def primitives(self):
        if math.isclose(self.w, self.h):
            return (amp.Circle(1, self.w, 0, 0), *_hole(self.hole_dia))

        elif self.w > self.h:
            d, l = self.h, self.w - self.h
            return (amp.CenterLine(1, l, d, 0, 0),
                    amp.Circle(1, d, -l/2, 0),
                    amp.Circle(1, d, +l/2, 0),
                    *_hole(self.hole_dia))

        else:
            d, l = self.w, self.h - self.w
            return (amp.CenterLine(1, d, l, 0, 0),
                    amp.Circle(1, d, 0, -l/2),
                    amp.Circle(1, d, 0, +l/2),
                    *_hole(self.hole_dia))


@dataclass(frozen=True, slots=True)
class PolygonAperture(Aperture):
    """ Aperture whose shape is a regular n-sided polygon (e.g. pentagon, hexagon etc.). Note that this only supports
    round holes.
    """
    _human_readable_shape = 'polygon'
    #: Diameter of circumscribing circle, i.e. the circle that all the polygon's corners lie on. In
    #: :py:attr:`unit` units.
    diameter : float
    #: Number of corners of this polygon. Three for a triangle, four for a square, five for a pentagon etc.
    n_vertices : int
    #: Rotation in degree counter-clockwise.
    rotation : float = None
    #: float with the hole diameter of this aperture in :py:attr:`unit` units. ``None`` for no hole.
    hole_dia : float = None

    def __post_init__(self):
        if self.diameter < 0:
            raise InvalidApertureError(f'Polygon diameter must not be negative, not {self.diameter}')
        if not float(self.n_vertices).is_integer() or not 3 <= self.n_vertices <= 12:
            raise InvalidApertureError(f'Polygon vertex count must be an integer from 3 to 12, not {self.n_vertices}')
        object.__setattr__(self, 'n_vertices', int(self.n_vertices))

    def __str__(self):
        return f'<{self.n_vertices}-gon aperture D{self.number} d={self.diameter:.3} [{self.unit}]>'

    @property
    def primitives(self):
        return (amp.Polygon(1, self.n_vertices, 0, 0, self.diameter, self.rotation or 0), *_hole(self.hole_dia))


@dataclass(frozen=True, slots=True)
class ApertureMacroInstance(Aperture):
    """ One instance of an aperture macro. An aperture macro defined with an ``AM`` statement can be instantiated by
    multiple ``AD`` aperture definition statements using different parameters. An :py:class:`.ApertureMacroInstance`
    is one such binding of a macro to a particular set of parameters, together with the primitives that came out of
    expanding the macro with those parameters.
    """
    _human_readable_shape = 'macro'
    #: Name of the :py:class:`.ApertureMacro` this is an instance of
    macro_name : str
    #: The parameters to the :py:class:`.ApertureMacro`, in the order they were given in the ``AD`` statement.
    parameters : tuple = ()
    #: Result of expanding the macro with :py:attr:`parameters`. Empty if expansion failed.
    primitives : tuple = ()

    def __str__(self):
        return f'<aperture macro D{self.number} {self.macro_name}, {len(self.primitives)} primitives [{self.unit}]>'


@dataclass(frozen=True, slots=True)
class BlockAperture(Aperture):
    """ Aperture defined through an ``AB`` block. Flashing it replicates :py:attr:`objects` at the flash point. """
    _human_readable_shape = 'block'
    #: Graphic objects and regions captured between ``%ABDnn*%`` and ``%AB*%``.
    objects : tuple = ()

    def __str__(self):
        return f'<block aperture D{self.number} with {len(self.objects)} objects>'

    @property
    def primitives(self):
        return ()


APERTURE_CLASSES = {
    'C': CircleAperture,
    'R': RectangleAperture,
    'O': ObroundAperture,
    'P': PolygonAperture,
}
