#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2019 Hiroshi Murayama <opiopan@gmail.com>
# Copyright 2022 Jan Sebastian Götte <gerbonara@jaseg.de>

import math
from dataclasses import dataclass, fields, MISSING

from .expression import MacroEvaluationError


@dataclass(frozen=True, slots=True)
class Primitive:
    """ Fully evaluated aperture macro primitive. All lengths are in the unit of the file the macro was used in, all
    rotations in degrees counter-clockwise around the aperture origin. """
    #: Set on subclasses whose primitive code is deprecated by the Gerber format.
    deprecated = False

    def __str__(self):
        attrs = ','.join(f'{getattr(self, f.name):g}' for f in fields(self))
        return f'<{type(self).__name__} {attrs}>'

    @classmethod
    def num_required(kls):
        return sum(1 for f in fields(kls) if f.default is MISSING)

    @classmethod
    def from_arglist(kls, arglist):
        """ Build a primitive from its list of evaluated parameters. """
        if not kls.num_required() <= len(arglist) <= len(fields(kls)):
            raise MacroEvaluationError(f'{kls.__name__} primitive (code {kls.code}) takes '
                                       f'{kls.num_required()} to {len(fields(kls))} parameters, not {len(arglist)}')
        return kls(*arglist)

    def __post_init__(self):
        if hasattr(self, 'exposure') and self.exposure not in (0, 1, 2):
            raise MacroEvaluationError(f'Invalid exposure value {self.exposure:g} in {type(self).__name__} primitive')

    @property
    def exposure_on(self):
        return getattr(self, 'exposure', 1) == 1


@dataclass(frozen=True, slots=True)
class Circle(Primitive):
    code = 1
    exposure : float
    diameter : float
    # center x/y
    x : float
    y : float
    rotation : float = 0


@dataclass(frozen=True, slots=True)
class VectorLine(Primitive):
    code = 20
    exposure : float
    width : float
    start_x : float
    start_y : float
    end_x : float
    end_y : float
    rotation : float = 0

    @property
    def length(self):
        return math.dist((self.start_x, self.start_y), (self.end_x, self.end_y))


@dataclass(frozen=True, slots=True)
class LegacyVectorLine(VectorLine):
    """ Primitive code 2, an alias of code 20 that has been deprecated. """
    code = 2
    deprecated = True


@dataclass(frozen=True, slots=True)
class CenterLine(Primitive):
    code = 21
    exposure : float
    width : float
    height : float
    # center x/y
    x : float
    y : float
    rotation : float = 0


@dataclass(frozen=True, slots=True)
class LowerLeftLine(Primitive):
    """ Rectangle given by its lower left corner. Deprecated. """
    code = 22
    deprecated = True
    exposure : float
    width : float
    height : float
    # lower left corner x/y
    x : float
    y : float
    rotation : float = 0


@dataclass(frozen=True, slots=True)
class Outline(Primitive):
    code = 4
    exposure : float
    length : int
    coords : tuple
    rotation : float = 0

    def __post_init__(self):
        Primitive.__post_init__(self)
        if len(self.coords) != 2*(self.length+1):
            raise MacroEvaluationError(f'Outline with {self.length} vertices needs {self.length+1} coordinate pairs, '
                                       f'got {len(self.coords)/2:g}')
        if not all(math.isclose(a, b, abs_tol=1e-9) for a, b in zip(self.coords[-2:], self.coords[:2])):
            raise MacroEvaluationError('Last point of outline primitive must equal its first point')

    @property
    def points(self):
        for x, y in zip(self.coords[0::2], self.coords[1::2]):
            yield x, y

    @classmethod
    def from_arglist(kls, arglist):
        if len(arglist) < 2:
            raise MacroEvaluationError(f'Outline primitive needs at least an exposure and a vertex count')

        exposure, length, *rest = arglist
        if not float(length).is_integer() or length < 3:
            raise MacroEvaluationError(f'Outline vertex count must be an integer >= 3, not {length:g}')
        length = int(length)

        # rotation is mandatory by spec, but some generators leave it out.
        if len(rest) == 2*(length+1) + 1:
            *coords, rotation = rest
        else:
            coords, rotation = rest, 0
        return kls(exposure, length, tuple(coords), rotation)

    def __str__(self):
        return f'<Outline {self.length} vertices>'


@dataclass(frozen=True, slots=True)
class Polygon(Primitive):
    code = 5
    exposure : float
    n_vertices : int
    # center x/y
    x : float
    y : float
    diameter : float
    rotation : float = 0

    def __post_init__(self):
        Primitive.__post_init__(self)
        if not float(self.n_vertices).is_integer() or not 3 <= self.n_vertices <= 12:
            raise MacroEvaluationError(f'Polygon vertex count must be an integer from 3 to 12, not {self.n_vertices:g}')


@dataclass(frozen=True, slots=True)
class Moire(Primitive):
    """ Deprecated, but still found in some really old gerber files. """
    code = 6
    deprecated = True
    # center x/y
    x : float
    y : float
    d_outer : float
    line_thickness : float
    gap_w : float
    num_circles : int
    crosshair_thickness : float = 0
    crosshair_length : float = 0
    rotation : float = 0


@dataclass(frozen=True, slots=True)
class Thermal(Primitive):
    code = 7
    # center x/y
    x : float
    y : float
    d_outer : float
    d_inner : float
    gap_w : float
    rotation : float = 0

    def __post_init__(self):
        if self.d_inner >= self.d_outer:
            raise MacroEvaluationError('Thermal inner diameter must be smaller than its outer diameter')


PRIMITIVE_CLASSES = {
    cls.code: cls for cls in [
        Circle,
        LegacyVectorLine,
        Outline,
        Polygon,
        Moire,
        Thermal,
        VectorLine,
        CenterLine,
        LowerLeftLine,
    ]}
