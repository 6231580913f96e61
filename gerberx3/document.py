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
gerberx3.document
=================
**Parsed Gerber document and the graphic items it is made of**

A :py:class:`.Document` is what :py:func:`gerberx3.parse` returns. Its :py:attr:`~.Document.items` are, in file order,
the aperture and macro definitions, attribute records and resolved graphic items (moves, flashes, lines, arcs, regions
and step and repeat blocks) of the file.
"""

import math
from types import MappingProxyType
from dataclasses import dataclass, field, replace, KW_ONLY

from .utils import Polarity, Mirroring, LengthUnit
from .diagnostics import SourcePosition, Severity
from .apertures import BlockAperture


@dataclass(frozen=True, slots=True)
class ApertureTransform:
    """ Aperture transformation from the ``LM``, ``LR`` and ``LS`` commands in effect when an object was created. """
    mirroring: Mirroring = Mirroring.NONE
    #: Rotation in degree counter-clockwise
    rotation: float = 0.0
    scale: float = 1.0

    @property
    def is_identity(self):
        return self.mirroring == Mirroring.NONE and self.rotation == 0 and self.scale == 1


@dataclass(frozen=True, slots=True)
class GraphicObject:
    """ Base class of all resolved graphic items. Coordinates are in :py:attr:`unit` units. """
    _ : KW_ONLY
    polarity: Polarity = Polarity.DARK
    unit: LengthUnit = None
    #: ``(name, values)`` tuples of the ``TO`` object attributes in effect when this object was created.
    attrs: tuple = ()
    position: SourcePosition = field(default=None, compare=False)

    @property
    def polarity_dark(self):
        return self.polarity == Polarity.DARK

    def offset(self, dx, dy):
        """ Return a copy of this object moved by ``(dx, dy)``. """
        raise NotImplementedError()


@dataclass(frozen=True, slots=True)
class Move:
    """ ``D02`` move of the current point. Not a graphic object, but kept so the item sequence mirrors the file. """
    x: float
    y: float
    _ : KW_ONLY
    unit: LengthUnit = None
    position: SourcePosition = field(default=None, compare=False)

    def offset(self, dx, dy):
        return replace(self, x=self.x+dx, y=self.y+dy)


@dataclass(frozen=True, slots=True)
class Flash(GraphicObject):
    """ A flash "stamps" an aperture at a location. """
    x: float
    y: float
    #: Flashed :py:class:`.Aperture`
    aperture: object
    transform: ApertureTransform = ApertureTransform()

    def offset(self, dx, dy):
        return replace(self, x=self.x+dx, y=self.y+dy)

    @property
    def primitives(self):
        """ The flashed aperture's shape as numeric aperture macro primitives, relative to the flash point. """
        return self.aperture.primitives

    @property
    def objects(self):
        """ For flashes of block apertures, the block's objects moved to the flash point. Empty otherwise. """
        if not isinstance(self.aperture, BlockAperture):
            return ()
        return tuple(obj.offset(self.x, self.y) for obj in self.aperture.objects)


@dataclass(frozen=True, slots=True)
class Line(GraphicObject):
    """ Straight line segment from ``(x1, y1)`` to ``(x2, y2)``. Inside regions, :py:attr:`aperture` is ``None``. """
    x1: float
    y1: float
    x2: float
    y2: float
    aperture: object = None
    transform: ApertureTransform = ApertureTransform()

    @property
    def p1(self):
        return self.x1, self.y1

    @property
    def p2(self):
        return self.x2, self.y2

    @property
    def primitives(self):
        return self.aperture.primitives if self.aperture is not None else ()

    def offset(self, dx, dy):
        return replace(self, x1=self.x1+dx, y1=self.y1+dy, x2=self.x2+dx, y2=self.y2+dy)

    def curve_length(self):
        return math.dist(self.p1, self.p2)


@dataclass(frozen=True, slots=True)
class Arc(GraphicObject):
    """ Circular arc from ``(x1, y1)`` to ``(x2, y2)`` around a center given relative to the start point.

    .. note:: Gerber arcs are over-determined. For arcs read from a file, the distance of start and end point from the
              center can easily differ by the file's coordinate resolution.
    """
    x1: float
    y1: float
    x2: float
    y2: float
    #: X coordinate of arc center relative to ``x1``
    cx: float
    #: Y coordinate of arc center relative to ``y1``
    cy: float
    clockwise: bool
    aperture: object = None
    transform: ApertureTransform = ApertureTransform()

    @property
    def p1(self):
        return self.x1, self.y1

    @property
    def p2(self):
        return self.x2, self.y2

    @property
    def center(self):
        return self.x1 + self.cx, self.y1 + self.cy

    @property
    def primitives(self):
        return self.aperture.primitives if self.aperture is not None else ()

    def offset(self, dx, dy):
        return replace(self, x1=self.x1+dx, y1=self.y1+dy, x2=self.x2+dx, y2=self.y2+dy)

    def numeric_error(self):
        """ Absolute difference between start and end radius. """
        return abs(math.dist(self.center, self.p1) - math.dist(self.center, self.p2))

    def sweep_angle(self):
        """ Sweep angle of this arc in radians, always positive. Full circles have a sweep angle of 2*pi. """
        cx, cy = self.center
        a1 = math.atan2(self.y1 - cy, self.x1 - cx)
        a2 = math.atan2(self.y2 - cy, self.x2 - cx)
        sweep = (a1 - a2) if self.clockwise else (a2 - a1)
        sweep %= 2*math.pi
        return sweep or 2*math.pi


@dataclass(frozen=True, slots=True)
class Region(GraphicObject):
    """ Gerber region created by a ``G36`` / ``G37`` pair. A region is a filled area without an aperture. Each contour
    is a tuple of :py:class:`.Line` and :py:class:`.Arc` segments without aperture, and a new contour is started by
    every ``D02`` inside the region.
    """
    contours: tuple = ()

    def __len__(self):
        return len(self.contours)

    def __str__(self):
        return f'<Region with {len(self.contours)} contours, {sum(map(len, self.contours))} segments>'

    def offset(self, dx, dy):
        return replace(self, contours=tuple(
            tuple(seg.offset(dx, dy) for seg in contour)
            for contour in self.contours))


@dataclass(frozen=True, slots=True)
class StepRepeatBlock:
    """ Items enclosed by an ``SR`` step and repeat block. The block is stored once; :py:meth:`copies` and
    :py:meth:`.Document.flatten` replay it.
    """
    x_repeat: int
    y_repeat: int
    #: Step distance along X between copies, in file units.
    x_step: float
    #: Step distance along Y between copies, in file units.
    y_step: float
    items: tuple = ()
    _ : KW_ONLY
    position: SourcePosition = field(default=None, compare=False)

    @property
    def offsets(self):
        # X index is the outer loop
        for nx in range(self.x_repeat):
            for ny in range(self.y_repeat):
                yield nx*self.x_step, ny*self.y_step

    def copies(self):
        """ Iterate over all items of all copies of this block, offset to their final positions. """
        for dx, dy in self.offsets:
            for item in self.items:
                yield item.offset(dx, dy)

    def offset(self, dx, dy):
        return replace(self, items=tuple(item.offset(dx, dy) for item in self.items))


@dataclass(frozen=True)
class Document:
    """ Result of parsing one Gerber file. Documents are immutable, their tables are read-only mappings. """
    #: Top-level items in file order: :py:class:`.Aperture` and :py:class:`.ApertureMacro` definitions, attribute
    #: commands, :py:class:`.Move`, :py:class:`.Flash`, :py:class:`.Line`, :py:class:`.Arc`, :py:class:`.Region` and
    #: :py:class:`.StepRepeatBlock`.
    items: tuple = ()
    #: Every statement that could be parsed, as :py:class:`~.commands.Command`, in file order.
    commands: tuple = ()
    #: Aperture number to :py:class:`.Aperture`
    apertures: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    #: Macro name to :py:class:`.ApertureMacro`
    macros: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    #: ``TF`` file attribute name to tuple of values
    file_attributes: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    #: Snapshot of the :py:class:`.GraphicsState` after the last statement.
    graphics_state: object = None
    diagnostics: tuple = ()
    filename: str = field(default=None, compare=False)

    @property
    def unit(self):
        return self.graphics_state.unit if self.graphics_state else None

    @property
    def format(self):
        return self.graphics_state.format if self.graphics_state else None

    @property
    def objects(self):
        """ Top-level graphic objects, i.e. :py:attr:`items` without definitions, attributes and moves. Step and repeat
        blocks are returned as-is. """
        return tuple(item for item in self.items if isinstance(item, (GraphicObject, StepRepeatBlock)))

    @property
    def errors(self):
        return tuple(diag for diag in self.diagnostics if diag.severity == Severity.ERROR)

    @property
    def warnings(self):
        return tuple(diag for diag in self.diagnostics if diag.severity == Severity.WARNING)

    def flatten(self):
        """ Return all graphic objects of this document with step and repeat blocks replayed.

        :rtype: tuple of :py:class:`.GraphicObject`
        """
        out = []
        for obj in self.objects:
            if isinstance(obj, StepRepeatBlock):
                out.extend(item for item in obj.copies() if isinstance(item, GraphicObject))
            else:
                out.append(obj)
        return tuple(out)

    def __str__(self):
        return f'<Document {self.filename or ""} {len(self.items)} items, {len(self.apertures)} apertures, ' \
               f'{len(self.diagnostics)} diagnostics>'


class DocumentBuilder:
    """ Accumulates definitions, attributes and items while the graphics state tracker works through a file.

    Items are appended to the innermost open capture frame. Frames are opened by ``SR`` step and repeat blocks and by
    ``AB`` block apertures.
    """

    def __init__(self):
        self.commands = []
        self.apertures = {}
        self.macros = {}
        self.macro_positions = {}
        self.file_attributes = {}
        self._frames = [(None, [])]

    def add_command(self, command):
        self.commands.append(command)

    def add_item(self, item):
        self._frames[-1][1].append(item)

    def add_definition(self, item):
        """ Definitions and attribute records always go to the top level, even inside SR or AB blocks. """
        self._frames[0][1].append(item)

    def define_aperture(self, aperture):
        """ Register an aperture. Returns ``False`` and leaves the table as-is if the number is taken. """
        if aperture.number in self.apertures:
            return False
        self.apertures[aperture.number] = aperture
        self.add_definition(aperture)
        return True

    def define_macro(self, macro, position=None):
        """ Register an aperture macro. Returns ``False`` and leaves the table as-is if the name is taken. """
        if macro.name in self.macros:
            return False
        self.macros[macro.name] = macro
        self.macro_positions[macro.name] = position
        self.add_definition(macro)
        return True

    def set_file_attribute(self, name, values):
        self.file_attributes[name] = values

    @property
    def open_frame(self):
        """ ``None`` at top level, else the :py:class:`~.commands.StepRepeat` or :py:class:`~.commands.ApertureBlock`
        command that opened the innermost frame. """
        return self._frames[-1][0]

    @property
    def frame_depth(self):
        return len(self._frames) - 1

    def open_frame_with(self, command):
        self._frames.append((command, []))

    def close_step_repeat(self):
        sr, items = self._frames.pop()
        block = StepRepeatBlock(sr.x_repeat, sr.y_repeat, sr.x_step, sr.y_step, tuple(items), position=sr.position)
        self.add_item(block)
        return block

    def close_aperture_block(self, unit=None, attrs=()):
        """ Close the innermost ``AB`` frame and return its :py:class:`.BlockAperture`. The caller defines it. """
        ab, items = self._frames.pop()
        return BlockAperture(tuple(items), number=ab.number, unit=unit, attrs=attrs)

    def build(self, graphics_state, diagnostics, filename=None):
        if self.frame_depth:
            raise ValueError('Document built while a step and repeat or block aperture is still open')

        return Document(
                items=tuple(self._frames[0][1]),
                commands=tuple(self.commands),
                apertures=MappingProxyType(dict(self.apertures)),
                macros=MappingProxyType(dict(self.macros)),
                file_attributes=MappingProxyType(dict(self.file_attributes)),
                graphics_state=graphics_state,
                diagnostics=tuple(diagnostics),
                filename=filename)
