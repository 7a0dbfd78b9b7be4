"""
Icon Synthesizer - small composite vector glyphs.

Each icon is a fixed recipe of 2-4 primitive shapes anchored at (x, y) inside
a 0.8 x 0.8 inch box. Deterministic, no failure mode.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

from typing import Callable, Dict, List

from slideforge_core.deck.models import IconKind, PrimitiveShape, ShapeKind

ICON_SIZE = 0.8
WHITE = "FFFFFF"

# Corner radius hints (rounded rectangles)
_BACKDROP_RADIUS = 4
_DETAIL_RADIUS = 2


def _rounded(x, y, w, h, color, radius=_BACKDROP_RADIUS) -> PrimitiveShape:
    return PrimitiveShape(ShapeKind.RECTANGLE, round(x, 4), round(y, 4), round(w, 4), round(h, 4),
                          fill=color, radius=radius)


def _circle(x, y, size, color) -> PrimitiveShape:
    return PrimitiveShape(ShapeKind.CIRCLE, round(x, 4), round(y, 4), size, size, fill=color)


def _chart(color: str, x: float, y: float) -> List[PrimitiveShape]:
    shapes = [_rounded(x, y, ICON_SIZE, ICON_SIZE, color)]
    for i in range(3):
        shapes.append(_rounded(x + 0.1 + i * 0.15, y + 0.4 - i * 0.1, 0.1, 0.2 + i * 0.1,
                               WHITE, _DETAIL_RADIUS))
    return shapes


def _people(color: str, x: float, y: float) -> List[PrimitiveShape]:
    return [
        _circle(x, y, ICON_SIZE, color),
        _circle(x + 0.1, y + 0.2, 0.2, WHITE),
        _rounded(x + 0.05, y + 0.4, 0.3, 0.3, WHITE, _DETAIL_RADIUS),
    ]


def _idea(color: str, x: float, y: float) -> List[PrimitiveShape]:
    return [
        _circle(x, y, ICON_SIZE, color),
        _rounded(x + 0.2, y + 0.6, 0.2, 0.1, WHITE, _DETAIL_RADIUS),
    ]


def _target(color: str, x: float, y: float) -> List[PrimitiveShape]:
    return [
        _circle(x, y, ICON_SIZE, color),
        _circle(x + 0.1, y + 0.1, 0.6, WHITE),
        _circle(x + 0.2, y + 0.2, 0.4, color),
    ]


def _check(color: str, x: float, y: float) -> List[PrimitiveShape]:
    return [
        _circle(x, y, ICON_SIZE, color),
        PrimitiveShape(ShapeKind.LINE, round(x + 0.15, 4), round(y + 0.3, 4), 0.2, 0.1,
                       fill=WHITE, line_width=3),
        PrimitiveShape(ShapeKind.LINE, round(x + 0.25, 4), round(y + 0.4, 4), 0.1, 0.2,
                       fill=WHITE, line_width=3),
    ]


def _list(color: str, x: float, y: float) -> List[PrimitiveShape]:
    shapes = [_rounded(x, y, ICON_SIZE, ICON_SIZE, color)]
    for i in range(3):
        shapes.append(_rounded(x + 0.1, y + 0.1 + i * 0.15, 0.6, 0.05, WHITE, _DETAIL_RADIUS))
    return shapes


def _briefcase(color: str, x: float, y: float) -> List[PrimitiveShape]:
    return [
        _rounded(x, y, ICON_SIZE, ICON_SIZE, color),
        _rounded(x + 0.1, y + 0.1, 0.6, 0.4, WHITE, _DETAIL_RADIUS),
        _rounded(x + 0.15, y + 0.05, 0.5, 0.1, WHITE, _DETAIL_RADIUS),
    ]


_RECIPES: Dict[IconKind, Callable[[str, float, float], List[PrimitiveShape]]] = {
    IconKind.CHART: _chart,
    IconKind.PEOPLE: _people,
    IconKind.IDEA: _idea,
    IconKind.TARGET: _target,
    IconKind.CHECK: _check,
    IconKind.LIST: _list,
    IconKind.DEFAULT: _briefcase,
}


def synthesize_icon(kind: IconKind, color: str, x: float, y: float) -> List[PrimitiveShape]:
    """
    Shapes for one icon, backdrop first.

    Args:
        kind: Icon kind (unknown values render as the default briefcase)
        color: Backdrop color (hex); details are white
        x, y: Anchor (top-left of the 0.8 x 0.8 box), inches

    Returns:
        Ordered primitive shapes, every origin within [anchor, anchor + 0.8]
    """
    recipe = _RECIPES.get(kind, _briefcase)
    return recipe(color, x, y)
