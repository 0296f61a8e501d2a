"""
Geometry registry for the chart renderer.

Each geometry maps to one draw function ``draw(ax, spec, data)`` returning
the terminal points of highlighted series (an empty list when the geometry
has no inline labels). Adding a geometry means registering a function here,
not editing ``ChartRenderer.render``.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional

from .constants import Geometry

DrawFunction = Callable[..., List[Any]]


class ChartRegistry:
    """Maps geometries to draw functions."""

    def __init__(self):
        self._draw_functions: Dict[Geometry, DrawFunction] = {}

    def register(self, geometry, draw: Optional[DrawFunction] = None, replace: bool = False):
        """
        Register ``draw`` for ``geometry``.

        Usable directly or as a decorator when ``draw`` is omitted.
        Re-registering an existing geometry requires ``replace=True``.
        """
        geometry = Geometry(geometry)

        def _register(func: DrawFunction) -> DrawFunction:
            if geometry in self._draw_functions and not replace:
                raise ValueError(f"Geometry already registered: {geometry.value}")
            self._draw_functions[geometry] = func
            return func

        if draw is None:
            return _register
        return _register(draw)

    def __contains__(self, geometry) -> bool:
        try:
            return Geometry(geometry) in self._draw_functions
        except ValueError:
            return False

    def __iter__(self) -> Iterator[Geometry]:
        return iter(self._draw_functions)

    def registered(self) -> List[str]:
        return sorted(geometry.value for geometry in self._draw_functions)

    def render(self, geometry, **kwargs) -> List[Any]:
        """Draw ``geometry`` with the registered function."""
        try:
            draw = self._draw_functions[Geometry(geometry)]
        except (KeyError, ValueError):
            raise ValueError(
                f"No draw function registered for geometry '{geometry}'. "
                f"Registered: {', '.join(self.registered())}"
            ) from None
        return draw(**kwargs)
