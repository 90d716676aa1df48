"""
2D drawing surfaces for the relationship diagram.

A DrawingSurface exposes the handful of primitives the diagram needs, plus a
`resized` signal fired whenever its pixel dimensions change.
"""
from html import escape

from blinker import Signal


class DrawingSurface:
    """Base class for 2D drawing targets. Subclasses implement the primitives."""

    def __init__(self, width, height):
        self.width = width
        self.height = height
        # Per-instance signal: receivers are called with the surface as sender
        self.resized = Signal()

    def resize(self, width, height):
        if (width, height) == (self.width, self.height):
            return
        self.width = width
        self.height = height
        self.resized.send(self)

    def clear(self):
        raise NotImplementedError

    def draw_circle(self, x, y, radius, fill, stroke, line_width=2):
        raise NotImplementedError

    def draw_line(self, x1, y1, x2, y2, color, line_width=2):
        raise NotImplementedError

    def draw_filled_polygon(self, points, fill):
        raise NotImplementedError

    def draw_text(self, text, x, y, color, font_size=12, font_family='sans-serif'):
        raise NotImplementedError


def _num(value):
    return f"{value:.2f}".rstrip('0').rstrip('.')


class SvgSurface(DrawingSurface):
    """Accumulates primitives as SVG elements; `to_svg()` returns the document."""

    def __init__(self, width, height, background=None):
        super().__init__(width, height)
        self.background = background
        self.elements = []

    def clear(self):
        self.elements = []

    def draw_circle(self, x, y, radius, fill, stroke, line_width=2):
        self.elements.append(
            f'<circle cx="{_num(x)}" cy="{_num(y)}" r="{_num(radius)}" fill="{fill}" '
            f'stroke="{stroke}" stroke-width="{_num(line_width)}" />'
        )

    def draw_line(self, x1, y1, x2, y2, color, line_width=2):
        self.elements.append(
            f'<line x1="{_num(x1)}" y1="{_num(y1)}" x2="{_num(x2)}" y2="{_num(y2)}" '
            f'stroke="{color}" stroke-width="{_num(line_width)}" />'
        )

    def draw_filled_polygon(self, points, fill):
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in points)
        self.elements.append(f'<polygon points="{coords}" fill="{fill}" />')

    def draw_text(self, text, x, y, color, font_size=12, font_family='sans-serif'):
        self.elements.append(
            f'<text x="{_num(x)}" y="{_num(y)}" fill="{color}" font-size="{font_size}" '
            f'font-family="{font_family}" text-anchor="middle" dominant-baseline="middle">'
            f'{escape(str(text))}</text>'
        )

    def to_svg(self):
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}">',
        ]
        if self.background:
            lines.append(f'  <rect x="0" y="0" width="{self.width}" height="{self.height}" fill="{self.background}" />')
        lines.extend(f"  {element}" for element in self.elements)
        lines.append('</svg>')
        return "\n".join(lines) + "\n"
