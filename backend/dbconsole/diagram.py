"""
Relationship diagram: tables laid out evenly on a circle, one arrow per foreign key.

The geometry (compute_layout, edge_geometry) is pure and has no knowledge of
drawing; render() turns it into DrawingSurface calls.
"""
import math
from collections import namedtuple
from contextlib import contextmanager

from .models import TablePosition

NODE_RADIUS = 40
ARROW_SIZE = 10
ARROW_ANGLE = math.pi / 6
LAYOUT_RADIUS_FACTOR = 0.7

NODE_FILL = "#f1f5f9"
NODE_STROKE = "#94a3b8"
LABEL_COLOR = "#0f172a"
EDGE_COLOR = "#3b82f6"
LINE_WIDTH = 2
FONT_SIZE = 12

EdgeGeometry = namedtuple('EdgeGeometry', ['start', 'end', 'arrow'])


def unique_tables(relationships):
    """Table names in first-seen order: every source table, then every target table."""
    seen = {}
    for rel in relationships:
        seen.setdefault(rel.table_name, None)
    for rel in relationships:
        seen.setdefault(rel.foreign_table, None)
    return list(seen)


def compute_layout(table_names, width, height):
    """
    Places each table on a circle around the canvas center.

    Radius is 0.7 * min(width, height) / 2; the table at index i of n sits at
    angle 2*pi*i/n. Returns a dict of table name -> TablePosition in input order.
    """
    names = list(table_names)
    if not names:
        return {}

    center_x = width / 2
    center_y = height / 2
    radius = min(center_x, center_y) * LAYOUT_RADIUS_FACTOR
    count = len(names)

    positions = {}
    for index, name in enumerate(names):
        angle = (index / count) * math.pi * 2
        positions[name] = TablePosition(
            table_name=name,
            x=center_x + radius * math.cos(angle),
            y=center_y + radius * math.sin(angle),
        )
    return positions


def edge_geometry(source, target, node_radius=NODE_RADIUS, arrow_size=ARROW_SIZE):
    """
    Line endpoints on the two node boundaries plus the arrowhead triangle at the target.

    Returns an EdgeGeometry(start, end, arrow) of (x, y) tuples, or None when
    source and target coincide (no direction to draw along).
    """
    dx = target.x - source.x
    dy = target.y - source.y
    distance = math.hypot(dx, dy)
    if distance == 0:
        return None

    nx = dx / distance
    ny = dy / distance
    start = (source.x + nx * node_radius, source.y + ny * node_radius)
    end = (target.x - nx * node_radius, target.y - ny * node_radius)

    angle = math.atan2(ny, nx)
    arrow = (
        end,
        (end[0] - arrow_size * math.cos(angle - ARROW_ANGLE), end[1] - arrow_size * math.sin(angle - ARROW_ANGLE)),
        (end[0] - arrow_size * math.cos(angle + ARROW_ANGLE), end[1] - arrow_size * math.sin(angle + ARROW_ANGLE)),
    )
    return EdgeGeometry(start=start, end=end, arrow=arrow)


def render(surface, positions, relationships):
    """Draws nodes, then edges, onto `surface`. Edges naming unknown tables are skipped."""
    surface.clear()

    for name, position in positions.items():
        surface.draw_circle(position.x, position.y, NODE_RADIUS, NODE_FILL, NODE_STROKE, LINE_WIDTH)
        surface.draw_text(name, position.x, position.y, LABEL_COLOR, FONT_SIZE)

    for rel in relationships:
        source = positions.get(rel.table_name)
        target = positions.get(rel.foreign_table)
        if source is None or target is None:
            continue
        edge = edge_geometry(source, target)
        if edge is None:
            continue
        surface.draw_line(edge.start[0], edge.start[1], edge.end[0], edge.end[1], EDGE_COLOR, LINE_WIDTH)
        surface.draw_filled_polygon(edge.arrow, EDGE_COLOR)


class RelationshipDiagram:
    """
    A relationship diagram bound to at most one surface at a time.

    While attached, every `resized` signal of the surface triggers a full
    relayout and redraw.
    """

    def __init__(self, relationships, tables=None):
        self.relationships = list(relationships)
        self.tables = list(tables) if tables is not None else unique_tables(self.relationships)
        self.surface = None

    def draw(self, surface):
        positions = compute_layout(self.tables, surface.width, surface.height)
        render(surface, positions, self.relationships)
        return positions

    def _on_resize(self, surface):
        self.draw(surface)

    @contextmanager
    def attach(self, surface):
        if self.surface is not None:
            raise RuntimeError("Diagram is already attached to a surface")
        self.surface = surface
        surface.resized.connect(self._on_resize, weak=False)
        try:
            self.draw(surface)
            yield surface
        finally:
            surface.resized.disconnect(self._on_resize)
            self.surface = None
