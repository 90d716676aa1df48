import logging

from flask import Blueprint, Response, current_app, jsonify, request

from db import get_db_client
from .diagram import RelationshipDiagram, unique_tables
from .errors import FetchError
from .surfaces import SvgSurface

logger = logging.getLogger(__name__)

relationships_bp = Blueprint('relationships', __name__)

MAX_DIAGRAM_SIZE = 10000


def fetch_relationships():
    """Foreign keys of the database; a failed fetch counts as no relationships."""
    try:
        return get_db_client().get_table_relationships()
    except FetchError as e:
        logger.error("Error fetching relationships: %s", e.message)
        return []


@relationships_bp.route('/api/relationships', methods=['GET'])
def list_relationships():
    relationships = fetch_relationships()
    return jsonify({
        "relationships": [rel.to_dict() for rel in relationships],
        "tables": unique_tables(relationships),
    }), 200


@relationships_bp.route('/api/relationships/diagram.svg', methods=['GET'])
def relationship_diagram():
    width = request.args.get('width', current_app.config['DIAGRAM_WIDTH'], type=int)
    height = request.args.get('height', current_app.config['DIAGRAM_HEIGHT'], type=int)
    if not (0 < width <= MAX_DIAGRAM_SIZE and 0 < height <= MAX_DIAGRAM_SIZE):
        return jsonify({"error": f"width and height must be between 1 and {MAX_DIAGRAM_SIZE}"}), 400

    diagram = RelationshipDiagram(fetch_relationships())
    surface = SvgSurface(width, height)
    with diagram.attach(surface):
        svg = surface.to_svg()
    return Response(svg, mimetype='image/svg+xml')
