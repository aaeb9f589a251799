"""Family tree API endpoints."""

import logging

from quart import Blueprint, jsonify

from slakttrad.backend.api.common import current_user, get_db, parse_body, require_auth
from slakttrad.matching import full_name
from slakttrad.relation_types import relation_color, relation_label
from slakttrad.schemas import TreeInput

logger = logging.getLogger(__name__)

trees_bp = Blueprint("trees", __name__)


@trees_bp.route("/trees", methods=["GET"])
@require_auth
async def list_trees():
    """Get the user's trees, newest first."""
    trees = get_db().list_trees(current_user().id)
    return jsonify([tree.to_dict() for tree in trees])


@trees_bp.route("/trees", methods=["POST"])
@require_auth
async def create_tree():
    """Create a tree.

    Expects JSON body with:
        - name: Tree name
    """
    body = await parse_body(TreeInput)
    tree = get_db().create_tree(current_user().id, body.name)
    logger.info("User %s created tree %s", current_user().id, tree.id)
    return jsonify(tree.to_dict()), 201


@trees_bp.route("/trees/<int:tree_id>", methods=["GET"])
@require_auth
async def get_tree(tree_id: int):
    tree = get_db().get_tree(current_user().id, tree_id)
    return jsonify(tree.to_dict())


@trees_bp.route("/trees/<int:tree_id>", methods=["PATCH"])
@require_auth
async def rename_tree(tree_id: int):
    body = await parse_body(TreeInput)
    tree = get_db().rename_tree(current_user().id, tree_id, body.name)
    return jsonify(tree.to_dict())


@trees_bp.route("/trees/<int:tree_id>", methods=["DELETE"])
@require_auth
async def delete_tree(tree_id: int):
    """Delete a tree with all its people and relations."""
    get_db().delete_tree(current_user().id, tree_id)
    logger.info("User %s deleted tree %s", current_user().id, tree_id)
    return jsonify({"ok": True, "id": tree_id})


@trees_bp.route("/trees/<int:tree_id>/map", methods=["GET"])
@require_auth
async def tree_map(tree_id: int):
    """Get map data for a tree.

    Returns:
        JSON with points (people that have a location) and lines (relations
        whose two people both have a location), each line coloured by its
        relation type
    """
    db = get_db()
    user_id = current_user().id
    people = [person.to_dict() for person in db.list_people(user_id, tree_id)]
    relations = db.list_relations(user_id, tree_id)

    located = {
        person["id"]: person
        for person in people
        if person["lat"] is not None and person["lng"] is not None
    }

    points = []
    for person in located.values():
        points.append({
            "person_id": person["id"],
            "name": full_name(person),
            "place_label": person["place_label"],
            "lat": person["lat"],
            "lng": person["lng"],
        })

    lines = []
    for relation in relations:
        a = located.get(relation.from_person_id)
        b = located.get(relation.to_person_id)
        if a is None or b is None:
            continue
        lines.append({
            "relation_id": relation.id,
            "relation_type": relation.relation_type,
            "label": relation_label(relation.relation_type),
            "color": relation_color(relation.relation_type),
            "coordinates": [[a["lat"], a["lng"]], [b["lat"], b["lng"]]],
        })

    return jsonify({
        "points": points,
        "lines": lines,
        "unplaced": len(people) - len(located),
    })
