"""Relations API endpoints."""

from quart import Blueprint, jsonify

from slakttrad.backend.api.common import current_user, get_db, parse_body, require_auth
from slakttrad.schemas import RelationCreate

relations_bp = Blueprint("relations", __name__)


@relations_bp.route("/trees/<int:tree_id>/relations", methods=["GET"])
@require_auth
async def list_relations(tree_id: int):
    relations = get_db().list_relations(current_user().id, tree_id)
    return jsonify([relation.to_dict() for relation in relations])


@relations_bp.route("/trees/<int:tree_id>/relations", methods=["POST"])
@require_auth
async def create_relation(tree_id: int):
    """Add a relation between two people of the tree.

    Expects JSON body with:
        - from_person_id, to_person_id: two different people of the tree
        - relation_type: catalog key, alias or label (unknown values become "annan")

    Returns:
        JSON with the created relation (201), 409 for a duplicate
    """
    body = await parse_body(RelationCreate)
    relation = get_db().create_relation(current_user().id, tree_id, body)
    return jsonify(relation.to_dict()), 201


@relations_bp.route("/trees/<int:tree_id>/relations/<int:relation_id>", methods=["GET"])
@require_auth
async def get_relation(tree_id: int, relation_id: int):
    relation = get_db().get_relation(current_user().id, tree_id, relation_id)
    return jsonify(relation.to_dict())


@relations_bp.route("/trees/<int:tree_id>/relations/<int:relation_id>", methods=["DELETE"])
@require_auth
async def delete_relation(tree_id: int, relation_id: int):
    get_db().delete_relation(current_user().id, tree_id, relation_id)
    return jsonify({"ok": True, "id": relation_id})
