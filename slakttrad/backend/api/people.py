"""People API endpoints."""

from quart import Blueprint, jsonify

from slakttrad.backend.api.common import current_user, get_db, parse_body, require_auth
from slakttrad.schemas import PersonCreate, PersonUpdate

people_bp = Blueprint("people", __name__)


@people_bp.route("/trees/<int:tree_id>/people", methods=["GET"])
@require_auth
async def list_people(tree_id: int):
    """Get the people of a tree in creation order."""
    people = get_db().list_people(current_user().id, tree_id)
    return jsonify([person.to_dict() for person in people])


@people_bp.route("/trees/<int:tree_id>/people", methods=["POST"])
@require_auth
async def create_person(tree_id: int):
    """Add a person to a tree.

    Expects JSON body with:
        - first_name, last_name: required
        - gender: "man", "kvinna" or null
        - birth_year, death_year: integers or null
        - lat, lng, place_label: location, all set or all null

    Returns:
        JSON with the created person (201)
    """
    body = await parse_body(PersonCreate)
    person = get_db().create_person(current_user().id, tree_id, body)
    return jsonify(person.to_dict()), 201


@people_bp.route("/trees/<int:tree_id>/people/<int:person_id>", methods=["GET"])
@require_auth
async def get_person(tree_id: int, person_id: int):
    person = get_db().get_person(current_user().id, tree_id, person_id)
    return jsonify(person.to_dict())


@people_bp.route("/trees/<int:tree_id>/people/<int:person_id>", methods=["PATCH"])
@require_auth
async def update_person(tree_id: int, person_id: int):
    """Update the fields present in the body; the merged person is re-validated."""
    body = await parse_body(PersonUpdate)
    person = get_db().update_person(current_user().id, tree_id, person_id, body)
    return jsonify(person.to_dict())


@people_bp.route("/trees/<int:tree_id>/people/<int:person_id>", methods=["DELETE"])
@require_auth
async def delete_person(tree_id: int, person_id: int):
    """Delete a person and the relations that reference it."""
    get_db().delete_person(current_user().id, tree_id, person_id)
    return jsonify({"ok": True, "id": person_id})
