"""CSV export API endpoints."""

from quart import Blueprint, Response

from slakttrad.backend.api.common import current_user, get_db, require_auth
from slakttrad.csvio import export_file_names, people_csv, relations_csv

export_bp = Blueprint("export", __name__)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content,
        content_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@export_bp.route("/trees/<int:tree_id>/export/people.csv", methods=["GET"])
@require_auth
async def export_people(tree_id: int):
    """Download the people of a tree as CSV."""
    db = get_db()
    user_id = current_user().id
    tree = db.get_tree(user_id, tree_id)
    people = [person.to_dict() for person in db.list_people(user_id, tree_id)]
    filename, _ = export_file_names(tree.name)
    return _csv_response(people_csv(people), filename)


@export_bp.route("/trees/<int:tree_id>/export/relations.csv", methods=["GET"])
@require_auth
async def export_relations(tree_id: int):
    """Download the relations of a tree as CSV, with person names resolved."""
    db = get_db()
    user_id = current_user().id
    tree = db.get_tree(user_id, tree_id)
    people = [person.to_dict() for person in db.list_people(user_id, tree_id)]
    relations = [relation.to_dict() for relation in db.list_relations(user_id, tree_id)]
    _, filename = export_file_names(tree.name)
    return _csv_response(relations_csv(relations, people), filename)
