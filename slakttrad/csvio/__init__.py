"""CSV import and export of people and relations."""

from slakttrad.csvio.export import export_file_names, people_csv, relations_csv
from slakttrad.csvio.people import (
    PersonImportPreview,
    PersonImportRow,
    commit_people,
    preview_people_csv,
)
from slakttrad.csvio.relations import (
    RelationImportPreview,
    RelationImportRow,
    commit_relations,
    count_importable,
    importable_rows,
    match_names,
    preview_relations_csv,
)
from slakttrad.csvio.table import (
    normalize_header,
    parse_csv,
    read_csv_file,
    safe_file_slug,
    to_csv,
)

__all__ = [
    "parse_csv",
    "read_csv_file",
    "normalize_header",
    "to_csv",
    "safe_file_slug",
    "PersonImportRow",
    "PersonImportPreview",
    "preview_people_csv",
    "commit_people",
    "RelationImportRow",
    "RelationImportPreview",
    "preview_relations_csv",
    "match_names",
    "importable_rows",
    "count_importable",
    "commit_relations",
    "export_file_names",
    "people_csv",
    "relations_csv",
]
