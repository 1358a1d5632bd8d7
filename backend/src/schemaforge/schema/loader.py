"""Load raw schema documents and resolve them into typed SchemaDocuments."""

import logging
from typing import Any

from schemaforge.errors import SchemaNotFoundError, SchemaValidationError
from schemaforge.schema.normalizer import normalize
from schemaforge.schema.store import SchemaStore
from schemaforge.schema.types import (
    DetailDeclaration,
    FieldDescriptor,
    ManyToManyRelationship,
    Relationship,
    RelationshipKind,
    SchemaDocument,
    SortDirection,
    ThroughRelationship,
)
from schemaforge.schema.validator import validate_document

logger = logging.getLogger(__name__)

# Field keys mapped onto FieldDescriptor attributes; everything else lands in `extra`
_FIELD_KEYS = {
    "type", "label", "sortable", "filterable", "searchable", "listable",
    "editable", "viewable", "required", "readonly", "filter_type", "show_in",
    "default", "description", "placeholder", "width", "validation",
}


class SchemaLoader:
    """Turns raw documents from a SchemaStore into validated SchemaDocuments."""

    def __init__(self, store: SchemaStore):
        self.store = store

    def load(self, model: str, connection: str | None = None) -> SchemaDocument:
        """Load, normalize, validate and type one document.

        Raises:
            SchemaNotFoundError: The store has no document for the model.
            SchemaValidationError: The document is malformed.
        """
        raw = self.store.load(model, connection)
        if raw is None:
            raise SchemaNotFoundError(model, connection)

        data = normalize(raw)

        # Document loaded for a connection records it unless it names its own
        if connection is not None and not data.get("connection"):
            data["connection"] = connection

        issues = [i for i in validate_document(data, expected_model=model) if i.severity == "error"]
        if issues:
            raise SchemaValidationError(
                model,
                issues[0].message if len(issues) == 1 else f"{len(issues)} validation errors",
                issues=[str(i) for i in issues],
            )

        return self._resolve_document(data)

    def _resolve_document(self, data: dict[str, Any]) -> SchemaDocument:
        fields = {
            name: self._resolve_field(name, field_data or {})
            for name, field_data in data["fields"].items()
        }

        default_sort = tuple(
            (name, SortDirection.parse(direction))
            for name, direction in (data.get("default_sort") or {}).items()
        )

        return SchemaDocument(
            model=data["model"],
            table=data["table"],
            fields=fields,
            primary_key=data["primary_key"],
            title=data.get("title"),
            singular_title=data.get("singular_title"),
            description=data.get("description"),
            title_field=data.get("title_field"),
            connection=data.get("connection"),
            default_sort=default_sort,
            permissions=dict(data.get("permissions") or {}),
            soft_delete=bool(data.get("soft_delete", False)),
            deleted_at=data.get("deleted_at") or "deleted_at",
            timestamps=bool(data.get("timestamps", True)),
            details=tuple(self._resolve_detail(d) for d in data.get("details") or []),
            relationships=tuple(
                self._resolve_relationship(r) for r in data.get("relationships") or []
            ),
            raw=data,
        )

    def _resolve_field(self, name: str, data: dict[str, Any]) -> FieldDescriptor:
        """Convert a field dict to a FieldDescriptor."""
        readonly = bool(data.get("readonly", False))
        return FieldDescriptor(
            name=name,
            type=data.get("type", "string"),
            label=data.get("label") or self._to_label(name),
            sortable=bool(data.get("sortable", False)),
            filterable=bool(data.get("filterable", False)),
            searchable=bool(data.get("searchable", False)),
            listable=bool(data.get("listable", True)),
            editable=bool(data.get("editable", not readonly)),
            viewable=bool(data.get("viewable", True)),
            required=bool(data.get("required", False)),
            readonly=readonly,
            filter_type=data.get("filter_type"),
            show_in=tuple(data.get("show_in") or ()),
            default=data.get("default"),
            description=data.get("description"),
            placeholder=data.get("placeholder"),
            width=data.get("width"),
            validation=dict(data.get("validation") or {}),
            extra={k: v for k, v in data.items() if k not in _FIELD_KEYS},
        )

    def _resolve_detail(self, data: dict[str, Any]) -> DetailDeclaration:
        return DetailDeclaration(
            model=data["model"],
            foreign_key=data["foreign_key"],
            list_fields=tuple(data.get("list_fields") or ()),
            title=data.get("title"),
        )

    def _resolve_relationship(self, data: dict[str, Any]) -> Relationship:
        """Build the typed declaration for the relationship's kind.

        Required keys have already been checked by the validator.
        """
        kind = RelationshipKind(data["type"])
        name = data["name"]
        model = data.get("model") or name

        if kind is RelationshipKind.MANY_TO_MANY:
            return ManyToManyRelationship(
                name=name,
                model=model,
                pivot_table=data["pivot_table"],
                foreign_key=data["foreign_key"],
                related_key=data["related_key"],
                title=data.get("title"),
            )

        return ThroughRelationship(
            name=name,
            model=model,
            through=data["through"],
            through_key=data["through_key"],
            foreign_key=data["foreign_key"],
            title=data.get("title"),
        )

    def _to_label(self, name: str) -> str:
        """Convert snake_case or camelCase to Title Case."""
        result = []
        for i, char in enumerate(name):
            if char == "_":
                result.append(" ")
                continue
            if char.isupper() and i > 0 and name[i - 1] not in "_ ":
                result.append(" ")
            result.append(char)
        return "".join(result).title()
