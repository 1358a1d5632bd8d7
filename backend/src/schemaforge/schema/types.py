"""Typed schema document model.

A schema document is parsed once into these dataclasses and never
mutated afterwards. Relationship declarations are resolved into one
dataclass per kind at load time so engines never re-parse the raw
``type`` string.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RelationshipKind(Enum):
    """Supported relationship kinds."""

    MANY_TO_MANY = "many_to_many"
    BELONGS_TO_MANY_THROUGH = "belongs_to_many_through"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any, default: "SortDirection | None" = None) -> "SortDirection":
        """Parse 'asc'/'desc' (any case); anything else yields the default."""
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return default or cls.ASC


# Logical actions a schema may guard with an access-check identifier
PERMISSION_ACTIONS = ("read", "create", "update", "delete")


@dataclass(frozen=True)
class FieldDescriptor:
    """One declared field and its capability flags."""

    name: str
    type: str = "string"
    label: str = ""
    sortable: bool = False
    filterable: bool = False
    searchable: bool = False
    listable: bool = True
    editable: bool = True
    viewable: bool = True
    required: bool = False
    readonly: bool = False
    filter_type: str | None = None
    show_in: tuple[str, ...] = ()
    default: Any = None
    description: str | None = None
    placeholder: str | None = None
    width: Any = None
    validation: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Render back to the document's field shape."""
        data: dict[str, Any] = {
            "type": self.type,
            "label": self.label,
            "sortable": self.sortable,
            "filterable": self.filterable,
            "searchable": self.searchable,
            "listable": self.listable,
            "editable": self.editable,
            "viewable": self.viewable,
            "required": self.required,
            "readonly": self.readonly,
            "show_in": list(self.show_in),
        }
        optional = {
            "filter_type": self.filter_type,
            "default": self.default,
            "description": self.description,
            "placeholder": self.placeholder,
            "width": self.width,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.validation:
            data["validation"] = dict(self.validation)
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class DetailDeclaration:
    """A one-to-many child collection shown with (and cascaded from) the parent."""

    model: str
    foreign_key: str
    list_fields: tuple[str, ...] = ()
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "model": self.model,
            "foreign_key": self.foreign_key,
            "list_fields": list(self.list_fields),
        }
        if self.title:
            data["title"] = self.title
        return data


@dataclass(frozen=True)
class ManyToManyRelationship:
    """Parent and related entity linked through a pivot table.

    Attributes:
        name: Logical relationship name
        model: Related entity name
        pivot_table: Join table holding the key pairs
        foreign_key: Pivot column referencing the parent
        related_key: Pivot column referencing the related entity
    """

    name: str
    model: str
    pivot_table: str
    foreign_key: str
    related_key: str
    title: str | None = None

    @property
    def kind(self) -> RelationshipKind:
        return RelationshipKind.MANY_TO_MANY

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.kind.value,
            "model": self.model,
            "pivot_table": self.pivot_table,
            "foreign_key": self.foreign_key,
            "related_key": self.related_key,
        }
        if self.title:
            data["title"] = self.title
        return data


@dataclass(frozen=True)
class ThroughRelationship:
    """Related entity reached through one intermediate entity.

    Attributes:
        name: Logical relationship name
        model: Related entity name
        through: Intermediate entity name
        through_key: Intermediate column referencing the parent
        foreign_key: Related-table column referencing the intermediate's primary key
    """

    name: str
    model: str
    through: str
    through_key: str
    foreign_key: str
    title: str | None = None

    @property
    def kind(self) -> RelationshipKind:
        return RelationshipKind.BELONGS_TO_MANY_THROUGH

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.kind.value,
            "model": self.model,
            "through": self.through,
            "through_key": self.through_key,
            "foreign_key": self.foreign_key,
        }
        if self.title:
            data["title"] = self.title
        return data


Relationship = ManyToManyRelationship | ThroughRelationship


@dataclass(frozen=True)
class SchemaDocument:
    """A resolved, immutable schema document for one entity."""

    model: str
    table: str
    fields: dict[str, FieldDescriptor]
    primary_key: str = "id"
    title: str | None = None
    singular_title: str | None = None
    description: str | None = None
    title_field: str | None = None
    connection: str | None = None
    default_sort: tuple[tuple[str, SortDirection], ...] = ()
    permissions: dict[str, str] = field(default_factory=dict)
    soft_delete: bool = False
    deleted_at: str = "deleted_at"
    timestamps: bool = True
    details: tuple[DetailDeclaration, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    # -- field capability sets -------------------------------------------

    def field_names(self) -> list[str]:
        return list(self.fields)

    def sortable_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.sortable]

    def filterable_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.filterable]

    def searchable_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.searchable]

    def listable_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.listable]

    def editable_fields(self) -> list[str]:
        return [
            name for name, f in self.fields.items()
            if f.editable and not f.readonly and name != self.primary_key
        ]

    def required_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.required]

    # -- lookups -----------------------------------------------------------

    def get_relationship(self, name: str) -> Relationship | None:
        for relationship in self.relationships:
            if relationship.name == name:
                return relationship
        return None

    def get_detail(self, model: str) -> DetailDeclaration | None:
        for detail in self.details:
            if detail.model == model:
                return detail
        return None

    @property
    def display_title(self) -> str:
        return self.title or self.model.capitalize()

    def to_dict(self) -> dict[str, Any]:
        """Render the normalized document in its JSON shape."""
        data: dict[str, Any] = {
            "model": self.model,
            "table": self.table,
            "primary_key": self.primary_key,
            "title": self.display_title,
            "fields": {name: f.to_dict() for name, f in self.fields.items()},
            "default_sort": {name: d.value for name, d in self.default_sort},
            "permissions": dict(self.permissions),
            "soft_delete": self.soft_delete,
            "timestamps": self.timestamps,
            "details": [d.to_dict() for d in self.details],
            "relationships": [r.to_dict() for r in self.relationships],
        }
        for key in ("singular_title", "description", "title_field", "connection"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ContextProjection:
    """A read-only view of a schema document for one usage context.

    ``context`` is the requested context string. When the context is
    unknown (or ``full``) ``is_full`` is set and ``fields`` holds every
    field. For a comma-separated request, ``contexts`` holds one
    projection per recognised context and ``fields`` is empty.
    """

    model: str
    context: str | None
    primary_key: str
    title: str
    fields: dict[str, FieldDescriptor] = field(default_factory=dict)
    field_keys: tuple[str, ...] = ()
    permissions: dict[str, str] = field(default_factory=dict)
    default_sort: tuple[tuple[str, SortDirection], ...] = ()
    details: tuple[DetailDeclaration, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    contexts: dict[str, "ContextProjection"] = field(default_factory=dict)
    is_full: bool = False
    document: SchemaDocument | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        if self.is_full and self.document is not None:
            return self.document.to_dict()

        data: dict[str, Any] = {
            "model": self.model,
            "title": self.title,
            "primary_key": self.primary_key,
        }
        if self.permissions:
            data["permissions"] = dict(self.permissions)
        if self.contexts:
            data["contexts"] = {
                name: projection._section_dict()
                for name, projection in self.contexts.items()
            }
            return data
        data.update(self._section_dict())
        return data

    def _section_dict(self) -> dict[str, Any]:
        section: dict[str, Any] = {}
        if self.context == "meta":
            return section
        section["fields"] = {
            name: _pick(f.to_dict(), self.field_keys) for name, f in self.fields.items()
        }
        if self.context == "list":
            section["default_sort"] = {name: d.value for name, d in self.default_sort}
        if self.details:
            section["details"] = [d.to_dict() for d in self.details]
        if self.relationships:
            section["relationships"] = [r.to_dict() for r in self.relationships]
        return section


def _pick(data: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    if not keys:
        return data
    return {k: data[k] for k in keys if k in data}
