"""Normalize raw schema documents into one consistent shape.

Accepts the authoring variations found in existing schema files
(ORM-style attribute names, nested ``ui`` blocks, legacy boolean types,
``show_in`` lists vs. visibility flags) and rewrites them in place of a
copy. The result still is a plain dict; typing happens in the loader.
"""

import copy
import re
from typing import Any

# Document-level defaults
DEFAULT_PRIMARY_KEY = "id"
DEFAULT_DELETED_AT = "deleted_at"

_LEGACY_BOOLEAN = re.compile(r"^boolean-(tgl|chk|sel|yn)$")
_BOOLEAN_UI = {"tgl": "toggle", "chk": "checkbox", "sel": "select", "yn": "select"}


def normalize(schema: dict[str, Any]) -> dict[str, Any]:
    """Apply every normalization step, in order, to a copy of the document."""
    schema = copy.deepcopy(schema)
    schema = apply_defaults(schema)
    schema = normalize_orm_attributes(schema)
    schema = normalize_visibility_flags(schema)
    schema = normalize_boolean_types(schema)
    schema = normalize_details(schema)
    return schema


def apply_defaults(schema: dict[str, Any]) -> dict[str, Any]:
    """Fill optional document attributes."""
    schema.setdefault("primary_key", DEFAULT_PRIMARY_KEY)
    schema.setdefault("timestamps", True)
    schema.setdefault("soft_delete", False)
    schema.setdefault("deleted_at", DEFAULT_DELETED_AT)
    if schema.get("model") and not schema.get("table"):
        schema["table"] = schema["model"]
    return schema


def normalize_orm_attributes(schema: dict[str, Any]) -> dict[str, Any]:
    """Map ORM-style field attributes onto the canonical names."""
    fields = schema.get("fields")
    if not isinstance(fields, dict):
        return schema

    for field in fields.values():
        if not isinstance(field, dict):
            continue

        # nullable <-> required
        if "nullable" in field and "required" not in field:
            field["required"] = not field["nullable"]

        if "primaryKey" in field and "primary" not in field:
            field["primary"] = field.pop("primaryKey")

        if "defaultValue" in field and "default" not in field:
            field["default"] = field.pop("defaultValue")

        if "validate" in field and "validation" not in field:
            field["validation"] = field.pop("validate")

        if "unique" in field:
            validation = field.setdefault("validation", {})
            validation.setdefault("unique", field["unique"])

        if "length" in field:
            validation = field.setdefault("validation", {})
            validation.setdefault("length", {"max": field["length"]})

        # readonly also arrives as read_only / readOnly
        for alias in ("read_only", "readOnly"):
            if alias in field and "readonly" not in field:
                field["readonly"] = field.pop(alias)

        ui = field.get("ui")
        if isinstance(ui, dict):
            for key in ("label", "show_in", "sortable", "filterable", "searchable"):
                if key in ui and key not in field:
                    field[key] = ui[key]
            if "widget" in ui and field.get("type") == "boolean":
                field["ui"] = ui["widget"]

    return schema


def normalize_visibility_flags(schema: dict[str, Any]) -> dict[str, Any]:
    """Make ``show_in`` and the listable/editable/viewable flags agree.

    An explicit ``show_in`` list drives the flags. Otherwise the list is
    derived from the flags, which default to true (editable defaults to
    false for readonly fields). Password fields are never shown in the
    detail context.
    """
    fields = schema.get("fields")
    if not isinstance(fields, dict):
        return schema

    for field in fields.values():
        if not isinstance(field, dict):
            continue

        field_type = field.get("type", "string")
        show_in = field.get("show_in")

        if isinstance(show_in, list):
            field["listable"] = "list" in show_in
            field["editable"] = bool({"create", "edit", "form"} & set(show_in))
            field["viewable"] = "detail" in show_in
            continue

        listable = field.get("listable", True)
        editable = field.get("editable", not field.get("readonly", False))
        viewable = field.get("viewable", True)

        show_in = []
        if listable:
            show_in.append("list")
        if editable:
            show_in.extend(["create", "edit"])
        if viewable and field_type != "password":
            show_in.append("detail")

        field["show_in"] = show_in
        field["listable"] = listable
        field["editable"] = editable
        field["viewable"] = viewable

    return schema


def normalize_boolean_types(schema: dict[str, Any]) -> dict[str, Any]:
    """Rewrite legacy ``boolean-tgl`` style types to ``boolean`` plus a ui hint."""
    fields = schema.get("fields")
    if not isinstance(fields, dict):
        return schema

    for field in fields.values():
        if not isinstance(field, dict):
            continue
        field_type = field.get("type", "string")
        match = _LEGACY_BOOLEAN.match(field_type)
        if match:
            field["type"] = "boolean"
            field.setdefault("ui", _BOOLEAN_UI[match.group(1)])
        elif field_type == "boolean":
            field.setdefault("ui", "checkbox")

    return schema


def normalize_details(schema: dict[str, Any]) -> dict[str, Any]:
    """Fold the legacy singular ``detail`` block into the ``details`` list."""
    detail = schema.pop("detail", None)
    if isinstance(detail, dict):
        details = schema.setdefault("details", [])
        if not any(d.get("model") == detail.get("model") for d in details):
            details.insert(0, detail)
    return schema
