"""Context-scoped projections of schema documents.

Contexts:
- ``list``:   listable fields with sort/filter display properties
- ``create`` / ``edit``: fields shown in that form
- ``form``:   union of create and edit fields
- ``detail``: viewable fields plus details and relationships
- ``meta``:   identification and permissions only, no fields

``None``, ``full`` or any unknown context returns the full document.
A comma-separated context string returns one section per known context.
"""

import logging

from schemaforge.schema.types import ContextProjection, FieldDescriptor, SchemaDocument

logger = logging.getLogger(__name__)

KNOWN_CONTEXTS = ("list", "create", "edit", "form", "detail", "meta")

# Field keys exposed per context
_LIST_KEYS = ("type", "label", "sortable", "filterable", "filter_type", "width")
_FORM_KEYS = (
    "type", "label", "required", "editable", "validation",
    "placeholder", "description", "default", "show_in",
)
_DETAIL_KEYS = ("type", "label", "editable", "readonly", "description", "default")


def filter_for_context(document: SchemaDocument, context: str | None) -> ContextProjection:
    """Project a document onto one or more usage contexts."""
    if context is None or context.strip() in ("", "full"):
        return _full(document, context)

    if "," in context:
        names = [c.strip() for c in context.split(",") if c.strip()]
        sections = {
            name: _single(document, name)
            for name in names
            if name in KNOWN_CONTEXTS
        }
        logger.debug("Projected %s for contexts %s", document.model, ", ".join(sections))
        return ContextProjection(
            model=document.model,
            context=context,
            primary_key=document.primary_key,
            title=document.display_title,
            permissions=dict(document.permissions),
            contexts=sections,
            document=document,
        )

    context = context.strip()
    if context not in KNOWN_CONTEXTS:
        logger.debug("Unknown context '%s' for %s; returning full schema", context, document.model)
        return _full(document, context)

    return _single(document, context)


def _full(document: SchemaDocument, context: str | None) -> ContextProjection:
    return ContextProjection(
        model=document.model,
        context=context,
        primary_key=document.primary_key,
        title=document.display_title,
        fields=dict(document.fields),
        permissions=dict(document.permissions),
        default_sort=document.default_sort,
        details=document.details,
        relationships=document.relationships,
        is_full=True,
        document=document,
    )


def _single(document: SchemaDocument, context: str) -> ContextProjection:
    base = dict(
        model=document.model,
        context=context,
        primary_key=document.primary_key,
        title=document.display_title,
        permissions=dict(document.permissions),
        document=document,
    )

    if context == "meta":
        return ContextProjection(**base)

    if context == "list":
        fields = {n: f for n, f in document.fields.items() if _shown_in(f, "list")}
        return ContextProjection(
            **base,
            fields=fields,
            field_keys=_LIST_KEYS,
            default_sort=document.default_sort,
        )

    if context in ("create", "edit"):
        fields = {n: f for n, f in document.fields.items() if _shown_in(f, context)}
        return ContextProjection(**base, fields=fields, field_keys=_FORM_KEYS)

    if context == "form":
        fields = {
            n: f for n, f in document.fields.items()
            if _shown_in(f, "create") or _shown_in(f, "edit")
        }
        return ContextProjection(**base, fields=fields, field_keys=_FORM_KEYS)

    # detail
    fields = {n: f for n, f in document.fields.items() if _shown_in(f, "detail")}
    return ContextProjection(
        **base,
        fields=fields,
        field_keys=_DETAIL_KEYS,
        details=document.details,
        relationships=document.relationships,
    )


def _shown_in(field: FieldDescriptor, context: str) -> bool:
    if field.show_in:
        if context in ("create", "edit") and "form" in field.show_in:
            return True
        return context in field.show_in
    if context == "list":
        return field.listable
    if context == "detail":
        return field.viewable and field.type != "password"
    return field.editable
