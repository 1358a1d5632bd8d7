"""
schema/validator.py — structural and semantic validation of schema documents.

Structural checks use the bundled JSON Schema (``schemas/schema_document.schema.json``).
Semantic checks cover what JSON Schema cannot express: the model name must
match the requested model, and each relationship kind must carry the
table/key names it needs.

Usage:
    from schemaforge.schema.validator import validate_document, validate_schema_dir

    issues = validate_schema_dir(Path("schema/crud6"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from schemaforge.schema.normalizer import normalize
from schemaforge.schema.store import SCHEMA_SUFFIXES

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
_DOCUMENT_SCHEMA = "schema_document.schema.json"

# Keys each relationship kind must declare
REQUIRED_RELATIONSHIP_KEYS: dict[str, tuple[str, ...]] = {
    "many_to_many": ("pivot_table", "foreign_key", "related_key"),
    "belongs_to_many_through": ("through", "through_key", "foreign_key"),
}


@dataclass
class ValidationIssue:
    """A single validation finding for a schema document."""

    source: str
    message: str
    path: str = ""          # location within the document, e.g. "relationships[0]"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.source}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def _document_validator() -> Draft202012Validator:
    with (_SCHEMAS_DIR / _DOCUMENT_SCHEMA).open() as fh:
        schema = json.load(fh)
    return Draft202012Validator(schema)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _semantic_issues(
    document: dict[str, Any], source: str, expected_model: str | None
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    model = document.get("model")
    fields = document.get("fields") or {}

    if expected_model is not None and model != expected_model:
        issues.append(ValidationIssue(
            source=source,
            message=(
                f"Schema model name '{model}' does not match "
                f"requested model '{expected_model}'"
            ),
            path="model",
        ))

    for index, relationship in enumerate(document.get("relationships") or []):
        if not isinstance(relationship, dict):
            continue
        required = REQUIRED_RELATIONSHIP_KEYS.get(relationship.get("type", ""), ())
        missing = [key for key in required if not relationship.get(key)]
        if missing:
            issues.append(ValidationIssue(
                source=source,
                message=(
                    f"Relationship '{relationship.get('name')}' of type "
                    f"'{relationship.get('type')}' is missing: {', '.join(missing)}"
                ),
                path=f"relationships[{index}]",
            ))

    names = [r.get("name") for r in document.get("relationships") or [] if isinstance(r, dict)]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    for name in duplicates:
        issues.append(ValidationIssue(
            source=source,
            message=f"Relationship name '{name}' is declared more than once",
            path="relationships",
        ))

    if isinstance(fields, dict):
        for name in (document.get("default_sort") or {}):
            if name not in fields and name != document.get("primary_key"):
                issues.append(ValidationIssue(
                    source=source,
                    message=f"default_sort references undeclared field '{name}'",
                    path="default_sort",
                    severity="warning",
                ))

    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_document(
    document: dict[str, Any],
    *,
    expected_model: str | None = None,
    source: str | None = None,
) -> list[ValidationIssue]:
    """Validate a normalized schema document.

    Args:
        document:       The (normalized) document dict.
        expected_model: When given, the document's ``model`` must equal it.
        source:         Label used in issue messages (file path or model name).

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    source = source or str(document.get("model") or expected_model or "<schema>")
    issues = [
        ValidationIssue(source=source, message=error.message, path=_json_path(error))
        for error in sorted(_document_validator().iter_errors(document), key=_json_path)
    ]
    issues.extend(_semantic_issues(document, source, expected_model))
    return issues


def validate_schema_file(path: Path) -> list[ValidationIssue]:
    """Parse, normalize and validate one schema file.

    The file stem is the expected model name.
    """
    source = str(path)
    try:
        with path.open() as fh:
            raw = json.load(fh) if path.suffix == ".json" else yaml.safe_load(fh)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        return [ValidationIssue(source=source, message=f"Parse error: {exc}")]

    if raw is None:
        return [ValidationIssue(source=source, message="File is empty or contains only whitespace")]
    if not isinstance(raw, dict):
        return [ValidationIssue(source=source, message="Schema document must be an object")]

    return validate_document(normalize(raw), expected_model=path.stem, source=source)


def validate_schema_dir(schema_dir: Path, *, strict: bool = False) -> list[ValidationIssue]:
    """Validate every schema file under *schema_dir*, including connection subdirectories.

    Args:
        schema_dir: Root schema directory.
        strict:     If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
    """
    if not schema_dir.is_dir():
        return [
            ValidationIssue(
                source=str(schema_dir),
                message=f"Schema directory does not exist: {schema_dir}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    for path in sorted(schema_dir.rglob("*")):
        if not path.is_file() or path.suffix not in SCHEMA_SUFFIXES:
            continue
        file_issues = validate_schema_file(path)
        if strict:
            for issue in file_issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        all_issues.extend(file_issues)

    logger.debug("Validated schema directory %s: %d issue(s)", schema_dir, len(all_issues))
    return all_issues
