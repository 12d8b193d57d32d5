"""Contribution detail documents.

Before a draft goes to the ledger its details are written to the blob
store as a JSON-LD style document; the ledger transaction only carries
the document hash. Documents are validated against CONTRIBUTION_SCHEMA
first so an invalid document is never persisted.
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from kredits_bridge.domain.errors import ValidationError
from kredits_bridge.domain.models.contribution import ContributionDraft, ContributionKind
from kredits_bridge.domain.models.contributor import Contributor

SCHEMA_CONTEXT = "https://schema.kosmos.org"

CONTRIBUTION_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Contribution",
    "type": "object",
    "required": ["@context", "@type", "contributor", "kind", "description", "date"],
    "properties": {
        "@context": {"const": SCHEMA_CONTEXT},
        "@type": {"const": "Contribution"},
        "contributor": {
            "type": "object",
            "required": ["ipfs"],
            "properties": {"ipfs": {"type": "string", "minLength": 1}},
        },
        "kind": {"enum": [kind.value for kind in ContributionKind]},
        "description": {"type": "string", "minLength": 1},
        "date": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}$"},
        "time": {
            "type": ["string", "null"],
            "pattern": r"^\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?$",
        },
        "url": {"type": ["string", "null"]},
        "details": {"type": "object"},
    },
}

_validator = jsonschema.Draft7Validator(CONTRIBUTION_SCHEMA)


def build_contribution_document(
    draft: ContributionDraft, contributor: Contributor
) -> dict[str, Any]:
    """Build the detail document for `draft` credited to `contributor`."""
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Contribution",
        "contributor": {"ipfs": contributor.blob_ref},
        "kind": draft.kind.value,
        "description": draft.description,
        "date": draft.date,
        "time": draft.time,
        "url": draft.url,
        "details": draft.details,
    }


def validate_contribution_document(document: dict[str, Any]) -> None:
    """Validate a detail document.

    Raises:
        ValidationError: With one message per schema violation.
    """
    errors = sorted(_validator.iter_errors(document), key=lambda e: list(e.path))
    if errors:
        messages = [
            f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
            for error in errors
        ]
        raise ValidationError(messages)


def serialize_contribution_document(document: dict[str, Any]) -> bytes:
    """Serialize a document deterministically for content addressing."""
    return json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8")
