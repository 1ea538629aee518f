#!/usr/bin/env python3
"""
canido — policy_document.py
Decode and pretty-print IAM policy documents.

IAM returns policy documents percent-encoded. boto3 usually decodes them for
us, but not always (a document that fails to decode is passed through as the
raw string), so everything here accepts either form.

Provides:
  - decode_document(raw) -> str
  - parse_document(raw)  -> parsed JSON value
  - normalize(raw)       -> pretty JSON text
  - pretty_json(value)   -> pretty JSON text
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import unquote


class DocumentError(Exception):
    """A single policy document could not be produced. Never fatal to a report."""


class DecodeFailure(DocumentError):
    pass


class InvalidDocumentJson(DocumentError):
    pass


# ---- Helpers ----------------------------------------------------------------

def pretty_json(value: Any) -> str:
    """Two-space indented JSON, key order kept as received."""
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except RecursionError as e:
        raise InvalidDocumentJson(f"Failed to format JSON: {e}") from e


def decode_document(raw: str) -> str:
    """Percent-decode a policy document. Plain JSON comes back unchanged."""
    if not isinstance(raw, str):
        raise DecodeFailure(f"Failed to decode policy document: expected text, got {type(raw).__name__}")
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeFailure(f"Failed to decode policy document: {e}") from e


def parse_document(raw: Any) -> Any:
    # already decoded by botocore
    if isinstance(raw, (dict, list)):
        return raw

    text = decode_document(raw)
    try:
        return json.loads(text)
    # RecursionError: nesting deeper than the interpreter can decode
    except (ValueError, RecursionError) as e:
        raise InvalidDocumentJson(f"Failed to parse JSON: {e}") from e


def normalize(raw: Any) -> str:
    return pretty_json(parse_document(raw))
