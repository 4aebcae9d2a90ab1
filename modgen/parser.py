# File: modgen/parser.py
"""
modgen - Field Grammar Parser
==============================
Turns the positional CLI tokens that follow the module name into a list of
``FieldDefinition`` objects.

Token forms::

    name[?|!]:type[:ref]                       plain / reference field
    name[?|!]:array:itemType[:ref]             scalar or reference array
    name[?|!]:array:object:p1:t1:p2:t2...      array of structured records
    name[?|!][v1,v2,...]                       enum shorthand
    name[?|!]:enum[v1,v2,...]                  enum in type position

Control tokens::

    --skip kind...       every later token names an artifact to suppress
    file:true            enable file-upload scaffolding (--file:true too)

Tokens that match no form are dropped.  Nothing is raised for them: each
drop is recorded in ``ParseResult.diagnostics`` so callers can decide to be
strict.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from modgen.models import (
    STRUCTURED_ARRAY_REF,
    FieldDefinition,
    FieldType,
    normalize_type_tag,
)
from modgen.validators import ValidationResult

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.parser")

# ---------------------------------------------------------------------------
# Grammar constants
# ---------------------------------------------------------------------------

SKIP_TOKEN: str = "--skip"
FILE_UPLOAD_TOKENS: frozenset = frozenset({"file:true", "--file:true"})

_ENUM_SHORTHAND_RE: re.Pattern[str] = re.compile(r"^([A-Za-z0-9_]+[?!]*)\[([^\]]+)\]$")
_ENUM_TYPE_RE: re.Pattern[str] = re.compile(r"^enum\[([^\]]*)\]$", re.IGNORECASE)

_ID_FIELD: str = "_id"


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ParseResult:
    """Everything the parser extracts from one token list."""

    fields: List[FieldDefinition] = field(default_factory=list)
    skip_artifacts: List[str] = field(default_factory=list)
    has_file_upload: bool = False
    diagnostics: ValidationResult = field(default_factory=ValidationResult)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_decorations(raw: str) -> Tuple[str, bool, bool]:
    """
    Remove trailing ``?`` / ``!`` markers from a name.

    Returns ``(name, is_optional, is_required)``.  Both markers may be
    present in either order, in which case both flags are set.
    """
    name: str = raw.strip()
    is_optional: bool = False
    is_required: bool = False
    while name and name[-1] in "?!":
        if name[-1] == "?":
            is_optional = True
        else:
            is_required = True
        name = name[:-1]
    return name.strip(), is_optional, is_required


def split_enum_values(raw: str) -> List[str]:
    """Comma-split, trim, drop empties; order is kept."""
    return [v.strip() for v in raw.split(",") if v.strip()]


def _is_id_field(name: str) -> bool:
    return name.lower() == _ID_FIELD


def _enum_field(
    name: str, values: List[str], is_optional: bool, is_required: bool
) -> FieldDefinition:
    return FieldDefinition(
        name=name,
        type=FieldType.ENUM.value,
        enum_values=values or None,
        is_optional=is_optional,
        is_required=is_required,
    )


# ---------------------------------------------------------------------------
# Token parsers
# ---------------------------------------------------------------------------


def _parse_child(
    raw_name: str, raw_type: str, token: str, diagnostics: ValidationResult
) -> Optional[FieldDefinition]:
    """Build one leaf property of a structured array."""
    name, is_optional, is_required = strip_decorations(raw_name)
    if not name:
        diagnostics.add_warning(
            "empty_name",
            f"Property with empty name in '{token}' was ignored.",
            {"token": token},
        )
        return None
    if _is_id_field(name):
        return None

    enum_match = _ENUM_TYPE_RE.match(raw_type.strip())
    if enum_match:
        return _enum_field(
            name, split_enum_values(enum_match.group(1)), is_optional, is_required
        )

    type_tag: str = normalize_type_tag(raw_type)
    if not type_tag:
        diagnostics.add_warning(
            "empty_type",
            f"Property '{name}' in '{token}' has no type and was ignored.",
            {"token": token},
        )
        return None

    return FieldDefinition(
        name=name,
        type=type_tag,
        is_optional=is_optional,
        is_required=is_required,
    )


def _parse_object_array(
    name: str,
    is_optional: bool,
    is_required: bool,
    parts: Sequence[str],
    token: str,
    max_object_depth: int,
    diagnostics: ValidationResult,
) -> FieldDefinition:
    """``name:array:object:p1:t1:p2:t2...``: pairs from index 3 onward."""
    children: List[FieldDefinition] = []
    pair_parts: Sequence[str] = parts[3:]

    if max_object_depth < 1 and pair_parts:
        diagnostics.add_warning(
            "depth_exceeded",
            f"Properties of '{name}' were ignored: object flattening is disabled.",
            {"token": token},
        )
        pair_parts = ()

    for j in range(0, len(pair_parts), 2):
        if j + 1 >= len(pair_parts):
            diagnostics.add_warning(
                "dangling_property",
                f"Property '{pair_parts[j]}' in '{token}' has no type and was ignored.",
                {"token": token},
            )
            break
        child = _parse_child(pair_parts[j], pair_parts[j + 1], token, diagnostics)
        if child is not None:
            children.append(child)

    return FieldDefinition(
        name=name,
        type=FieldType.ARRAY.value,
        ref=STRUCTURED_ARRAY_REF,
        object_properties=children or None,
        is_optional=is_optional,
        is_required=is_required,
    )


def parse_field_token(
    token: str,
    diagnostics: Optional[ValidationResult] = None,
    max_object_depth: int = 1,
) -> Optional[FieldDefinition]:
    """
    Parse a single field token.

    Returns None for tokens that produce no field (``_id``, unparseable
    input); the reason, if any, is added to *diagnostics*.
    """
    if diagnostics is None:
        diagnostics = ValidationResult()

    # --- Enum shorthand: name[a,b] ---
    shorthand = _ENUM_SHORTHAND_RE.match(token)
    if shorthand:
        name, is_optional, is_required = strip_decorations(shorthand.group(1))
        if not name:
            diagnostics.add_warning(
                "empty_name", f"Token '{token}' has an empty field name.", {"token": token}
            )
            return None
        if _is_id_field(name):
            return None
        return _enum_field(
            name, split_enum_values(shorthand.group(2)), is_optional, is_required
        )

    parts: List[str] = token.split(":")
    if len(parts) < 2:
        diagnostics.add_warning(
            "skipped_token",
            f"Token '{token}' is not a field definition and was ignored.",
            {"token": token},
        )
        return None

    name, is_optional, is_required = strip_decorations(parts[0])
    if not name:
        diagnostics.add_warning(
            "empty_name", f"Token '{token}' has an empty field name.", {"token": token}
        )
        return None
    if _is_id_field(name):
        logger.debug("Ignoring '%s': the identity field is always generated.", token)
        return None

    raw_type: str = parts[1].strip()

    # --- Enum in type position: name:enum[a,b] ---
    enum_match = _ENUM_TYPE_RE.match(raw_type)
    if enum_match:
        return _enum_field(
            name, split_enum_values(enum_match.group(1)), is_optional, is_required
        )

    type_tag: str = normalize_type_tag(raw_type)
    if not type_tag:
        diagnostics.add_warning(
            "skipped_token",
            f"Token '{token}' has no type and was ignored.",
            {"token": token},
        )
        return None

    # --- Arrays ---
    if type_tag == FieldType.ARRAY.value and len(parts) > 2:
        if parts[2].strip().lower() == STRUCTURED_ARRAY_REF:
            return _parse_object_array(
                name, is_optional, is_required, parts, token, max_object_depth, diagnostics
            )
        item_type: str = normalize_type_tag(parts[2])
        ref: Optional[str] = parts[3].strip() if len(parts) > 3 else None
        return FieldDefinition(
            name=name,
            type=type_tag,
            array_item_type=item_type or None,
            ref=ref or None,
            is_optional=is_optional,
            is_required=is_required,
        )

    # --- Plain field ---
    ref = parts[2].strip() if len(parts) > 2 else None
    if ref and type_tag != FieldType.OBJECTID.value:
        diagnostics.add_info(
            "ignored_ref",
            f"Reference '{ref}' on '{name}' ignored: only objectid fields take a ref.",
            {"token": token},
        )
        ref = None

    return FieldDefinition(
        name=name,
        type=type_tag,
        ref=ref or None,
        is_optional=is_optional,
        is_required=is_required,
    )


def parse_field_definitions(
    tokens: Sequence[str],
    max_object_depth: int = 1,
) -> ParseResult:
    """
    Parse the full token list that follows the module name.

    Args:
        tokens: Raw CLI tokens, in order.
        max_object_depth: How many levels of ``:prop:type`` flattening a
            single token may express.  One level is the grammar's limit;
            0 disables structured-array properties entirely.

    Returns:
        ParseResult with fields, skip list, upload flag and diagnostics.
    """
    result = ParseResult()
    skip_mode: bool = False

    for token in tokens:
        if token == SKIP_TOKEN:
            skip_mode = True
            continue

        if token in FILE_UPLOAD_TOKENS:
            result.has_file_upload = True
            continue

        if skip_mode:
            result.skip_artifacts.append(token)
            continue

        parsed = parse_field_token(token, result.diagnostics, max_object_depth)
        if parsed is not None:
            result.fields.append(parsed)
            logger.debug("Parsed field %r from '%s'.", parsed, token)

    logger.info(
        "Parsed %d field(s), %d skipped artifact(s)%s.",
        len(result.fields),
        len(result.skip_artifacts),
        ", file upload enabled" if result.has_file_upload else "",
    )
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SKIP_TOKEN",
    "FILE_UPLOAD_TOKENS",
    "ParseResult",
    "strip_decorations",
    "split_enum_values",
    "parse_field_token",
    "parse_field_definitions",
]

logger.debug("modgen.parser loaded.")
