# File: modgen/validators.py
"""
modgen - Diagnostics & Field Validators
========================================
A small accumulator (``ValidationResult``) used in two places:

- by the field parser, as the channel for tokens it had to drop;
- by the semantic checks below, which run on a parsed field tree before
  anything is rendered.

All checks except module-name problems are warnings: generation is lenient
and every mapping table has a fallback, so odd input still renders.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from modgen.models import ArtifactKind, FieldDefinition, FieldType, ModuleNames
from modgen.utils import is_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.validators")


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


class ValidationError:
    """One diagnostic item (error, warning or info)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Ordered collection of ``ValidationError`` items."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[A-Za-z0-9]")

# Supplied by the storage layer on every document.
_RESERVED_FIELD_NAMES: frozenset = frozenset({"createdAt", "updatedAt", "__v"})

_KNOWN_TAGS: frozenset = frozenset(t.value for t in FieldType)
_ARTIFACT_KINDS: frozenset = frozenset(k.value for k in ArtifactKind)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_module_name(name: str) -> ValidationResult:
    """A module name must contain at least one letter or digit."""
    result = ValidationResult()

    if not name or not name.strip():
        result.add_error("empty_module_name", "Module name must not be empty.")
        return result

    if not _ALPHANUM_RE.search(name):
        result.add_error(
            "invalid_module_name",
            f"Module name '{name}' contains no letters or digits.",
        )
        return result

    folder: str = ModuleNames.from_name(name).folder_name
    if not is_identifier(folder):
        result.add_warning(
            "module_name_not_identifier",
            f"Module folder '{folder}' is not a valid identifier; generated "
            f"symbols may not compile.",
            {"module": name},
        )
    return result


def _walk(fields: Iterable[FieldDefinition], path: str = "") -> Iterable[tuple]:
    for f in fields:
        qualified: str = f"{path}.{f.name}" if path else f.name
        yield qualified, f
        if f.object_properties:
            yield from _walk(f.object_properties, qualified)


def _check_siblings(
    fields: Sequence[FieldDefinition], owner: str, result: ValidationResult
) -> None:
    seen: Set[str] = set()
    for f in fields:
        if f.name in seen:
            result.add_warning(
                "duplicate_field",
                f"Field '{f.name}' is declared more than once in {owner}; "
                f"later declarations shadow earlier ones.",
                {"field": f.name},
            )
        seen.add(f.name)
        if f.object_properties:
            _check_siblings(f.object_properties, f"'{f.name}'", result)


def validate_fields(fields: Sequence[FieldDefinition]) -> ValidationResult:
    """Semantic checks on a parsed field tree. Only produces warnings."""
    result = ValidationResult()

    _check_siblings(fields, "the module", result)

    for qualified, f in _walk(fields):
        if not is_identifier(f.name):
            result.add_warning(
                "field_name_not_identifier",
                f"Field '{qualified}' is not a valid identifier.",
                {"field": qualified},
            )

        if f.type not in _KNOWN_TAGS:
            result.add_warning(
                "unknown_type",
                f"Field '{qualified}' has unknown type '{f.type}'; "
                f"it will be generated as a string.",
                {"field": qualified, "type": f.type},
            )

        if f.array_item_type is not None and f.array_item_type not in _KNOWN_TAGS:
            result.add_warning(
                "unknown_array_item_type",
                f"Array field '{qualified}' has unknown item type "
                f"'{f.array_item_type}'; items will be strings.",
                {"field": qualified},
            )

        if f.type == FieldType.ENUM.value:
            values: List[str] = list(f.enum_values or [])
            if not values:
                result.add_warning(
                    "empty_enum",
                    f"Enum field '{qualified}' has no values; it will be a plain string.",
                )
            elif len(values) != len(set(values)):
                dupes: List[str] = sorted({v for v in values if values.count(v) > 1})
                result.add_warning(
                    "duplicate_enum_values",
                    f"Enum field '{qualified}' repeats values: {dupes}.",
                )

        if (
            f.type == FieldType.ARRAY.value
            and f.ref == "object"
            and not f.object_properties
        ):
            result.add_warning(
                "empty_object_array",
                f"Array field '{qualified}' declares objects without properties; "
                f"it will be an untyped array.",
            )

        if f.name in _RESERVED_FIELD_NAMES:
            result.add_warning(
                "reserved_field_name",
                f"Field '{qualified}' collides with a timestamp/version field "
                f"managed by the storage layer.",
            )

        if f.is_required and f.is_optional:
            result.add_warning(
                "required_and_optional",
                f"Field '{qualified}' is marked both required and optional; "
                f"validation treats it as optional, the model as required.",
            )

    logger.debug("Field validation: %s", result.summary())
    return result


def validate_skip_artifacts(skip: Sequence[str]) -> ValidationResult:
    """Warn about ``--skip`` entries that name no artifact kind."""
    result = ValidationResult()
    for name in skip:
        if name.lower() not in _ARTIFACT_KINDS:
            result.add_warning(
                "unknown_artifact",
                f"Cannot skip unknown artifact '{name}'. Known kinds: "
                f"{', '.join(k.value for k in ArtifactKind)}.",
                {"artifact": name},
            )
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_module_name",
    "validate_fields",
    "validate_skip_artifacts",
]

logger.debug("modgen.validators loaded.")
