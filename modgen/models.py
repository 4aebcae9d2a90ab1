# File: modgen/models.py
"""
modgen - Core Data Models
==========================
Pydantic V2 models shared by the whole pipeline:

    Field Tokens → FieldDefinition tree → Type Mapping → Templates → Export

``FieldDefinition`` is the single domain entity.  It is built once by the
parser, consumed read-only by every renderer and never mutated.

``GeneratorConfig`` replaces process-wide CLI settings: every component
receives it explicitly.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.models")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Type tags understood by every mapping table."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"
    OBJECTID = "objectid"


class ArtifactKind(str, Enum):
    """Generated file categories, in write order."""

    INTERFACE = "interface"
    MODEL = "model"
    CONTROLLER = "controller"
    SERVICE = "service"
    ROUTE = "route"
    VALIDATION = "validation"
    CONSTANTS = "constants"


# Tags accepted on input that normalise to a canonical tag.
TYPE_ALIASES = {"id": FieldType.OBJECTID.value}

# Marker stored in ``ref`` for arrays of structured sub-records.
STRUCTURED_ARRAY_REF: str = "object"


def normalize_type_tag(raw: str) -> str:
    """Lowercase a raw tag and resolve aliases (``id`` → ``objectid``)."""
    tag: str = raw.strip().lower()
    return TYPE_ALIASES.get(tag, tag)


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Field definition
# ---------------------------------------------------------------------------


class FieldDefinition(BaseModel):
    """
    One parsed field, possibly with nested child fields.

    ``is_required`` and ``is_optional`` are two independent flags and both
    may be set by the grammar.  ``is_optional`` decides optionality in the
    validation and static-type outputs; ``is_required`` only adds
    ``required: true`` to the storage schema.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Field name without decorations.")
    type: str = Field(..., min_length=1, description="Lowercased type tag.")
    is_required: bool = Field(default=False, description="Trailing '!' was present.")
    is_optional: bool = Field(default=False, description="Trailing '?' was present.")
    ref: Optional[str] = Field(
        default=None,
        description="Referenced entity, or 'object' for structured arrays.",
    )
    enum_values: Optional[List[str]] = Field(
        default=None, description="Ordered enum values (enum fields only)."
    )
    object_properties: Optional[List["FieldDefinition"]] = Field(
        default=None, description="Child fields for structured arrays / objects."
    )
    array_item_type: Optional[str] = Field(
        default=None, description="Element tag for scalar / reference arrays."
    )

    @field_validator("type", "array_item_type")
    @classmethod
    def _normalize_tag(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return normalize_type_tag(v)

    @model_validator(mode="after")
    def _check_attribute_consistency(self) -> "FieldDefinition":
        if self.enum_values is not None and self.type != FieldType.ENUM.value:
            raise ValueError(
                f"Field '{self.name}': enum_values set on non-enum type '{self.type}'."
            )
        if self.array_item_type is not None and self.type != FieldType.ARRAY.value:
            raise ValueError(
                f"Field '{self.name}': array_item_type set on non-array type '{self.type}'."
            )
        if self.object_properties is not None:
            if self.type not in (FieldType.ARRAY.value, FieldType.OBJECT.value):
                raise ValueError(
                    f"Field '{self.name}': object_properties set on type '{self.type}'."
                )
            if not self.object_properties:
                raise ValueError(
                    f"Field '{self.name}': object_properties must be non-empty when present."
                )
            if (
                self.type == FieldType.ARRAY.value
                and self.ref != STRUCTURED_ARRAY_REF
            ):
                raise ValueError(
                    f"Field '{self.name}': structured array requires ref='object'."
                )
        if self.ref is not None and self.type not in (
            FieldType.OBJECTID.value,
            FieldType.ARRAY.value,
        ):
            raise ValueError(
                f"Field '{self.name}': ref is not meaningful for type '{self.type}'."
            )
        return self

    # -- Derived helpers ----------------------------------------------------

    @property
    def is_structured_array(self) -> bool:
        return (
            self.type == FieldType.ARRAY.value
            and self.ref is not None
            and self.ref.lower() == STRUCTURED_ARRAY_REF
            and bool(self.object_properties)
        )

    @property
    def has_enum_values(self) -> bool:
        return self.type == FieldType.ENUM.value and bool(self.enum_values)

    def __repr__(self) -> str:
        flags: str = ("!" if self.is_required else "") + ("?" if self.is_optional else "")
        return f"<Field {self.name}{flags}:{self.type}>"


FieldDefinition.model_rebuild()


# ---------------------------------------------------------------------------
# Module naming
# ---------------------------------------------------------------------------

_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")


class ModuleNames(BaseModel):
    """Names derived from the module name given on the command line."""

    model_config = _FROZEN_CONFIG

    raw_name: str = Field(..., min_length=1)
    class_name: str = Field(..., min_length=1)
    folder_name: str = Field(..., min_length=1)

    @classmethod
    def from_name(cls, name: str) -> "ModuleNames":
        """
        ``user`` → ``User`` / ``user``; ``userProfile`` → ``Userprofile``.

        The first character is uppercased, the rest lowercased and all
        whitespace removed; the folder is the lowercased class name.
        """
        compact: str = _WHITESPACE_RE.sub("", name.strip())
        if not compact:
            raise ValueError("Module name must not be empty.")
        class_name: str = compact[0].upper() + compact[1:].lower()
        return cls(raw_name=name, class_name=class_name, folder_name=class_name.lower())

    @computed_field  # type: ignore[misc]
    @property
    def routes_symbol(self) -> str:
        return f"{self.class_name}Routes"

    @computed_field  # type: ignore[misc]
    @property
    def postman_folder_name(self) -> str:
        return f"{self.class_name} API"

    def artifact_filename(self, kind: str) -> str:
        return f"{self.folder_name}.{kind}.ts"


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    All settings for one CLI invocation.

    Relative paths are resolved against ``base_dir`` (the project root the
    generator runs in).
    """

    model_config = _SHARED_CONFIG

    base_dir: Path = Field(default_factory=Path.cwd, description="Project root.")
    modules_dir: str = Field(default="src/app/modules", min_length=1)
    routes_file: str = Field(default="src/routes/index.ts", min_length=1)
    helpers_dir: str = Field(default="src/helpers", min_length=1)
    api_prefix: str = Field(default="/api/v1", description="Prefix used in request URLs.")

    # -- Documentation ------------------------------------------------------
    postman_dir: str = Field(default="postman", min_length=1)
    swagger_file: str = Field(default="swagger.json", min_length=1)
    update_postman: bool = Field(default=True)
    update_swagger: bool = Field(default=True)

    # -- Remote Postman API -------------------------------------------------
    postman_api_key: Optional[str] = Field(default=None)
    postman_collection_id: Optional[str] = Field(default=None)
    postman_api_url: str = Field(default="https://api.getpostman.com")
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    def _resolve(self, value: str) -> Path:
        path: Path = Path(value)
        return path if path.is_absolute() else self.base_dir / path

    @property
    def modules_path(self) -> Path:
        return self._resolve(self.modules_dir)

    @property
    def routes_path(self) -> Path:
        return self._resolve(self.routes_file)

    @property
    def helpers_path(self) -> Path:
        return self._resolve(self.helpers_dir)

    @property
    def postman_path(self) -> Path:
        return self._resolve(self.postman_dir)

    @property
    def swagger_path(self) -> Path:
        return self._resolve(self.swagger_file)

    @property
    def remote_sync_enabled(self) -> bool:
        return bool(self.postman_api_key and self.postman_collection_id)

    def __repr__(self) -> str:
        # Never echo the API key.
        return (
            f"<GeneratorConfig base={self.base_dir} modules={self.modules_dir} "
            f"routes={self.routes_file} remote={'on' if self.remote_sync_enabled else 'off'}>"
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldType",
    "ArtifactKind",
    "TYPE_ALIASES",
    "STRUCTURED_ARRAY_REF",
    "normalize_type_tag",
    "FieldDefinition",
    "ModuleNames",
    "GeneratorConfig",
]

logger.debug("modgen.models loaded: %d public symbols.", len(__all__))
