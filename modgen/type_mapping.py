# File: modgen/type_mapping.py
"""
modgen - Type Mapping Tables
=============================
Pure functions mapping one ``FieldDefinition`` to an expression in each
target vocabulary:

    =========  ==========================  ==========================
    table      produces                    consumer
    =========  ==========================  ==========================
    mongoose   storage-schema type         ``<m>.model.ts``
    zod        request validator           ``<m>.validation.ts``
    typescript static type                 ``<m>.interface.ts``
    swagger    OpenAPI property object     ``swagger.json``
    =========  ==========================  ==========================

Every function is total: unknown tags and odd flag combinations map to the
string row.  All tables recurse into the same sub-structures and use the
same nested names, so the generated files always agree with each other:

- structured array ``items`` → ``itemsItemSchema`` (mongoose, zod) and
  ``ItemsItem`` (typescript, swagger);
- enum ``status`` → ``StatusEnum`` (typescript); an enum nested under
  ``items`` → ``ItemsItemStatusEnum`` so it never collides with a
  top-level enum of the same name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from modgen.models import FieldDefinition, FieldType
from modgen.utils import capitalize_first, quote_list, quote_ts

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.type_mapping")

# ---------------------------------------------------------------------------
# Scalar lookup tables (tag → expression)
# ---------------------------------------------------------------------------

_MONGOOSE_SCALARS: Dict[str, str] = {
    "string": "String",
    "number": "Number",
    "boolean": "Boolean",
    "date": "Date",
    "objectid": "Schema.Types.ObjectId",
}

_ZOD_SCALARS: Dict[str, str] = {
    "string": "z.string()",
    "number": "z.number()",
    "boolean": "z.boolean()",
    "date": "z.string().datetime()",
    "objectid": "z.string()",
}

_TS_SCALARS: Dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "date": "Date",
    "objectid": "Types.ObjectId",
}

_SWAGGER_SCALARS: Dict[str, Dict[str, str]] = {
    "string": {"type": "string"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "date": {"type": "string", "format": "date-time"},
    "objectid": {"type": "string"},
}


# ---------------------------------------------------------------------------
# Shared naming
# ---------------------------------------------------------------------------


def item_schema_name(field: FieldDefinition) -> str:
    """Sub-schema / sub-validator variable for a structured array."""
    return f"{field.name}ItemSchema"


def item_type_name(field: FieldDefinition) -> str:
    """Sub-interface / component schema name for a structured array."""
    return f"{capitalize_first(field.name)}Item"


def enum_type_name(field: FieldDefinition, owner: Optional[FieldDefinition] = None) -> str:
    """
    Enum declaration name.  Enums inside a structured array or inline object
    are prefixed with the owner's type name: ``items.status`` →
    ``ItemsItemStatusEnum``, ``address.kind`` → ``AddressKindEnum``.
    """
    if owner is None:
        return f"{capitalize_first(field.name)}Enum"
    prefix: str = (
        item_type_name(owner) if owner.is_structured_array else capitalize_first(owner.name)
    )
    return f"{prefix}{capitalize_first(field.name)}Enum"


def nested_definitions(fields: Sequence[FieldDefinition]) -> List[FieldDefinition]:
    """
    Structured-array fields whose sub-schemas must be declared, deepest
    first, so every declaration precedes its first use.
    """
    ordered: List[FieldDefinition] = []

    def _visit(items: Sequence[FieldDefinition]) -> None:
        for f in items:
            if f.object_properties:
                _visit(f.object_properties)
            if f.is_structured_array:
                ordered.append(f)

    _visit(fields)
    return ordered


def visible_fields(fields: Sequence[FieldDefinition]) -> List[FieldDefinition]:
    """Fields that appear in generated output (``_id`` is storage-managed)."""
    return [f for f in fields if f.name.lower() != "_id"]


# ---------------------------------------------------------------------------
# Storage schema (mongoose)
# ---------------------------------------------------------------------------


def _mongoose_ref(ref: Any) -> str:
    return f", ref: '{ref}'" if ref else ""


def to_mongoose_type(field: FieldDefinition) -> str:
    """Storage-schema expression for *field*, without ``required``/``default``."""
    tag: str = field.type

    if tag == FieldType.ENUM.value:
        if field.enum_values:
            return f"{{ type: String, enum: {quote_list(field.enum_values)} }}"
        return "{ type: String }"

    if tag == FieldType.OBJECTID.value:
        return f"{{ type: Schema.Types.ObjectId{_mongoose_ref(field.ref)} }}"

    if tag == FieldType.ARRAY.value:
        if field.is_structured_array:
            return f"[{item_schema_name(field)}]"
        if field.array_item_type:
            item: str = field.array_item_type
            if item == FieldType.OBJECTID.value:
                return f"{{ type: [Schema.Types.ObjectId]{_mongoose_ref(field.ref)} }}"
            return f"{{ type: [{_MONGOOSE_SCALARS.get(item, 'String')}] }}"
        if field.ref and field.ref.lower() != "object":
            return f"{{ type: [Schema.Types.ObjectId]{_mongoose_ref(field.ref)} }}"
        return "{ type: [Schema.Types.Mixed] }"

    if tag == FieldType.OBJECT.value:
        if field.object_properties:
            inner: str = ", ".join(
                f"{p.name}: {mongoose_field_expression(p)}"
                for p in visible_fields(field.object_properties)
            )
            return f"{{ {inner} }}"
        return "{ type: Schema.Types.Mixed }"

    return f"{{ type: {_MONGOOSE_SCALARS.get(tag, 'String')} }}"


def mongoose_field_expression(field: FieldDefinition, with_default: bool = False) -> str:
    """
    Base type plus layer modifiers.

    ``required: true`` follows ``is_required`` alone; the optional marker has
    no storage meaning.  Structured arrays are wrapped in a ``{ type: ... }``
    literal to carry modifiers; inline objects never take them.
    """
    base: str = to_mongoose_type(field)
    extras: List[str] = []
    if field.is_required:
        extras.append("required: true")
    if with_default and field.has_enum_values:
        extras.append(f"default: {quote_ts(field.enum_values[0])}")  # type: ignore[index]
    if not extras:
        return base
    if base.startswith("["):
        return f"{{ type: {base}, {', '.join(extras)} }}"
    if not base.startswith("{ type:"):
        return base
    return base[:-2] + ", " + ", ".join(extras) + " }"


# ---------------------------------------------------------------------------
# Request validation (zod)
# ---------------------------------------------------------------------------


def to_zod_type(field: FieldDefinition) -> str:
    """Validator expression for *field*, before the optional modifier."""
    tag: str = field.type

    if tag == FieldType.ENUM.value:
        if field.enum_values:
            return f"z.enum({quote_list(field.enum_values)})"
        return "z.string()"

    if tag == FieldType.ARRAY.value:
        if field.is_structured_array:
            return f"z.array({item_schema_name(field)})"
        if field.array_item_type:
            return f"z.array({_ZOD_SCALARS.get(field.array_item_type, 'z.string()')})"
        if field.ref and field.ref.lower() != "object":
            return "z.array(z.string())"
        return "z.array(z.any())"

    if tag == FieldType.OBJECT.value:
        if field.object_properties:
            inner: str = ", ".join(
                f"{p.name}: {zod_expression(p)}"
                for p in visible_fields(field.object_properties)
            )
            return f"z.object({{ {inner} }})"
        return "z.record(z.string(), z.any())"

    return _ZOD_SCALARS.get(tag, "z.string()")


def zod_expression(field: FieldDefinition, force_optional: bool = False) -> str:
    """Validator with ``.optional()`` applied when the field is optional."""
    expr: str = to_zod_type(field)
    if field.is_optional or force_optional:
        expr += ".optional()"
    return expr


# ---------------------------------------------------------------------------
# Static types (typescript)
# ---------------------------------------------------------------------------


def to_typescript_type(field: FieldDefinition, owner: Optional[FieldDefinition] = None) -> str:
    """
    Static type for *field*; optionality goes on the property name.  *owner*
    is the structured array or object the field is declared in, if any.
    """
    tag: str = field.type

    if tag == FieldType.ENUM.value:
        return enum_type_name(field, owner) if field.enum_values else "string"

    if tag == FieldType.ARRAY.value:
        if field.is_structured_array:
            return f"{item_type_name(field)}[]"
        if field.array_item_type:
            return f"{_TS_SCALARS.get(field.array_item_type, 'string')}[]"
        if field.ref and field.ref.lower() != "object":
            return "Types.ObjectId[]"
        return "any[]"

    if tag == FieldType.OBJECT.value:
        if field.object_properties:
            inner: str = "; ".join(
                typescript_property(p, field) for p in visible_fields(field.object_properties)
            )
            return f"{{ {inner} }}"
        return "Record<string, any>"

    return _TS_SCALARS.get(tag, "string")


def typescript_property(field: FieldDefinition, owner: Optional[FieldDefinition] = None) -> str:
    """``name?: Type`` without the trailing semicolon."""
    marker: str = "?" if field.is_optional else ""
    return f"{field.name}{marker}: {to_typescript_type(field, owner)}"


# ---------------------------------------------------------------------------
# OpenAPI properties (swagger)
# ---------------------------------------------------------------------------


def to_swagger_property(field: FieldDefinition) -> Dict[str, Any]:
    """OpenAPI 3 property object for *field*."""
    tag: str = field.type

    if tag == FieldType.ENUM.value:
        return {
            "type": "string",
            "enum": list(field.enum_values or []),
            "description": f"{field.name} field",
        }

    if tag == FieldType.OBJECTID.value:
        return {"type": "string", "description": f"{field.name} reference ID"}

    if tag == FieldType.ARRAY.value:
        if field.is_structured_array:
            return {
                "type": "array",
                "items": {"$ref": f"#/components/schemas/{item_type_name(field)}"},
                "description": f"Array of {field.name} objects",
            }
        item_tag = field.array_item_type
        if item_tag == FieldType.OBJECTID.value or (
            item_tag is None and field.ref and field.ref.lower() != "object"
        ):
            return {
                "type": "array",
                "items": {"type": "string"},
                "description": f"Array of {field.name} references",
            }
        if item_tag:
            items: Dict[str, str] = dict(_SWAGGER_SCALARS.get(item_tag, {"type": "string"}))
        else:
            items = {}
        return {
            "type": "array",
            "items": items,
            "description": f"Array of {field.name} items",
        }

    if tag == FieldType.OBJECT.value:
        prop: Dict[str, Any] = {"type": "object", "description": f"{field.name} object"}
        if field.object_properties:
            prop["properties"] = {
                p.name: to_swagger_property(p)
                for p in visible_fields(field.object_properties)
            }
        return prop

    prop = dict(_SWAGGER_SCALARS.get(tag, {"type": "string"}))
    prop["description"] = f"{field.name} field"
    return prop


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "item_schema_name",
    "item_type_name",
    "enum_type_name",
    "nested_definitions",
    "visible_fields",
    "to_mongoose_type",
    "mongoose_field_expression",
    "to_zod_type",
    "zod_expression",
    "to_typescript_type",
    "typescript_property",
    "to_swagger_property",
]

logger.debug("modgen.type_mapping loaded.")
