# File: modgen/swagger.py
"""
modgen - OpenAPI Document Builder
==================================
Paths and component schemas for one module, merged by key into the shared
``swagger.json`` (OpenAPI 3.0.0).

Schemas per module::

    <Name>Item      one per structured array (nested records)
    <Class>         stored document: _id + fields + timestamps
    <Class>Create   request body for POST
    <Class>Update   request body for PATCH; nothing required
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from modgen.models import FieldDefinition, GeneratorConfig, ModuleNames
from modgen.type_mapping import (
    item_type_name,
    nested_definitions,
    to_swagger_property,
    visible_fields,
)
from modgen.utils import read_json, write_json

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.swagger")

_SCHEMA_PREFIX: str = "#/components/schemas/"


def default_document() -> Dict[str, Any]:
    """Skeleton used when no readable swagger file exists."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "API Documentation",
            "version": "1.0.0",
            "description": "Generated API documentation",
        },
        "paths": {},
        "components": {"schemas": {}},
    }


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"{_SCHEMA_PREFIX}{name}"}


def _envelope(description: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Response wrapper matching ``sendResponse`` in the generated controller."""
    return {
        "description": description,
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean"},
                        "message": {"type": "string"},
                        "data": data,
                    },
                }
            }
        },
    }


def _id_parameter(cls: str) -> List[Dict[str, Any]]:
    return [
        {
            "name": "id",
            "in": "path",
            "required": True,
            "schema": {"type": "string"},
            "description": f"{cls} ID",
        }
    ]


def _request_body(schema_name: str) -> Dict[str, Any]:
    return {
        "required": True,
        "content": {"application/json": {"schema": _ref(schema_name)}},
    }


def generate_swagger_paths(
    names: ModuleNames, fields: Sequence[FieldDefinition]
) -> Dict[str, Any]:
    """``/<folder>`` (post, get) and ``/<folder>/{id}`` (get, patch, delete)."""
    cls: str = names.class_name
    folder: str = names.folder_name
    not_found: Dict[str, str] = {"description": f"{cls} not found"}

    return {
        f"/{folder}": {
            "post": {
                "tags": [cls],
                "summary": f"Create a new {cls}",
                "requestBody": _request_body(f"{cls}Create"),
                "responses": {
                    "201": _envelope(f"{cls} created successfully", _ref(cls)),
                    "400": {"description": "Bad request"},
                },
            },
            "get": {
                "tags": [cls],
                "summary": f"Get all {cls}s",
                "responses": {
                    "200": _envelope(
                        f"List of {cls}s retrieved successfully",
                        {"type": "array", "items": _ref(cls)},
                    ),
                },
            },
        },
        f"/{folder}/{{id}}": {
            "get": {
                "tags": [cls],
                "summary": f"Get {cls} by ID",
                "parameters": _id_parameter(cls),
                "responses": {
                    "200": _envelope(f"{cls} retrieved successfully", _ref(cls)),
                    "404": dict(not_found),
                },
            },
            "patch": {
                "tags": [cls],
                "summary": f"Update {cls}",
                "parameters": _id_parameter(cls),
                "requestBody": _request_body(f"{cls}Update"),
                "responses": {
                    "200": _envelope(f"{cls} updated successfully", _ref(cls)),
                    "404": dict(not_found),
                },
            },
            "delete": {
                "tags": [cls],
                "summary": f"Delete {cls}",
                "parameters": _id_parameter(cls),
                "responses": {
                    "200": _envelope(f"{cls} deleted successfully", _ref(cls)),
                    "404": dict(not_found),
                },
            },
        },
    }


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


def _object_schema(
    fields: Sequence[FieldDefinition], *, with_required: bool = True
) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for f in visible_fields(fields):
        properties[f.name] = to_swagger_property(f)
        if f.is_required:
            required.append(f.name)
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if with_required:
        schema["required"] = required
    return schema


def _document_schema(fields: Sequence[FieldDefinition]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {
        "_id": {"type": "string", "description": "MongoDB ObjectId"}
    }
    required: List[str] = ["_id"]
    for f in visible_fields(fields):
        properties[f.name] = to_swagger_property(f)
        if f.is_required:
            required.append(f.name)
    properties["createdAt"] = {
        "type": "string",
        "format": "date-time",
        "description": "Creation timestamp",
    }
    properties["updatedAt"] = {
        "type": "string",
        "format": "date-time",
        "description": "Last update timestamp",
    }
    return {"type": "object", "properties": properties, "required": required}


def generate_swagger_schemas(
    names: ModuleNames, fields: Sequence[FieldDefinition]
) -> Dict[str, Any]:
    cls: str = names.class_name
    schemas: Dict[str, Any] = {}

    for nested in nested_definitions(fields):
        schemas[item_type_name(nested)] = _object_schema(nested.object_properties or [])

    schemas[cls] = _document_schema(fields)
    schemas[f"{cls}Create"] = _object_schema(fields)
    schemas[f"{cls}Update"] = _object_schema(fields, with_required=False)
    return schemas


# ---------------------------------------------------------------------------
# File update
# ---------------------------------------------------------------------------


def merge_document(
    document: Dict[str, Any],
    paths: Dict[str, Any],
    schemas: Dict[str, Any],
) -> Dict[str, Any]:
    """Shallow merge by key; entries of other modules are left untouched."""
    merged: Dict[str, Any] = dict(document)
    merged["paths"] = {**(document.get("paths") or {}), **paths}
    components: Dict[str, Any] = dict(document.get("components") or {})
    components["schemas"] = {**(components.get("schemas") or {}), **schemas}
    merged["components"] = components
    return merged


def update_swagger_file(
    config: GeneratorConfig,
    names: ModuleNames,
    fields: Sequence[FieldDefinition],
) -> Path:
    """Merge this module into ``swagger_file`` and write it back."""
    path: Path = config.swagger_path
    document: Dict[str, Any] = default_document()

    if path.exists():
        try:
            loaded: Any = read_json(path)
            if isinstance(loaded, dict):
                document = loaded
            else:
                logger.warning("Swagger file %s is not an object, creating new one", path)
        except (OSError, ValueError):
            logger.warning("Could not parse existing swagger file, creating new one")

    document = merge_document(
        document,
        generate_swagger_paths(names, fields),
        generate_swagger_schemas(names, fields),
    )
    write_json(path, document)
    logger.info("Swagger documentation updated: %s", path)
    return path


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "default_document",
    "generate_swagger_paths",
    "generate_swagger_schemas",
    "merge_document",
    "update_swagger_file",
]

logger.debug("modgen.swagger loaded.")
