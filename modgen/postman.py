# File: modgen/postman.py
"""
modgen - Postman Collection Builder
====================================
Builds a Postman v2.1 collection with the five CRUD requests of a module
and writes it next to the project.

Request bodies use ``{{variable}}`` placeholders.  POST and PATCH requests
carry a pre-request script that fills every placeholder with a sample
value, so the collection runs without manual setup.  Nested properties are
flattened into ``parent_child`` variable names.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from modgen.models import FieldDefinition, FieldType, GeneratorConfig, ModuleNames
from modgen.type_mapping import visible_fields
from modgen.utils import read_json, write_json

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.postman")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

POSTMAN_SCHEMA_URL: str = (
    "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
)
BASE_URL_VARIABLE: str = "{{base_url}}"
DEFAULT_FULL_COLLECTION_PATH: Path = Path("postman/full_collection.postman_collection.json")

# Number of body fields shown in the sample update request.
UPDATE_SAMPLE_FIELDS: int = 3

_JSON_HEADER: List[Dict[str, str]] = [{"key": "Content-Type", "value": "application/json"}]


# ---------------------------------------------------------------------------
# Sample bodies and pre-request scripts
# ---------------------------------------------------------------------------


def _variable_name(field: FieldDefinition, prefix: str) -> str:
    return f"{prefix}_{field.name}" if prefix else field.name


def generate_pre_request_script(
    fields: Sequence[FieldDefinition], prefix: str = ""
) -> List[str]:
    """``pm.variables.set`` lines producing a sample value per placeholder."""
    lines: List[str] = []
    for f in visible_fields(fields):
        var: str = _variable_name(f, prefix)
        tag: str = f.type

        if tag == FieldType.STRING.value:
            lines.append(f'pm.variables.set("{var}", "{f.name}_" + Date.now());')
        elif tag == FieldType.NUMBER.value:
            lines.append(f'pm.variables.set("{var}", Math.floor(Math.random() * 100));')
        elif tag == FieldType.BOOLEAN.value:
            lines.append(f'pm.variables.set("{var}", Math.random() < 0.5);')
        elif tag == FieldType.DATE.value:
            lines.append(f'pm.variables.set("{var}", new Date().toISOString());')
        elif tag == FieldType.ENUM.value:
            if f.enum_values:
                lines.append(f"const {var}_values = {json.dumps(f.enum_values)};")
                lines.append(
                    f'pm.variables.set("{var}", {var}_values'
                    f"[Math.floor(Math.random() * {var}_values.length)]);"
                )
            else:
                lines.append(f'pm.variables.set("{var}", "ENUM_VALUE");')
        elif f.object_properties and (
            tag == FieldType.OBJECT.value or f.is_structured_array
        ):
            lines.extend(generate_pre_request_script(f.object_properties, var))
    return lines


def generate_sample_data(
    fields: Sequence[FieldDefinition], prefix: str = ""
) -> Dict[str, Any]:
    """Request body with ``{{var}}`` placeholders."""
    data: Dict[str, Any] = {}
    for f in visible_fields(fields):
        var: str = _variable_name(f, prefix)
        if f.type == FieldType.ARRAY.value:
            if f.is_structured_array:
                data[f.name] = [generate_sample_data(f.object_properties or [], var)]
            else:
                data[f.name] = []
        elif f.type == FieldType.OBJECT.value:
            data[f.name] = (
                generate_sample_data(f.object_properties, var)
                if f.object_properties
                else {}
            )
        else:
            data[f.name] = f"{{{{{var}}}}}"
    return data


def generate_update_sample_data(fields: Sequence[FieldDefinition]) -> Dict[str, Any]:
    """First few keys of the create body."""
    sample: Dict[str, Any] = generate_sample_data(fields)
    return dict(list(sample.items())[:UPDATE_SAMPLE_FIELDS])


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


def _url(api_prefix: str, folder: str, with_id: bool) -> Dict[str, Any]:
    path: List[str] = [p for p in api_prefix.split("/") if p] + [folder]
    if with_id:
        path.append(f"{{{{{folder}_id}}}}")
    return {
        "raw": BASE_URL_VARIABLE + "/" + "/".join(path),
        "host": [BASE_URL_VARIABLE],
        "path": path,
    }


def _json_body(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "mode": "raw",
        "raw": json.dumps(data, indent=2),
        "options": {"raw": {"language": "json"}},
    }


def _prerequest_event(exec_lines: List[str]) -> List[Dict[str, Any]]:
    return [
        {
            "listen": "prerequest",
            "script": {"exec": exec_lines, "type": "text/javascript"},
        }
    ]


def generate_postman_collection(
    names: ModuleNames,
    fields: Sequence[FieldDefinition],
    api_prefix: str = "/api/v1",
) -> Dict[str, Any]:
    """Postman v2.1 collection: create, list, get, update, delete."""
    cls: str = names.class_name
    folder: str = names.folder_name
    script: List[str] = generate_pre_request_script(fields)

    items: List[Dict[str, Any]] = [
        {
            "name": f"Create {cls}",
            "request": {
                "method": "POST",
                "header": [dict(h) for h in _JSON_HEADER],
                "body": _json_body(generate_sample_data(fields)),
                "url": _url(api_prefix, folder, with_id=False),
            },
            "event": _prerequest_event(list(script)),
        },
        {
            "name": f"Get All {cls}s",
            "request": {
                "method": "GET",
                "header": [],
                "url": _url(api_prefix, folder, with_id=False),
            },
        },
        {
            "name": f"Get {cls} by ID",
            "request": {
                "method": "GET",
                "header": [],
                "url": _url(api_prefix, folder, with_id=True),
            },
        },
        {
            "name": f"Update {cls}",
            "request": {
                "method": "PATCH",
                "header": [dict(h) for h in _JSON_HEADER],
                "body": _json_body(generate_update_sample_data(fields)),
                "url": _url(api_prefix, folder, with_id=True),
            },
            "event": _prerequest_event(list(script)),
        },
        {
            "name": f"Delete {cls}",
            "request": {
                "method": "DELETE",
                "header": [],
                "url": _url(api_prefix, folder, with_id=True),
            },
        },
    ]

    return {
        "info": {"name": names.postman_folder_name, "schema": POSTMAN_SCHEMA_URL},
        "item": items,
    }


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def merge_items(
    generated: List[Dict[str, Any]], existing: List[Any]
) -> List[Any]:
    """Generated items first, then existing items whose names do not collide."""
    generated_names = {item.get("name") for item in generated}
    manual: List[Any] = [
        item
        for item in existing
        if not (isinstance(item, dict) and item.get("name") in generated_names)
    ]
    if manual:
        logger.info(
            "Preserving %d manual endpoint(s): %s",
            len(manual),
            ", ".join(str(m.get("name")) for m in manual if isinstance(m, dict)),
        )
    return list(generated) + manual


def save_postman_collection(
    config: GeneratorConfig,
    names: ModuleNames,
    collection: Dict[str, Any],
) -> Path:
    """
    Write ``<postman_dir>/<folder>.postman_collection.json``.

    An existing file's hand-written requests are kept after the generated
    ones; an unreadable existing file is overwritten.
    """
    path: Path = config.postman_path / f"{names.folder_name}.postman_collection.json"
    final: Dict[str, Any] = collection
    existed: bool = path.exists()

    if existed:
        try:
            current: Any = read_json(path)
            if isinstance(current, dict) and isinstance(current.get("item"), list):
                logger.info("Merging with existing local collection: %s", path)
                final = dict(collection)
                final["item"] = merge_items(collection.get("item", []), current["item"])
        except (OSError, ValueError):
            logger.warning(
                "Could not parse existing Postman collection at %s, overwriting instead.",
                path,
            )

    write_json(path, final)
    logger.info("Postman collection %s: %s", "updated" if existed else "created", path)
    return path


def save_full_postman_collection(
    collection: Any,
    path: Optional[Path] = None,
) -> Path:
    """Write ``{"collection": collection}`` to *path*; errors propagate."""
    target: Path = path if path is not None else DEFAULT_FULL_COLLECTION_PATH
    try:
        write_json(target, {"collection": collection})
    except OSError as exc:
        logger.error("Error saving full Postman collection: %s", exc)
        raise
    logger.info("Full Postman collection exported to: %s", target)
    return target


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "POSTMAN_SCHEMA_URL",
    "DEFAULT_FULL_COLLECTION_PATH",
    "generate_pre_request_script",
    "generate_sample_data",
    "generate_update_sample_data",
    "generate_postman_collection",
    "merge_items",
    "save_postman_collection",
    "save_full_postman_collection",
]

logger.debug("modgen.postman loaded.")
