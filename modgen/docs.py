# File: modgen/docs.py
"""
modgen - Documentation Updater
===============================
Keeps the API documentation in step with the generated modules:

    update_all_documentation                one module, fields known
    update_existing_modules_documentation   every module on disk

For modules already on disk the field list is recovered by reading the
generated TypeScript back (``extract_fields_from_module``): the main
interface gives names, optionality and types; enum declarations, nested
interfaces and the Mongoose schema fill in enum values, sub-records,
references and ``required``.

Each documentation concern (local Postman, remote Postman, Swagger) fails
independently.  Modules are processed strictly one after another so the
remote collection is never written concurrently.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from modgen.models import FieldDefinition, FieldType, GeneratorConfig, ModuleNames
from modgen.postman import generate_postman_collection, save_postman_collection
from modgen.postman_api import PostmanApiClient
from modgen.swagger import update_swagger_file
from modgen.utils import read_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.docs")


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DocumentationReport:
    """What ``update_all_documentation`` did for one module."""

    module: str = ""
    postman_path: Optional[str] = None
    swagger_path: Optional[str] = None
    remote_synced: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Update operations
# ---------------------------------------------------------------------------


def _sync_remote(
    config: GeneratorConfig,
    names: ModuleNames,
    collection: Dict[str, Any],
    client: Optional[PostmanApiClient],
) -> None:
    if client is not None:
        client.update_module_folder(config.postman_collection_id or "", names, collection)
        return
    with PostmanApiClient.from_config(config) as own_client:
        own_client.update_module_folder(config.postman_collection_id or "", names, collection)


def update_all_documentation(
    config: GeneratorConfig,
    names: ModuleNames,
    fields: Sequence[FieldDefinition],
    client: Optional[PostmanApiClient] = None,
) -> DocumentationReport:
    """
    Regenerate the Postman collection and the Swagger entries of a module.

    Args:
        config: Paths and flags; remote sync runs only when both Postman
            credentials are configured.
        names: Derived module names.
        fields: Field tree of the module.
        client: Optional API client to reuse (tests inject one with a mock
            transport).  When omitted, one is opened per call.
    """
    report = DocumentationReport(module=names.class_name)
    logger.info("Updating documentation for %s...", names.class_name)

    if config.update_postman:
        try:
            collection: Dict[str, Any] = generate_postman_collection(
                names, fields, config.api_prefix
            )
            report.postman_path = str(save_postman_collection(config, names, collection))
            if config.remote_sync_enabled:
                logger.info("Syncing %s to Postman Cloud...", names.postman_folder_name)
                _sync_remote(config, names, collection, client)
                report.remote_synced = True
        except Exception as exc:
            message: str = f"Error updating Postman collection: {exc}"
            logger.error(message, exc_info=logger.isEnabledFor(logging.DEBUG))
            report.errors.append(message)

    if config.update_swagger:
        try:
            report.swagger_path = str(update_swagger_file(config, names, fields))
        except Exception as exc:
            message = f"Error updating Swagger documentation: {exc}"
            logger.error(message, exc_info=logger.isEnabledFor(logging.DEBUG))
            report.errors.append(message)

    logger.info("Documentation update completed for %s.", names.class_name)
    return report


def update_existing_modules_documentation(
    config: GeneratorConfig,
    targets: Sequence[str] = (),
    client: Optional[PostmanApiClient] = None,
) -> int:
    """
    Rebuild documentation for modules already present under ``modules_dir``.

    *targets* filters module folders case-insensitively.  Returns the number
    of modules whose documentation was updated.
    """
    modules_path: Path = config.modules_path
    if not modules_path.is_dir():
        logger.error("Modules directory not found: %s", modules_path)
        return 0

    logger.info("Scanning existing modules for documentation updates...")
    directories: List[Path] = sorted(p for p in modules_path.iterdir() if p.is_dir())

    if targets:
        wanted = {t.lower() for t in targets}
        directories = [d for d in directories if d.name.lower() in wanted]
        if not directories:
            logger.warning(
                "None of the specified modules were found: %s", ", ".join(targets)
            )
            return 0

    owned_client: Optional[PostmanApiClient] = None
    if client is None and config.update_postman and config.remote_sync_enabled:
        owned_client = client = PostmanApiClient.from_config(config)

    updated: int = 0
    try:
        for directory in directories:
            try:
                interface_file: Path = directory / f"{directory.name}.interface.ts"
                if not interface_file.is_file():
                    logger.warning("Interface file not found for module: %s", directory.name)
                    continue

                logger.info("Processing module: %s", directory.name)
                fields: List[FieldDefinition] = extract_fields_from_module(directory)
                if not fields:
                    logger.warning("No fields found in %s interface", directory.name)
                    continue

                logger.info(
                    "Extracted %d field(s): %s",
                    len(fields),
                    ", ".join(f.name for f in fields),
                )
                report = update_all_documentation(
                    config, ModuleNames.from_name(directory.name), fields, client
                )
                if report.success:
                    updated += 1
            except Exception as exc:
                logger.error("Error processing module %s: %s", directory.name, exc)
    finally:
        if owned_client is not None:
            owned_client.close()

    logger.info("Updated documentation for %d module(s)", updated)
    return updated


# ===========================================================================
# Reverse parsing of generated TypeScript
# ===========================================================================

_BLOCK_RE: re.Pattern[str] = re.compile(r"export\s+(interface|enum)\s+(\w+)\s*\{")
_PROPERTY_RE: re.Pattern[str] = re.compile(r"^(\w+)(\?)?\s*:\s*(.+?);?$")
_STRING_LITERAL: str = r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""
_STRING_LITERAL_RE: re.Pattern[str] = re.compile(_STRING_LITERAL)
_ENUM_MEMBER_RE: re.Pattern[str] = re.compile(rf"\w+\s*=\s*({_STRING_LITERAL})")
_ENUM_ATTR_RE: re.Pattern[str] = re.compile(rf"enum:\s*\[((?:{_STRING_LITERAL}|[^\]'\"])*)\]")
_ESCAPE_RE: re.Pattern[str] = re.compile(r"\\(.)")
_REF_ATTR_RE: re.Pattern[str] = re.compile(r"ref:\s*['\"]([^'\"]+)['\"]")
_QUOTED_RE: re.Pattern[str] = re.compile(r"^['\"]([^'\"]*)['\"]$")

_SKIPPED_PROPERTIES: frozenset = frozenset({"_id", "createdAt", "updatedAt"})


@dataclass(frozen=True, slots=True)
class ModelFieldInfo:
    """What the Mongoose schema says about one field."""

    enum_values: Optional[Tuple[str, ...]] = None
    ref: Optional[str] = None
    required: bool = False


def _balanced_body(content: str, open_index: int) -> Tuple[str, int]:
    """Text between the brace at *open_index* and its match."""
    depth: int = 0
    for i in range(open_index, len(content)):
        ch = content[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return content[open_index + 1 : i], i + 1
    return content[open_index + 1 :], len(content)


def extract_blocks(content: str) -> List[Tuple[str, str, str]]:
    """``(kind, name, body)`` for every exported interface and enum."""
    blocks: List[Tuple[str, str, str]] = []
    position: int = 0
    while True:
        match = _BLOCK_RE.search(content, position)
        if match is None:
            return blocks
        body, position = _balanced_body(content, match.end() - 1)
        blocks.append((match.group(1), match.group(2), body))


def _split_members(body: str) -> List[str]:
    """Split an interface body on top-level ``;`` and newlines."""
    members: List[str] = []
    depth: int = 0
    current: List[str] = []
    for ch in body:
        if ch in "{<(":
            depth += 1
        elif ch in "}>)":
            depth -= 1
        if depth == 0 and ch in ";\n":
            text = "".join(current).strip()
            if text and not text.startswith("//"):
                members.append(text)
            current = []
            continue
        current.append(ch)
    text = "".join(current).strip()
    if text and not text.startswith("//"):
        members.append(text)
    return members


def parse_properties(body: str) -> List[Tuple[str, bool, str]]:
    """``(name, is_optional, type_text)`` per property of an interface body."""
    properties: List[Tuple[str, bool, str]] = []
    for member in _split_members(body):
        match = _PROPERTY_RE.match(member)
        if match:
            properties.append((match.group(1), bool(match.group(2)), match.group(3).strip()))
    return properties


def _unquote(literal: str) -> str:
    """Value of a quoted TypeScript string literal, escapes resolved."""
    return _ESCAPE_RE.sub(r"\1", literal[1:-1])


def extract_enum_definitions(content: str) -> Dict[str, List[str]]:
    enums: Dict[str, List[str]] = {}
    for kind, name, body in extract_blocks(content):
        if kind != "enum":
            continue
        values: List[str] = [
            v for v in (_unquote(m) for m in _ENUM_MEMBER_RE.findall(body)) if v
        ]
        if values:
            enums[name] = values
    return enums


def map_simple_type(type_text: str) -> str:
    """Best-effort tag for a TypeScript type; string when nothing matches."""
    clean: str = type_text.lower().strip()
    for tag in ("string", "number", "boolean", "date", "objectid"):
        if tag in clean:
            return tag
    return FieldType.STRING.value


def extract_model_field_info(field_name: str, model_content: str) -> Optional[ModelFieldInfo]:
    """Enum values, ref and required flag from ``<field>: { ... }`` in the schema."""
    if not model_content:
        return None
    key: str = rf"(?<![\w$]){re.escape(field_name)}:\s*"
    match = re.search(key + r"\{([^}]+)\}", model_content)
    if match is None:
        # Bare sub-schema array: ``items: [itemsItemSchema]``
        if re.search(key + r"\[", model_content):
            return ModelFieldInfo()
        return None
    definition: str = match.group(1)

    enum_values: Optional[Tuple[str, ...]] = None
    enum_match = _ENUM_ATTR_RE.search(definition)
    if enum_match:
        enum_values = tuple(
            _unquote(m.group(0)) for m in _STRING_LITERAL_RE.finditer(enum_match.group(1))
        )
    ref_match = _REF_ATTR_RE.search(definition)
    return ModelFieldInfo(
        enum_values=enum_values or None,
        ref=ref_match.group(1) if ref_match else None,
        required=bool(re.search(r"required:\s*true", definition)),
    )


def _union_literals(type_text: str) -> Optional[List[str]]:
    """``'a' | 'b'`` → ``['a', 'b']``; None unless every member is quoted."""
    if "|" not in type_text:
        return None
    values: List[str] = []
    for part in type_text.split("|"):
        literal = _QUOTED_RE.match(part.strip())
        if literal is None:
            return None
        values.append(literal.group(1))
    return values


class _FieldReader:
    """Maps interface properties to ``FieldDefinition`` objects."""

    def __init__(
        self,
        enums: Dict[str, List[str]],
        nested: Dict[str, List[FieldDefinition]],
        model_content: str,
    ) -> None:
        self._enums = enums
        self._nested = nested
        self._model_content = model_content

    def read(
        self, name: str, is_optional: bool, type_text: str, *, use_model: bool = True
    ) -> FieldDefinition:
        info: Optional[ModelFieldInfo] = (
            extract_model_field_info(name, self._model_content) if use_model else None
        )
        flags: Dict[str, Any] = {
            "name": name,
            "is_optional": is_optional,
            "is_required": info.required if info is not None else not is_optional,
        }
        text: str = type_text.strip()

        if text in self._enums:
            return FieldDefinition(type="enum", enum_values=self._enums[text], **flags)
        if info is not None and info.enum_values:
            return FieldDefinition(type="enum", enum_values=list(info.enum_values), **flags)
        literals = _union_literals(text)
        if literals is not None:
            return FieldDefinition(type="enum", enum_values=literals or None, **flags)

        ref: Optional[str] = info.ref if info is not None else None
        if "objectid" in text.lower():
            if text.endswith("[]"):
                return FieldDefinition(
                    type="array", array_item_type="objectid", ref=ref, **flags
                )
            return FieldDefinition(type="objectid", ref=ref, **flags)

        if text.endswith("[]"):
            base: str = text[:-2].strip()
            if base in self._nested:
                return FieldDefinition(
                    type="array", ref="object", object_properties=self._nested[base], **flags
                )
            if base in ("any", "unknown"):
                return FieldDefinition(type="array", **flags)
            return FieldDefinition(type="array", array_item_type=map_simple_type(base), **flags)

        if text in self._nested:
            return FieldDefinition(type="object", object_properties=self._nested[text], **flags)
        if text.startswith("{") and text.endswith("}"):
            children: List[FieldDefinition] = [
                self.read(n, o, t, use_model=False)
                for n, o, t in parse_properties(text[1:-1])
            ]
            return FieldDefinition(type="object", object_properties=children or None, **flags)
        if text.lower().startswith("record<"):
            return FieldDefinition(type="object", **flags)

        return FieldDefinition(type=map_simple_type(text), **flags)


def extract_fields_from_module(module_dir: Path) -> List[FieldDefinition]:
    """
    Recover the field list of a generated module.

    Reads ``<m>.interface.ts`` (required) and ``<m>.model.ts`` (optional).
    ``_id`` and the timestamps are skipped.  Raises OSError when the
    interface file cannot be read.
    """
    folder: str = module_dir.name
    interface_content: str = read_file(module_dir / f"{folder}.interface.ts")
    model_path: Path = module_dir / f"{folder}.model.ts"
    model_content: str = read_file(model_path) if model_path.is_file() else ""
    # Nested sub-schemas come first; only the main schema describes top-level fields.
    main_schema: int = model_content.find("new Schema<")
    if main_schema != -1:
        model_content = model_content[main_schema:]

    enums: Dict[str, List[str]] = extract_enum_definitions(interface_content)
    interfaces: List[Tuple[str, str]] = [
        (name, body) for kind, name, body in extract_blocks(interface_content)
        if kind == "interface"
    ]

    main_name: Optional[str] = None
    main_body: str = ""
    for name, body in interfaces:
        if "_id" in body and "Types.ObjectId" in body:
            main_name, main_body = name, body
            break
    if main_name is None:
        fallback = next(((n, b) for n, b in interfaces if n.startswith("I")), None)
        if fallback is None:
            return []
        main_name, main_body = fallback

    leaf_reader = _FieldReader(enums, {}, "")
    nested: Dict[str, List[FieldDefinition]] = {}
    for name, body in interfaces:
        if name == main_name or "Model" in name or "Type" in name:
            continue
        if name.endswith("Filterables"):
            continue
        children = [
            leaf_reader.read(n, o, t, use_model=False)
            for n, o, t in parse_properties(body)
            if n != "_id"
        ]
        if children:
            nested[name] = children

    reader = _FieldReader(enums, nested, model_content)
    fields: List[FieldDefinition] = []
    for name, is_optional, type_text in parse_properties(main_body):
        if name in _SKIPPED_PROPERTIES:
            continue
        fields.append(reader.read(name, is_optional, type_text))

    logger.debug("Reverse-parsed %d field(s) from %s", len(fields), module_dir)
    return fields


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DocumentationReport",
    "ModelFieldInfo",
    "update_all_documentation",
    "update_existing_modules_documentation",
    "extract_blocks",
    "parse_properties",
    "extract_enum_definitions",
    "extract_model_field_info",
    "map_simple_type",
    "extract_fields_from_module",
]

logger.debug("modgen.docs loaded.")
