"""
tests/test_docs.py
Unit tests for modgen.docs: documentation updates and reading generated
modules back into field definitions.
"""

from __future__ import annotations

import json
import pathlib
import textwrap
from typing import Dict, List

import httpx
import pytest

from modgen.exporters import ModuleExporter
from modgen.models import GeneratorConfig, ModuleNames
from modgen.parser import parse_field_definitions
from modgen.postman_api import PostmanApiClient
from modgen.templates import TemplateGenerator
from modgen.docs import (
    extract_blocks,
    extract_enum_definitions,
    extract_fields_from_module,
    extract_model_field_info,
    map_simple_type,
    parse_properties,
    update_all_documentation,
    update_existing_modules_documentation,
)


def _write_module(config: GeneratorConfig, name: str, tokens: List[str]) -> pathlib.Path:
    names = ModuleNames.from_name(name)
    fields = parse_field_definitions(tokens).fields
    result = ModuleExporter(config).export(names, TemplateGenerator(names, fields).generate_all())
    return pathlib.Path(result.module_dir)


def _by_name(fields) -> Dict[str, object]:
    return {f.name: f for f in fields}


class _RecordingPostman:
    def __init__(self) -> None:
        self.stored: Dict = {"info": {"name": "Remote"}, "item": []}
        self.methods: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.methods.append(request.method)
        if request.method == "PUT":
            self.stored = json.loads(request.content)["collection"]
        return httpx.Response(200, json={"collection": self.stored})


# ---------------------------------------------------------------------------
# Reverse parsing helpers
# ---------------------------------------------------------------------------


class TestParsingHelpers:
    def test_extract_blocks_handles_nested_braces(self):
        content = "export interface A {\n  x: { y: string };\n  z: number;\n}\nexport enum B {\n  K = 'k',\n}\n"
        blocks = extract_blocks(content)
        assert [(kind, name) for kind, name, _ in blocks] == [("interface", "A"), ("enum", "B")]
        assert "z: number" in blocks[0][2]

    def test_parse_properties(self):
        body = "\n  _id: Types.ObjectId;\n  a?: string;\n  // note\n  b: { c: number; d?: string };\n"
        assert parse_properties(body) == [
            ("_id", False, "Types.ObjectId"),
            ("a", True, "string"),
            ("b", False, "{ c: number; d?: string }"),
        ]

    def test_enum_definitions(self):
        content = "export enum StatusEnum {\n  A = 'a',\n  IN_PROGRESS = \"in-progress\",\n}\n"
        assert extract_enum_definitions(content) == {"StatusEnum": ["a", "in-progress"]}

    def test_escaped_enum_values(self):
        content = "export enum ToneEnum {\n  IT_S = 'it\\'s',\n  OK = 'ok',\n}\n"
        assert extract_enum_definitions(content) == {"ToneEnum": ["it's", "ok"]}
        model = "  tone: { type: String, enum: ['it\\'s', 'a, b'], default: 'it\\'s' },\n"
        assert extract_model_field_info("tone", model).enum_values == ("it's", "a, b")

    @pytest.mark.parametrize(
        "text, tag",
        [("string", "string"), ("Date", "date"), ("Types.ObjectId", "objectid"), ("Foo", "string")],
    )
    def test_map_simple_type(self, text, tag):
        assert map_simple_type(text) == tag

    def test_model_field_info(self):
        model = "  owner: { type: Schema.Types.ObjectId, ref: 'User', required: true },\n  kind: { type: String, enum: ['a', 'b'], default: 'a' },\n"
        owner = extract_model_field_info("owner", model)
        assert owner.ref == "User" and owner.required
        kind = extract_model_field_info("kind", model)
        assert kind.enum_values == ("a", "b")
        assert not kind.required
        assert extract_model_field_info("missing", model) is None

    def test_model_field_info_prefix_names_do_not_collide(self):
        model = "  subtitle: { type: String, required: true },\n  title: { type: String },\n"
        assert not extract_model_field_info("title", model).required

    def test_bare_sub_schema_array_is_not_required(self):
        info = extract_model_field_info("lines", "  lines: [linesItemSchema],\n")
        assert info is not None and not info.required


# ---------------------------------------------------------------------------
# Reading whole modules
# ---------------------------------------------------------------------------


class TestExtractFieldsFromModule:
    """Generated files read back into fields."""

    def test_generated_module(self, config, sample_tokens):
        module_dir = _write_module(config, "User", sample_tokens)
        fields = extract_fields_from_module(module_dir)
        by_name = _by_name(fields)

        assert [f.name for f in fields] == [
            "name", "email", "age", "isActive", "birthDate",
            "role", "manager", "tags", "orders", "addresses",
        ]
        assert by_name["name"].is_required and not by_name["name"].is_optional
        assert not by_name["email"].is_required
        assert by_name["age"].is_optional and by_name["age"].type == "number"
        assert by_name["birthDate"].type == "date"
        assert by_name["role"].enum_values == ["admin", "user", "guest"]
        assert by_name["manager"].type == "objectid" and by_name["manager"].ref == "User"
        assert by_name["tags"].array_item_type == "string"
        assert by_name["orders"].array_item_type == "objectid"
        assert by_name["orders"].ref == "Order"

        addresses = by_name["addresses"]
        assert addresses.is_structured_array
        assert not addresses.is_required
        assert [p.name for p in addresses.object_properties] == ["street", "city", "zip"]
        assert addresses.object_properties[1].is_optional

    def test_required_structured_array(self, config):
        module_dir = _write_module(config, "Cart", ["lines!:array:object:sku:string"])
        lines = extract_fields_from_module(module_dir)[0]
        assert lines.is_structured_array and lines.is_required

    def test_scoped_and_escaped_enums(self, config):
        module_dir = _write_module(
            config,
            "Ticket",
            ["status[open,closed]", "tone[it's,ok]", "items:array:object:status:enum[a,b]"],
        )
        by_name = _by_name(extract_fields_from_module(module_dir))
        assert by_name["status"].enum_values == ["open", "closed"]
        assert by_name["tone"].enum_values == ["it's", "ok"]
        assert by_name["items"].object_properties[0].enum_values == ["a", "b"]

    def test_hand_written_interface(self, tmp_path):
        module_dir = tmp_path / "note"
        module_dir.mkdir()
        (module_dir / "note.interface.ts").write_text(
            textwrap.dedent(
                """\
                import { Model, Types } from 'mongoose';

                export type NoteModel = Model<INote, {}, {}>;

                export interface INote {
                  _id: Types.ObjectId;
                  kind: 'a' | 'b';
                  meta: Record<string, any>;
                  extra: any[];
                  pos: { x: number; y?: number };
                  createdAt: Date;
                }
                """
            ),
            encoding="utf-8",
        )
        by_name = _by_name(extract_fields_from_module(module_dir))
        assert set(by_name) == {"kind", "meta", "extra", "pos"}
        assert by_name["kind"].enum_values == ["a", "b"]
        assert by_name["meta"].type == "object" and by_name["meta"].object_properties is None
        assert by_name["extra"].type == "array" and by_name["extra"].array_item_type is None
        assert [p.name for p in by_name["pos"].object_properties] == ["x", "y"]
        # No model file: required follows the optional marker.
        assert by_name["kind"].is_required

    def test_no_interface_blocks(self, tmp_path):
        module_dir = tmp_path / "empty"
        module_dir.mkdir()
        (module_dir / "empty.interface.ts").write_text("// nothing\n", encoding="utf-8")
        assert extract_fields_from_module(module_dir) == []

    def test_missing_interface_raises(self, tmp_path):
        with pytest.raises(OSError):
            extract_fields_from_module(tmp_path)


# ---------------------------------------------------------------------------
# Documentation updates
# ---------------------------------------------------------------------------


class TestUpdateAllDocumentation:
    """Tests for ``update_all_documentation``."""

    def test_local_only(self, config, user_names, sample_fields):
        report = update_all_documentation(config, user_names, sample_fields)
        assert report.success
        assert not report.remote_synced
        assert pathlib.Path(report.postman_path).is_file()
        assert pathlib.Path(report.swagger_path).is_file()

    def test_flags_disable_outputs(self, offline_config, user_names, sample_fields):
        report = update_all_documentation(offline_config, user_names, sample_fields)
        assert report.success
        assert report.postman_path is None and report.swagger_path is None
        assert not offline_config.postman_path.exists()

    def test_remote_sync(self, project_dir, user_names, sample_fields):
        config = GeneratorConfig(
            base_dir=project_dir, postman_api_key="k", postman_collection_id="c"
        )
        fake = _RecordingPostman()
        with PostmanApiClient("k", transport=httpx.MockTransport(fake)) as client:
            report = update_all_documentation(config, user_names, sample_fields, client)
        assert report.remote_synced
        assert fake.methods == ["GET", "PUT"]
        assert fake.stored["item"][0]["name"] == "User API"

    def test_remote_failure_does_not_stop_swagger(self, project_dir, user_names, sample_fields):
        config = GeneratorConfig(
            base_dir=project_dir, postman_api_key="k", postman_collection_id="c"
        )
        failing = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "x"}))
        with PostmanApiClient("k", transport=failing) as client:
            report = update_all_documentation(config, user_names, sample_fields, client)
        assert not report.success
        assert not report.remote_synced
        assert report.errors[0].startswith("Error updating Postman collection")
        assert report.postman_path is not None
        assert pathlib.Path(report.swagger_path).is_file()


class TestUpdateExistingModules:
    """Tests for ``update_existing_modules_documentation``."""

    def test_missing_modules_dir(self, config):
        assert update_existing_modules_documentation(config) == 0

    def test_updates_every_module(self, config):
        _write_module(config, "Order", ["total!:number"])
        _write_module(config, "User", ["name:string"])
        (config.modules_path / "broken").mkdir()

        assert update_existing_modules_documentation(config) == 2
        swagger = json.loads(config.swagger_path.read_text(encoding="utf-8"))
        assert {"/order", "/user"} <= set(swagger["paths"])
        assert (config.postman_path / "order.postman_collection.json").is_file()

    def test_target_filter_is_case_insensitive(self, config):
        _write_module(config, "Order", ["total:number"])
        _write_module(config, "User", ["name:string"])
        assert update_existing_modules_documentation(config, ["USER"]) == 1
        assert not (config.postman_path / "order.postman_collection.json").exists()

    def test_unknown_target(self, config):
        _write_module(config, "User", ["name:string"])
        assert update_existing_modules_documentation(config, ["ghost"]) == 0

    def test_module_without_fields_is_skipped(self, config):
        _write_module(config, "Empty", [])
        assert update_existing_modules_documentation(config) == 0

    def test_shared_client_is_used(self, project_dir):
        config = GeneratorConfig(
            base_dir=project_dir, postman_api_key="k", postman_collection_id="c"
        )
        _write_module(config, "Order", ["total:number"])
        _write_module(config, "User", ["name:string"])
        fake = _RecordingPostman()
        with PostmanApiClient("k", transport=httpx.MockTransport(fake)) as client:
            assert update_existing_modules_documentation(config, client=client) == 2
        assert fake.methods == ["GET", "PUT", "GET", "PUT"]
        assert [f["name"] for f in fake.stored["item"]] == ["Order API", "User API"]
