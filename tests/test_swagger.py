"""
tests/test_swagger.py
Unit tests for modgen.swagger: OpenAPI document updates.
"""

from __future__ import annotations

import json

from modgen.models import ModuleNames
from modgen.parser import parse_field_definitions
from modgen.swagger import (
    default_document,
    generate_swagger_paths,
    generate_swagger_schemas,
    merge_document,
    update_swagger_file,
)


class TestPaths:
    """Tests for ``generate_swagger_paths``."""

    def test_path_keys_and_methods(self, user_names, sample_fields):
        paths = generate_swagger_paths(user_names, sample_fields)
        assert set(paths) == {"/user", "/user/{id}"}
        assert set(paths["/user"]) == {"post", "get"}
        assert set(paths["/user/{id}"]) == {"get", "patch", "delete"}

    def test_request_bodies_reference_schemas(self, user_names, sample_fields):
        paths = generate_swagger_paths(user_names, sample_fields)
        post_schema = paths["/user"]["post"]["requestBody"]["content"]["application/json"]["schema"]
        patch_schema = paths["/user/{id}"]["patch"]["requestBody"]["content"]["application/json"]["schema"]
        assert post_schema == {"$ref": "#/components/schemas/UserCreate"}
        assert patch_schema == {"$ref": "#/components/schemas/UserUpdate"}

    def test_list_response_is_array(self, user_names, sample_fields):
        paths = generate_swagger_paths(user_names, sample_fields)
        data = paths["/user"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]["properties"]["data"]
        assert data == {"type": "array", "items": {"$ref": "#/components/schemas/User"}}

    def test_id_parameter(self, user_names, sample_fields):
        params = generate_swagger_paths(user_names, sample_fields)["/user/{id}"]["delete"]["parameters"]
        assert params[0]["name"] == "id"
        assert params[0]["in"] == "path"
        assert params[0]["required"] is True


class TestSchemas:
    """Tests for ``generate_swagger_schemas``."""

    def test_schema_names(self, user_names, sample_fields):
        schemas = generate_swagger_schemas(user_names, sample_fields)
        assert list(schemas) == ["AddressesItem", "User", "UserCreate", "UserUpdate"]

    def test_document_schema(self, user_names, sample_fields):
        user = generate_swagger_schemas(user_names, sample_fields)["User"]
        assert list(user["properties"])[0] == "_id"
        assert list(user["properties"])[-2:] == ["createdAt", "updatedAt"]
        assert user["required"] == ["_id", "name"]

    def test_create_and_update(self, user_names, sample_fields):
        schemas = generate_swagger_schemas(user_names, sample_fields)
        assert schemas["UserCreate"]["required"] == ["name"]
        assert "_id" not in schemas["UserCreate"]["properties"]
        assert "required" not in schemas["UserUpdate"]
        assert schemas["UserUpdate"]["properties"] == schemas["UserCreate"]["properties"]

    def test_item_schema(self, user_names, sample_fields):
        item = generate_swagger_schemas(user_names, sample_fields)["AddressesItem"]
        assert set(item["properties"]) == {"street", "city", "zip"}
        assert item["required"] == ["zip"]
        assert "_id" not in item["properties"]


class TestDocument:
    """Merging into ``swagger.json``."""

    def test_merge_keeps_other_modules(self, user_names, sample_fields):
        document = default_document()
        document["paths"]["/order"] = {"get": {}}
        document["components"]["schemas"]["Order"] = {"type": "object"}
        merged = merge_document(
            document,
            generate_swagger_paths(user_names, sample_fields),
            generate_swagger_schemas(user_names, sample_fields),
        )
        assert "/order" in merged["paths"] and "/user" in merged["paths"]
        assert "Order" in merged["components"]["schemas"]
        assert "/user" not in document["paths"]

    def test_creates_file(self, config, user_names, sample_fields):
        path = update_swagger_file(config, user_names, sample_fields)
        assert path == config.swagger_path
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["openapi"] == "3.0.0"
        assert "/user/{id}" in document["paths"]

    def test_preserves_existing_info(self, config, user_names, sample_fields):
        config.swagger_path.write_text(
            json.dumps({"openapi": "3.0.1", "info": {"title": "Shop"}, "paths": {"/x": {}}}),
            encoding="utf-8",
        )
        update_swagger_file(config, user_names, sample_fields)
        document = json.loads(config.swagger_path.read_text(encoding="utf-8"))
        assert document["info"] == {"title": "Shop"}
        assert set(document["paths"]) == {"/x", "/user", "/user/{id}"}
        assert "User" in document["components"]["schemas"]

    def test_regeneration_replaces_module_schema(self, config, user_names):
        first = parse_field_definitions(["a:string"]).fields
        second = parse_field_definitions(["b:number"]).fields
        update_swagger_file(config, user_names, first)
        update_swagger_file(config, user_names, second)
        document = json.loads(config.swagger_path.read_text(encoding="utf-8"))
        assert set(document["components"]["schemas"]["UserCreate"]["properties"]) == {"b"}

    def test_invalid_file_is_replaced(self, config, sample_fields):
        config.swagger_path.write_text("[1, 2", encoding="utf-8")
        update_swagger_file(config, ModuleNames.from_name("Tag"), sample_fields)
        document = json.loads(config.swagger_path.read_text(encoding="utf-8"))
        assert document["info"]["title"] == "API Documentation"
        assert "/tag" in document["paths"]
