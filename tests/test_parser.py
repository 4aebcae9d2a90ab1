"""
tests/test_parser.py
Unit tests for modgen.parser: the positional field grammar.
"""

from __future__ import annotations

import pytest

from modgen.models import FieldType
from modgen.parser import (
    parse_field_definitions,
    parse_field_token,
    split_enum_values,
    strip_decorations,
)
from modgen.validators import ValidationResult


class TestStripDecorations:
    """Trailing ``?`` and ``!`` markers."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("name", ("name", False, False)),
            ("name?", ("name", True, False)),
            ("name!", ("name", False, True)),
            ("name?!", ("name", True, True)),
            ("name!?", ("name", True, True)),
        ],
    )
    def test_markers(self, raw, expected):
        assert strip_decorations(raw) == expected

    def test_split_enum_values_drops_empties(self):
        assert split_enum_values(" a, ,b ,") == ["a", "b"]


class TestPlainFields:
    """``name[?|!]:type[:ref]`` tokens."""

    def test_simple_string(self):
        f = parse_field_token("name:string")
        assert f.name == "name"
        assert f.type == "string"
        assert not f.is_optional and not f.is_required

    def test_required_and_optional_markers(self):
        assert parse_field_token("email!:string").is_required
        assert parse_field_token("age?:number").is_optional

    def test_type_tag_is_lowercased(self):
        assert parse_field_token("count:NUMBER").type == "number"

    def test_derived_helpers(self):
        assert parse_field_token("items:array:object:sku:string").is_structured_array
        assert not parse_field_token("tags:array:string").is_structured_array
        assert parse_field_token("status[a]").has_enum_values
        for name in ("type_tag", "has_properties", "capitalized_name"):
            assert not hasattr(parse_field_token("name:string"), name)

    def test_id_alias_becomes_objectid(self):
        f = parse_field_token("owner:id:User")
        assert f.type == FieldType.OBJECTID.value
        assert f.ref == "User"

    def test_reference_on_objectid(self):
        f = parse_field_token("author:objectid:User")
        assert f.ref == "User"

    def test_reference_on_scalar_is_dropped_with_info(self):
        diagnostics = ValidationResult()
        f = parse_field_token("title:string:Whatever", diagnostics)
        assert f.ref is None
        assert "ignored_ref" in diagnostics.codes()
        assert diagnostics.is_valid

    def test_unknown_type_is_kept(self):
        assert parse_field_token("x:uuid").type == "uuid"

    @pytest.mark.parametrize("token", ["_id:string", "_ID:objectid", "_id[a,b]"])
    def test_identity_field_is_ignored(self, token):
        assert parse_field_token(token) is None

    def test_token_without_colon_is_skipped(self):
        diagnostics = ValidationResult()
        assert parse_field_token("justaname", diagnostics) is None
        assert diagnostics.codes() == ["skipped_token"]

    def test_empty_name(self):
        diagnostics = ValidationResult()
        assert parse_field_token("?:string", diagnostics) is None
        assert diagnostics.codes() == ["empty_name"]

    def test_empty_type(self):
        diagnostics = ValidationResult()
        assert parse_field_token("name:", diagnostics) is None
        assert diagnostics.codes() == ["skipped_token"]


class TestEnumFields:
    """Both enum notations."""

    def test_shorthand(self):
        f = parse_field_token("status[active,inactive]")
        assert f.type == "enum"
        assert f.enum_values == ["active", "inactive"]

    def test_shorthand_with_markers(self):
        f = parse_field_token("status?![a,b]")
        assert f.is_optional and f.is_required
        assert f.name == "status"

    def test_type_position(self):
        f = parse_field_token("level:enum[low, high]")
        assert f.enum_values == ["low", "high"]

    def test_notations_are_equivalent(self):
        shorthand = parse_field_token("status[active,inactive]")
        typed = parse_field_token("status:enum[active,inactive]")
        assert shorthand == typed
        assert parse_field_token("status?![a,b]") == parse_field_token("status?!:enum[a,b]")

    def test_empty_values_fall_back_to_none(self):
        f = parse_field_token("level:enum[]")
        assert f.type == "enum"
        assert f.enum_values is None
        assert not f.has_enum_values


class TestArrayFields:
    """Scalar, reference and structured arrays."""

    def test_scalar_array(self):
        f = parse_field_token("tags:array:string")
        assert f.type == "array"
        assert f.array_item_type == "string"
        assert f.ref is None

    def test_reference_array(self):
        f = parse_field_token("members:array:objectid:User")
        assert f.array_item_type == "objectid"
        assert f.ref == "User"

    def test_bare_array(self):
        f = parse_field_token("misc:array")
        assert f.array_item_type is None
        assert not f.is_structured_array

    def test_structured_array(self):
        f = parse_field_token("items:array:object:sku:string:qty!:number:note?:string")
        assert f.is_structured_array
        assert f.ref == "object"
        names = [p.name for p in f.object_properties]
        assert names == ["sku", "qty", "note"]
        assert f.object_properties[1].is_required
        assert f.object_properties[2].is_optional

    def test_structured_array_enum_child(self):
        f = parse_field_token("items:array:object:kind:enum[a,b]")
        assert f.object_properties[0].enum_values == ["a", "b"]

    def test_structured_array_without_properties(self):
        f = parse_field_token("items:array:object")
        assert f.ref == "object"
        assert f.object_properties is None
        assert not f.is_structured_array

    def test_dangling_property_is_reported(self):
        diagnostics = ValidationResult()
        f = parse_field_token("items:array:object:sku:string:orphan", diagnostics)
        assert [p.name for p in f.object_properties] == ["sku"]
        assert "dangling_property" in diagnostics.codes()

    def test_child_identity_field_is_dropped(self):
        f = parse_field_token("items:array:object:_id:string:sku:string")
        assert [p.name for p in f.object_properties] == ["sku"]

    def test_flattening_disabled(self):
        diagnostics = ValidationResult()
        f = parse_field_token(
            "items:array:object:sku:string", diagnostics, max_object_depth=0
        )
        assert f.object_properties is None
        assert "depth_exceeded" in diagnostics.codes()


class TestParseFieldDefinitions:
    """Whole token lists with control tokens."""

    def test_order_is_preserved(self, sample_fields):
        assert [f.name for f in sample_fields][:3] == ["name", "email", "age"]

    def test_skip_collects_rest(self):
        result = parse_field_definitions(
            ["name:string", "--skip", "model", "route"]
        )
        assert result.field_names == ["name"]
        assert result.skip_artifacts == ["model", "route"]

    @pytest.mark.parametrize("marker", ["file:true", "--file:true"])
    def test_file_upload_flag(self, marker):
        result = parse_field_definitions(["name:string", marker])
        assert result.has_file_upload
        assert result.field_names == ["name"]

    def test_file_flag_after_skip_is_still_a_flag(self):
        result = parse_field_definitions(["--skip", "model", "file:true"])
        assert result.has_file_upload
        assert result.skip_artifacts == ["model"]

    def test_bad_tokens_become_diagnostics(self):
        result = parse_field_definitions(["nonsense", "ok:string"])
        assert result.field_names == ["ok"]
        assert result.diagnostics.has_warnings
        assert not result.diagnostics.has_errors

    def test_parsing_is_deterministic(self, sample_tokens):
        first = parse_field_definitions(sample_tokens)
        second = parse_field_definitions(sample_tokens)
        assert first.fields == second.fields
        assert first.diagnostics.codes() == second.diagnostics.codes()

    def test_empty_input(self):
        result = parse_field_definitions([])
        assert result.fields == []
        assert len(result.diagnostics) == 0
