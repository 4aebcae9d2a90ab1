"""
tests/test_exporters.py
Unit tests for modgen.exporters: writing module files to disk.
"""

from __future__ import annotations

import hashlib
import pathlib

from modgen.exporters import FILE_HELPER_NAME, ModuleExporter
from modgen.templates import TemplateGenerator


def _rendered(names, fields, **kwargs):
    return TemplateGenerator(names, fields, **kwargs).generate_all()


class TestModuleExporter:
    """Tests for ``ModuleExporter.export``."""

    def test_writes_seven_files(self, config, user_names, sample_fields):
        result = ModuleExporter(config).export(user_names, _rendered(user_names, sample_fields))
        assert result.success
        assert result.created
        module_dir = pathlib.Path(result.module_dir)
        assert module_dir == config.modules_path / "user"
        names = sorted(p.name for p in module_dir.iterdir())
        assert names == sorted(
            f"user.{k}.ts"
            for k in ("interface", "model", "controller", "service", "route", "validation", "constants")
        )

    def test_records_match_disk(self, config, user_names, simple_fields):
        result = ModuleExporter(config).export(user_names, _rendered(user_names, simple_fields))
        for record in result.files:
            data = pathlib.Path(record.path).read_bytes()
            assert record.size_bytes == len(data)
            assert record.sha256 == hashlib.sha256(data).hexdigest()
            assert record.line_count > 0
        assert result.total_bytes == sum(r.size_bytes for r in result.files)
        assert result.written_paths == [r.path for r in result.files]

    def test_write_order_follows_rendered(self, config, user_names, simple_fields):
        rendered = _rendered(user_names, simple_fields)
        result = ModuleExporter(config, atomic_writes=False).export(user_names, rendered)
        assert [r.kind for r in result.files] == list(rendered)

    def test_existing_module_is_left_alone(self, config, user_names, simple_fields):
        existing = config.modules_path / "user"
        existing.mkdir(parents=True)
        marker = existing / "keep.txt"
        marker.write_text("mine", encoding="utf-8")

        result = ModuleExporter(config).export(user_names, _rendered(user_names, simple_fields))
        assert result.skipped_existing
        assert result.success
        assert not result.created
        assert result.files == []
        assert "already exists" in result.warnings[0]
        assert [p.name for p in existing.iterdir()] == ["keep.txt"]

    def test_partial_render(self, config, user_names, simple_fields):
        rendered = TemplateGenerator(user_names, simple_fields).generate_all(skip=["route"])
        result = ModuleExporter(config).export(user_names, rendered)
        assert not (config.modules_path / "user" / "user.route.ts").exists()
        assert len(result.files) == 6


class TestFileHelper:
    """The shared upload helper."""

    def test_written_when_upload(self, config, user_names, simple_fields):
        result = ModuleExporter(config).export(
            user_names,
            _rendered(user_names, simple_fields, has_file_upload=True),
            has_file_upload=True,
        )
        helper = config.helpers_path / FILE_HELPER_NAME
        assert helper.is_file()
        assert result.files[-1].kind == "file_helper"

    def test_not_written_without_upload(self, config, user_names, simple_fields):
        ModuleExporter(config).export(user_names, _rendered(user_names, simple_fields))
        assert not (config.helpers_path / FILE_HELPER_NAME).exists()

    def test_existing_helper_is_not_overwritten(self, config, user_names, simple_fields):
        config.helpers_path.mkdir(parents=True)
        helper = config.helpers_path / FILE_HELPER_NAME
        helper.write_text("// custom", encoding="utf-8")
        result = ModuleExporter(config).export(
            user_names, _rendered(user_names, simple_fields), has_file_upload=True
        )
        assert helper.read_text(encoding="utf-8") == "// custom"
        assert all(r.kind != "file_helper" for r in result.files)
