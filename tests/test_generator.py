"""
tests/test_generator.py
End-to-end tests for modgen.generator.ModuleGenerator.

Each test runs the full pipeline against a temporary project containing
only the central router file.
"""

from __future__ import annotations

import json
import pathlib

import httpx
import pytest

from modgen.generator import EXAMPLE_USAGE, NO_FIELDS_MESSAGE, ModuleGenerator
from modgen.models import GeneratorConfig
from modgen.postman_api import PostmanApiClient


class TestHappyPath:
    """A normal generation run."""

    def test_full_pipeline(self, config, sample_tokens):
        report = ModuleGenerator(config).generate("User", sample_tokens)

        assert report.success, report.summary()
        assert report.class_name == "User"
        assert report.total_fields == len(sample_tokens)
        assert report.total_files == 7
        assert report.total_bytes > 0 and report.total_lines > 0
        assert report.router_changed
        assert report.documentation is not None and report.documentation.success

        module_dir = pathlib.Path(report.module_directory)
        assert module_dir == config.modules_path / "user"
        assert (module_dir / "user.model.ts").is_file()

        router = config.routes_path.read_text(encoding="utf-8")
        assert "{ path: '/user', route: UserRoutes }" in router
        assert (config.postman_path / "user.postman_collection.json").is_file()
        swagger = json.loads(config.swagger_path.read_text(encoding="utf-8"))
        assert "/user/{id}" in swagger["paths"]

    def test_step_metrics(self, config):
        report = ModuleGenerator(config).generate("Tag", ["label:string"])
        steps = [s.step_name for s in report.step_metrics]
        assert steps == [
            "Parse Fields",
            "Validate Input",
            "Render Artifacts",
            "Export to Filesystem",
            "Patch Router",
            "Update Documentation",
        ]
        assert all(s.success for s in report.step_metrics)

    def test_docs_disabled(self, offline_config):
        report = ModuleGenerator(offline_config).generate("Tag", ["label:string"])
        assert report.success
        assert report.documentation is None
        assert not offline_config.swagger_path.exists()

    def test_multi_word_name(self, offline_config):
        report = ModuleGenerator(offline_config).generate("blog post", ["title:string"])
        assert report.class_name == "Blogpost"
        assert (offline_config.modules_path / "blogpost" / "blogpost.route.ts").is_file()

    def test_summary_mentions_module(self, offline_config):
        report = ModuleGenerator(offline_config).generate("Tag", ["label:string"])
        summary = report.summary()
        assert "SUCCESS" in summary
        assert "Tag" in summary
        assert "Pipeline Steps:" in summary


class TestControlTokens:
    def test_skip_artifacts(self, offline_config):
        report = ModuleGenerator(offline_config).generate(
            "Tag", ["label:string", "--skip", "constants", "service"]
        )
        assert report.success
        assert report.total_files == 5
        assert report.skipped_artifacts == ["constants", "service"]
        module_dir = offline_config.modules_path / "tag"
        assert not (module_dir / "tag.constants.ts").exists()

    def test_unknown_skip_is_a_warning(self, offline_config):
        report = ModuleGenerator(offline_config).generate(
            "Tag", ["label:string", "--skip", "models"]
        )
        assert report.success
        assert report.total_files == 7
        assert any("unknown_artifact" in w for w in report.validation_warnings)

    def test_file_upload(self, offline_config):
        report = ModuleGenerator(offline_config).generate("Post", ["title:string", "file:true"])
        assert report.success
        assert report.total_files == 8
        assert (offline_config.helpers_path / "fileHelper.ts").is_file()
        route = (offline_config.modules_path / "post" / "post.route.ts").read_text(encoding="utf-8")
        assert "fileAndBodyProcessorUsingDiskStorage()" in route


class TestEdgeCases:
    """No-ops, failures and lenient handling."""

    def test_no_fields_is_a_noop(self, config):
        report = ModuleGenerator(config).generate("User", [])
        assert report.success and report.no_op
        assert report.warnings == [NO_FIELDS_MESSAGE, EXAMPLE_USAGE]
        assert not config.modules_path.exists()
        assert "NOTHING TO DO" in report.summary()

    def test_only_bad_tokens_is_a_noop(self, config):
        report = ModuleGenerator(config).generate("User", ["garbage"])
        assert report.success and report.no_op
        assert any("skipped_token" in w for w in report.validation_warnings)

    def test_bad_tokens_are_dropped(self, offline_config):
        report = ModuleGenerator(offline_config).generate("Tag", ["label:string", "oops"])
        assert report.success
        assert report.total_fields == 1

    def test_strict_mode_fails_on_dropped_tokens(self, offline_config):
        report = ModuleGenerator(offline_config, strict=True).generate(
            "Tag", ["label:string", "oops"]
        )
        assert not report.success
        assert any("skipped_token" in e for e in report.validation_errors)
        assert not offline_config.modules_path.exists()

    def test_strict_mode_ignores_infos(self, offline_config):
        report = ModuleGenerator(offline_config, strict=True).generate(
            "Tag", ["label:string:Ignored"]
        )
        assert report.success

    @pytest.mark.parametrize("name", ["", "  ", "!!!"])
    def test_invalid_module_name(self, offline_config, name):
        report = ModuleGenerator(offline_config).generate(name, ["label:string"])
        assert not report.success
        assert report.validation_errors
        assert not offline_config.modules_path.exists()

    def test_existing_module_is_skipped(self, config):
        (config.modules_path / "user").mkdir(parents=True)
        report = ModuleGenerator(config).generate("User", ["name:string"])
        assert report.success and report.skipped_existing
        assert report.total_files == 0
        assert not report.router_changed
        assert "UserRoutes" not in config.routes_path.read_text(encoding="utf-8")
        assert "SKIPPED" in report.summary()

    def test_missing_router_is_a_warning(self, offline_config):
        offline_config.routes_path.unlink()
        report = ModuleGenerator(offline_config).generate("Tag", ["label:string"])
        assert report.success
        assert not report.router_changed
        assert any("Router file not found" in w for w in report.warnings)

    def test_second_run_does_not_touch_module(self, offline_config):
        generator = ModuleGenerator(offline_config)
        generator.generate("Tag", ["label:string"])
        model = offline_config.modules_path / "tag" / "tag.model.ts"
        before = model.read_text(encoding="utf-8")
        report = generator.generate("Tag", ["other:number"])
        assert report.skipped_existing
        assert model.read_text(encoding="utf-8") == before
        assert offline_config.routes_path.read_text(encoding="utf-8").count("route: TagRoutes") == 1


class TestRemoteDocumentation:
    def test_remote_failure_is_a_warning(self, project_dir):
        config = GeneratorConfig(
            base_dir=project_dir, postman_api_key="k", postman_collection_id="c"
        )
        transport = httpx.MockTransport(lambda request: httpx.Response(403, json={}))
        with PostmanApiClient("k", transport=transport) as client:
            report = ModuleGenerator(config, client=client).generate("Tag", ["label:string"])
        assert report.success
        assert not report.documentation.success
        assert any("Postman" in w for w in report.warnings)
        assert config.swagger_path.is_file()
