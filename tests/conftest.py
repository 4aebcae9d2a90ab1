"""
tests/conftest.py
Shared fixtures for the modgen test suite.

No external mocking libraries are used; real file I/O is performed inside
temporary directories managed by pytest's tmp_path fixtures, and remote
calls go through ``httpx.MockTransport``.
"""

from __future__ import annotations

import os
import pathlib
import sys
import textwrap
from typing import Any, Dict, List

import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from modgen.models import FieldDefinition, GeneratorConfig, ModuleNames  # noqa: E402
from modgen.parser import parse_field_definitions  # noqa: E402


# ---------------------------------------------------------------------------
# Router file content
# ---------------------------------------------------------------------------

ROUTER_TEMPLATE: str = textwrap.dedent(
    """\
    import express from 'express';

    const router = express.Router();

    const apiRoutes = [
      // Routes will be added here
    ];

    apiRoutes.forEach(route => {
      router.use(route.path, route.route);
    });

    export default router;
    """
)

SAMPLE_TOKENS: List[str] = [
    "name!:string",
    "email:string",
    "age?:number",
    "isActive:boolean",
    "birthDate:date",
    "role[admin,user,guest]",
    "manager:objectid:User",
    "tags:array:string",
    "orders:array:objectid:Order",
    "addresses:array:object:street:string:city?:string:zip!:number",
]


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_postman_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure a developer's real Postman credentials never leak into tests."""
    for name in ("POSTMAN_API_KEY", "POSTMAN_COLLECTION_ID", "POSTMAN_API_URL"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """An empty Express project with only the central router file."""
    routes = tmp_path / "src" / "routes"
    routes.mkdir(parents=True)
    (routes / "index.ts").write_text(ROUTER_TEMPLATE, encoding="utf-8")
    return tmp_path


@pytest.fixture()
def config(project_dir: pathlib.Path) -> GeneratorConfig:
    return GeneratorConfig(base_dir=project_dir)


@pytest.fixture()
def offline_config(project_dir: pathlib.Path) -> GeneratorConfig:
    """Config with documentation disabled."""
    return GeneratorConfig(
        base_dir=project_dir, update_postman=False, update_swagger=False
    )


@pytest.fixture()
def user_names() -> ModuleNames:
    return ModuleNames.from_name("User")


@pytest.fixture()
def sample_tokens() -> List[str]:
    return list(SAMPLE_TOKENS)


@pytest.fixture()
def sample_fields() -> List[FieldDefinition]:
    result = parse_field_definitions(SAMPLE_TOKENS)
    assert len(result.fields) == len(SAMPLE_TOKENS)
    return result.fields


@pytest.fixture()
def simple_fields() -> List[FieldDefinition]:
    return parse_field_definitions(["title!:string", "price:number", "status[draft,live]"]).fields


# ---------------------------------------------------------------------------
# Config file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings_dict() -> Dict[str, Any]:
    return {
        "modulesDir": "app/modules",
        "routes_file": "app/routes.ts",
        "updateSwagger": False,
        "apiPrefix": "api/v2/",
    }


@pytest.fixture()
def settings_yaml_path(
    settings_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    """Write the settings dict to a temporary YAML file and return its path."""
    path = tmp_path / "modgen.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(settings_dict, fh, default_flow_style=False)
    return path
