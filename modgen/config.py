# File: modgen/config.py
"""
modgen - Configuration Loader
==============================
Builds a ``GeneratorConfig`` from layered sources, lowest priority first:

    1. built-in defaults
    2. ``package.json`` → ``"moduleGenerator"`` section
    3. ``-c/--config`` file (JSON or YAML)
    4. environment (``.env`` via python-dotenv, then the process env)
    5. CLI overrides

Keys may be given in camelCase (``modulesDir``) or snake_case
(``modules_dir``).  Unknown keys are logged and ignored.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from modgen.models import GeneratorConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.config")

PACKAGE_JSON_SECTION: str = "moduleGenerator"

# Environment variable → config field.
ENV_VARIABLES: Dict[str, str] = {
    "POSTMAN_API_KEY": "postman_api_key",
    "POSTMAN_COLLECTION_ID": "postman_collection_id",
    "POSTMAN_API_URL": "postman_api_url",
}

_CAMEL_BOUNDARY_RE: re.Pattern[str] = re.compile(r"(?<=[a-z0-9])([A-Z])")
_CONFIG_FIELDS: frozenset = frozenset(GeneratorConfig.model_fields) - {"base_dir"}


# ---------------------------------------------------------------------------
# Key normalisation
# ---------------------------------------------------------------------------


def to_snake_key(key: str) -> str:
    """``modulesDir`` → ``modules_dir``; snake_case keys pass through."""
    return _CAMEL_BOUNDARY_RE.sub(r"_\1", key).lower()


def normalize_keys(raw: Mapping[str, Any], source: str) -> Dict[str, Any]:
    """Convert keys to field names, dropping unknown ones with a warning."""
    settings: Dict[str, Any] = {}
    for key, value in raw.items():
        name: str = to_snake_key(str(key))
        if name not in _CONFIG_FIELDS:
            logger.warning("Ignoring unknown setting '%s' in %s.", key, source)
            continue
        settings[name] = value
    return settings


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def _load_package_json(base_dir: Path) -> Dict[str, Any]:
    path: Path = base_dir / "package.json"
    if not path.is_file():
        return {}
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not load configuration from package.json, using defaults")
        return {}
    section: Any = data.get(PACKAGE_JSON_SECTION) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        return {}
    return normalize_keys(section, "package.json")


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a JSON or YAML settings file.

    Dispatches on the extension; anything else is tried as JSON, then YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or isn't a mapping.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text: str = path.read_text(encoding="utf-8")
    suffix: str = path.suffix.lower()

    data: Any
    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    else:
        # YAML is a superset of JSON, so it covers unknown extensions too.
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    return normalize_keys(data, str(path))


def _load_environment(env_file: Optional[Path]) -> Dict[str, Any]:
    """``.env`` values, overridden by the real process environment."""
    values: Dict[str, Optional[str]] = {}
    if env_file is not None and env_file.is_file():
        values.update(dotenv_values(env_file))
        logger.debug("Loaded environment file %s", env_file)
    for variable in ENV_VARIABLES:
        if os.environ.get(variable):
            values[variable] = os.environ[variable]

    settings: Dict[str, Any] = {}
    for variable, name in ENV_VARIABLES.items():
        value = values.get(variable)
        if value:
            settings[name] = value
    return settings


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    base_dir: Optional[Path] = None,
    config_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    env_file: Optional[Path] = None,
) -> GeneratorConfig:
    """
    Resolve the effective configuration for one invocation.

    Args:
        base_dir: Project root; defaults to the current directory.
        config_file: Optional JSON/YAML settings file.
        overrides: Highest-priority settings (CLI flags); ``None`` values
            are ignored.
        env_file: Dotenv file; defaults to ``<base_dir>/.env``.

    Raises:
        ValueError: If the config file is invalid or a setting fails
            validation.
    """
    root: Path = (base_dir or Path.cwd()).resolve()
    settings: Dict[str, Any] = {}

    settings.update(_load_package_json(root))

    if config_file is not None:
        path: Path = config_file if config_file.is_absolute() else root / config_file
        try:
            settings.update(load_config_file(path))
        except FileNotFoundError as exc:
            raise ValueError(str(exc)) from exc
        logger.info("Loaded configuration from %s", path)

    settings.update(_load_environment(env_file if env_file is not None else root / ".env"))

    if overrides:
        settings.update(
            normalize_keys({k: v for k, v in overrides.items() if v is not None}, "overrides")
        )

    try:
        config = GeneratorConfig(base_dir=root, **settings)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    logger.debug("Effective configuration: %r", config)
    return config


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PACKAGE_JSON_SECTION",
    "ENV_VARIABLES",
    "to_snake_key",
    "normalize_keys",
    "load_config_file",
    "load_config",
]

logger.debug("modgen.config loaded.")
