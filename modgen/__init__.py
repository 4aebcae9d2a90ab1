# File: modgen/__init__.py
"""
modgen - Express + Mongoose Module Generator
=============================================

Scaffolds one backend module of an Express + Mongoose + Zod TypeScript
project from a compact field grammar, registers it in the central router and
keeps the Postman and Swagger documentation in sync.

Architecture overview::

    ┌──────────────┐     ┌─────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ModuleGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬────────┘     └────────┬─────────┘
                                  │                       ▼
           ┌──────────┬───────────┼───────────┐    ┌──────────────┐
           ▼          ▼           ▼           ▼    │ type_mapping │
      ┌────────┐ ┌──────────┐ ┌────────┐ ┌──────┐  └──────────────┘
      │ parser │ │exporters │ │ router │ │ docs │──▶ postman, postman_api,
      └────────┘ └──────────┘ └────────┘ └──────┘    swagger

Usage::

    # As a library
    from modgen import ModuleGenerator, load_config
    report = ModuleGenerator(load_config()).generate("User", ["name:string"])

    # From the command line
    modgen generate User name:string email!:string age?:number
"""

from __future__ import annotations

__version__: str = "0.2.0"
__author__: str = "Diegoproggramer"
__license__: str = "MIT"

from modgen.models import (
    ArtifactKind,
    FieldDefinition,
    FieldType,
    GeneratorConfig,
    ModuleNames,
)
from modgen.parser import ParseResult, parse_field_definitions, parse_field_token
from modgen.validators import ValidationResult, validate_fields, validate_module_name
from modgen.templates import TemplateGenerator
from modgen.exporters import ExportResult, FileRecord, ModuleExporter
from modgen.router import RouterPatchResult, patch_router_file
from modgen.postman import generate_postman_collection, save_postman_collection
from modgen.postman_api import PostmanApiClient, PostmanApiError
from modgen.swagger import update_swagger_file
from modgen.docs import (
    DocumentationReport,
    extract_fields_from_module,
    update_all_documentation,
    update_existing_modules_documentation,
)
from modgen.config import load_config
from modgen.generator import GenerationReport, ModuleGenerator

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core orchestrator
    "ModuleGenerator",
    "GenerationReport",
    # Models
    "ArtifactKind",
    "FieldDefinition",
    "FieldType",
    "GeneratorConfig",
    "ModuleNames",
    # Parsing & validation
    "ParseResult",
    "parse_field_definitions",
    "parse_field_token",
    "ValidationResult",
    "validate_fields",
    "validate_module_name",
    # Rendering & export
    "TemplateGenerator",
    "ModuleExporter",
    "ExportResult",
    "FileRecord",
    "RouterPatchResult",
    "patch_router_file",
    # Documentation
    "generate_postman_collection",
    "save_postman_collection",
    "PostmanApiClient",
    "PostmanApiError",
    "update_swagger_file",
    "DocumentationReport",
    "extract_fields_from_module",
    "update_all_documentation",
    "update_existing_modules_documentation",
    # Configuration
    "load_config",
]
