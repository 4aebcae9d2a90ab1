# File: modgen/templates.py
"""
modgen - Code Template Engine
==============================
Renders the TypeScript source of one Express + Mongoose module:

    1. ``<m>.interface.ts``   static types, enums, filterables
    2. ``<m>.model.ts``       Mongoose schema + model
    3. ``<m>.controller.ts``  catchAsync / sendResponse handlers
    4. ``<m>.service.ts``     data access with ApiError handling
    5. ``<m>.route.ts``       express router with auth + validateRequest
    6. ``<m>.validation.ts``  Zod request validators
    7. ``<m>.constants.ts``   filterable / searchable field lists

Field-level expressions come from ``modgen.type_mapping``; this module only
assembles files.  All assembly uses ``List[str]`` + ``"\\n".join()``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from modgen.models import ArtifactKind, FieldDefinition, FieldType, ModuleNames
from modgen.type_mapping import (
    enum_type_name,
    item_schema_name,
    item_type_name,
    mongoose_field_expression,
    nested_definitions,
    typescript_property,
    visible_fields,
    zod_expression,
)
from modgen.utils import quote_ts, to_enum_key

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "

# Field names that switch on multipart upload handling in route/controller.
UPLOAD_FIELD_NAMES: frozenset = frozenset({"image", "images", "media"})

_AUTH_BLOCK: List[str] = [
    "  auth(",
    "    USER_ROLES.SUPER_ADMIN,",
    "    USER_ROLES.ADMIN",
    "  ),",
]


# ---------------------------------------------------------------------------
# TemplateGenerator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Renders every artifact for one module.

    Stateless apart from the inputs given to ``__init__``; each
    ``generate_*`` method returns a complete file body.
    """

    def __init__(
        self,
        names: ModuleNames,
        fields: Sequence[FieldDefinition],
        *,
        has_file_upload: bool = False,
    ) -> None:
        self._names: ModuleNames = names
        self._fields: List[FieldDefinition] = visible_fields(fields)
        self._has_file_upload: bool = has_file_upload
        logger.debug(
            "TemplateGenerator initialised for %s (%d fields, upload=%s).",
            names.class_name,
            len(self._fields),
            has_file_upload,
        )

    # -- Shared helpers -----------------------------------------------------

    @property
    def uses_file_upload(self) -> bool:
        """True when uploads were requested or an image-like field exists."""
        if self._has_file_upload:
            return True
        return any(
            f.name in UPLOAD_FIELD_NAMES or f.type == "image" for f in self._fields
        )

    @property
    def upload_field(self) -> str:
        """Body key that receives the uploaded file(s)."""
        for f in self._fields:
            if f.name in UPLOAD_FIELD_NAMES:
                return f.name
        return "image"

    def _filterable_fields(self) -> List[FieldDefinition]:
        return [
            f
            for f in self._fields
            if f.type in (FieldType.STRING.value, FieldType.ENUM.value)
        ]

    def _searchable_fields(self) -> List[FieldDefinition]:
        return [f for f in self._fields if f.type == FieldType.STRING.value]

    # ===================================================================
    # 1. Interface
    # ===================================================================

    def generate_interface(self) -> str:
        """Nested item interfaces, enums, filterables, main interface, model type."""
        cls: str = self._names.class_name
        lines: List[str] = ["import { Model, Types } from 'mongoose';", ""]

        for nested in nested_definitions(self._fields):
            lines.append(f"export interface {item_type_name(nested)} {{")
            for prop in visible_fields(nested.object_properties or []):
                lines.append(f"{_INDENT}{typescript_property(prop, nested)};")
            lines.extend(["}", ""])

        for type_name, enum_field in self._enum_declarations(self._fields):
            lines.append(f"export enum {type_name} {{")
            for key, value in self._enum_members(enum_field.enum_values or []):
                lines.append(f"{_INDENT}{key} = {quote_ts(value)},")
            lines.extend(["}", ""])

        filterables: List[FieldDefinition] = self._filterable_fields()
        if filterables:
            lines.append(f"export interface I{cls}Filterables {{")
            lines.append(f"{_INDENT}searchTerm?: string;")
            for f in filterables:
                filterable = f.model_copy(update={"is_optional": True})
                lines.append(f"{_INDENT}{typescript_property(filterable)};")
            lines.extend(["}", ""])

        lines.append(f"export interface I{cls} {{")
        lines.append(f"{_INDENT}_id: Types.ObjectId;")
        if self._fields:
            for f in self._fields:
                lines.append(f"{_INDENT}{typescript_property(f)};")
        else:
            lines.append(f"{_INDENT}// Define interface properties here")
        lines.extend(["}", ""])

        lines.append(f"export type {cls}Model = Model<I{cls}, {{}}, {{}}>;")
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _enum_declarations(
        fields: Sequence[FieldDefinition],
    ) -> List[Tuple[str, FieldDefinition]]:
        """
        ``(type name, field)`` for enum fields at every depth.  Nested enums
        are named after their owner; each name is declared once.
        """
        found: Dict[str, FieldDefinition] = {}

        def _visit(items: Sequence[FieldDefinition], owner: Optional[FieldDefinition]) -> None:
            for f in items:
                if f.object_properties:
                    _visit(f.object_properties, f)
                if f.has_enum_values:
                    found.setdefault(enum_type_name(f, owner), f)

        _visit(fields, None)
        return list(found.items())

    @staticmethod
    def _enum_members(values: Sequence[str]) -> List[Tuple[str, str]]:
        """Member keys for *values*; colliding keys get ``_2``, ``_3`` suffixes."""
        members: List[Tuple[str, str]] = []
        used: Dict[str, int] = {}
        for value in values:
            base: str = to_enum_key(value)
            key: str = base
            while key in used:
                used[base] += 1
                key = f"{base}_{used[base]}"
            used.setdefault(base, 1)
            used.setdefault(key, 1)
            members.append((key, value))
        return members

    # ===================================================================
    # 2. Model
    # ===================================================================

    def generate_model(self) -> str:
        """Mongoose schema with nested item schemas declared first."""
        cls: str = self._names.class_name
        folder: str = self._names.folder_name
        lines: List[str] = [
            "import { Schema, model } from 'mongoose';",
            f"import {{ I{cls}, {cls}Model }} from './{folder}.interface';",
            "",
        ]

        for nested in nested_definitions(self._fields):
            lines.append(f"const {item_schema_name(nested)} = new Schema({{")
            for prop in visible_fields(nested.object_properties or []):
                lines.append(f"{_INDENT}{prop.name}: {mongoose_field_expression(prop, with_default=True)},")
            lines.extend(["}, { _id: false });", ""])

        lines.append(f"const {folder}Schema = new Schema<I{cls}, {cls}Model>({{")
        if self._fields:
            for f in self._fields:
                lines.append(f"{_INDENT}{f.name}: {mongoose_field_expression(f, with_default=True)},")
        else:
            lines.append(f"{_INDENT}// Define schema fields here")
        lines.extend([
            "}, {",
            f"{_INDENT}timestamps: true",
            "});",
            "",
            f"export const {cls} = model<I{cls}, {cls}Model>('{cls}', {folder}Schema);",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # 3. Validation
    # ===================================================================

    def generate_validation(self) -> str:
        """Zod validators: create, update, getById, getAll, delete."""
        cls: str = self._names.class_name
        lines: List[str] = ["import { z } from 'zod';", ""]

        for nested in nested_definitions(self._fields):
            lines.append(f"const {item_schema_name(nested)} = z.object({{")
            for prop in visible_fields(nested.object_properties or []):
                lines.append(f"{_INDENT}{prop.name}: {zod_expression(prop)},")
            lines.extend(["});", ""])

        id_params: List[str] = [
            "    params: z.object({",
            "      id: z.string(),",
        ]

        lines.append(f"export const {cls}Validations = {{")

        # create
        lines.append("  create: z.object({")
        lines.append("    body: z.object({")
        lines.extend(self._zod_body_lines(force_optional=False))
        lines.append("    }),")
        lines.extend(id_params)
        lines.extend(["    }).optional(),", "  }),", ""])

        # update: every body field optional
        lines.append("  update: z.object({")
        lines.append("    body: z.object({")
        lines.extend(self._zod_body_lines(force_optional=True))
        lines.append("    }),")
        lines.extend(id_params)
        lines.extend(["    }),", "  }),", ""])

        # getById
        lines.append("  getById: z.object({")
        lines.extend(id_params)
        lines.extend(["    }),", "  }),", ""])

        # getAll
        lines.extend([
            "  getAll: z.object({",
            "    query: z.object({",
            "      page: z.string().optional(),",
            "      limit: z.string().optional(),",
            "      sortBy: z.string().optional(),",
            "      sortOrder: z.string().optional(),",
            "    }).optional(),",
            "  }),",
            "",
        ])

        # delete
        lines.append("  delete: z.object({")
        lines.extend(id_params)
        lines.extend(["    }),", "  }),", "};", ""])
        return "\n".join(lines)

    def _zod_body_lines(self, force_optional: bool) -> List[str]:
        if not self._fields:
            return ["      // Add validation fields"]
        return [
            f"      {f.name}: {zod_expression(f, force_optional=force_optional)},"
            for f in self._fields
        ]

    # ===================================================================
    # 4. Controller
    # ===================================================================

    def _body_extraction(self) -> List[str]:
        folder: str = self._names.folder_name
        if not self.uses_file_upload:
            return [f"    const {folder}Data = req.body;"]
        key: str = self.upload_field
        return [
            f"    const {{ {key}, ...{folder}Data }} = req.body;",
            f"    if ({key}?.length > 0) {{",
            f"      {folder}Data.{key} = {key}[0];",
            "    }",
        ]

    def generate_controller(self) -> str:
        cls: str = self._names.class_name
        folder: str = self._names.folder_name
        lines: List[str] = [
            "import { Request, Response } from 'express';",
            f"import {{ {cls}Services }} from './{folder}.service';",
            "import catchAsync from '../../../shared/catchAsync';",
            "import sendResponse from '../../../shared/sendResponse';",
            "import { StatusCodes } from 'http-status-codes';",
            "",
        ]

        def handler(
            fn: str,
            call: str,
            status: str,
            message: str,
            prelude: Optional[List[str]] = None,
        ) -> List[str]:
            block: List[str] = [
                f"const {fn} = catchAsync(async (req: Request, res: Response) => {{",
            ]
            block.extend(prelude or [])
            block.extend([
                f"    const result = await {cls}Services.{call};",
                "    sendResponse(res, {",
                f"      statusCode: StatusCodes.{status},",
                "      success: true,",
                f"      message: '{message}',",
                "      data: result,",
                "    });",
                "});",
                "",
            ])
            return block

        id_line: List[str] = ["    const { id } = req.params;"]

        lines.extend(handler(
            f"create{cls}", f"create{cls}({folder}Data)", "CREATED",
            f"{cls} created successfully", self._body_extraction(),
        ))
        lines.extend(handler(
            f"update{cls}", f"update{cls}(id, {folder}Data)", "OK",
            f"{cls} updated successfully", id_line + self._body_extraction(),
        ))
        lines.extend(handler(
            f"delete{cls}", f"delete{cls}(id)", "OK",
            f"{cls} deleted successfully", id_line,
        ))
        lines.extend(handler(
            f"get{cls}", f"get{cls}(id)", "OK",
            f"{cls} retrieved successfully", id_line,
        ))
        lines.extend(handler(
            f"getAll{cls}s", f"getAll{cls}s()", "OK",
            f"{cls}s retrieved successfully",
        ))

        lines.extend(self._export_object(f"{cls}Controller"))
        return "\n".join(lines)

    def _export_object(self, symbol: str) -> List[str]:
        cls: str = self._names.class_name
        return [
            f"export const {symbol} = {{",
            f"  create{cls},",
            f"  update{cls},",
            f"  delete{cls},",
            f"  get{cls},",
            f"  getAll{cls}s,",
            "};",
            "",
        ]

    # ===================================================================
    # 5. Service
    # ===================================================================

    def generate_service(self) -> str:
        cls: str = self._names.class_name
        folder: str = self._names.folder_name
        upload: bool = self.uses_file_upload
        key: str = self.upload_field

        lines: List[str] = [
            "import { StatusCodes } from 'http-status-codes';",
            "import ApiError from '../../../errors/ApiError';",
            f"import {{ I{cls} }} from './{folder}.interface';",
            f"import {{ {cls} }} from './{folder}.model';",
            "import { Types } from 'mongoose';",
        ]
        if upload:
            lines.append("import { removeUploadedFiles } from '../../../helpers/fileHelper';")
        lines.append("")

        lines.append(f"const create{cls} = async (payload: I{cls}): Promise<I{cls}> => {{")
        lines.append(f"  const result = await {cls}.create(payload);")
        lines.append("  if (!result) {")
        if upload:
            lines.append(f"    removeUploadedFiles(payload.{key});")
        lines.append(
            f"    throw new ApiError(StatusCodes.BAD_REQUEST, 'Failed to create {folder}');"
        )
        lines.extend(["  }", "  return result;", "};", ""])

        lines.extend([
            f"const update{cls} = async (",
            "  id: string,",
            f"  payload: Partial<I{cls}>,",
            f"): Promise<I{cls} | null> => {{",
            f"  const isExist = await {cls}.findById(new Types.ObjectId(id));",
            "  if (!isExist) {",
        ])
        if upload:
            lines.append(f"    removeUploadedFiles(payload.{key});")
        lines.extend([
            f"    throw new ApiError(StatusCodes.NOT_FOUND, '{cls} not found');",
            "  }",
            f"  const result = await {cls}.findOneAndUpdate({{ _id: id }}, payload, {{",
            "    new: true,",
            "  });",
        ])
        if upload:
            lines.extend([
                f"  if (payload.{key} && isExist.{key}) {{",
                f"    removeUploadedFiles(isExist.{key});",
                "  }",
            ])
        lines.extend(["  return result;", "};", ""])

        lines.extend([
            f"const delete{cls} = async (id: string): Promise<I{cls} | null> => {{",
            f"  const result = await {cls}.findByIdAndDelete(new Types.ObjectId(id));",
            "  if (!result) {",
            f"    throw new ApiError(StatusCodes.BAD_REQUEST, 'Failed to delete {folder}.');",
            "  }",
        ])
        if upload:
            lines.append(f"  removeUploadedFiles(result.{key});")
        lines.extend(["  return result;", "};", ""])

        lines.extend([
            f"const get{cls} = async (id: string): Promise<I{cls} | null> => {{",
            f"  const result = await {cls}.findById(new Types.ObjectId(id));",
            "  if (!result) {",
            f"    throw new ApiError(StatusCodes.NOT_FOUND, 'Requested {folder} not found.');",
            "  }",
            "  return result;",
            "};",
            "",
            f"const getAll{cls}s = async (): Promise<I{cls}[]> => {{",
            f"  const result = await {cls}.find();",
            "  return result;",
            "};",
            "",
        ])

        lines.extend(self._export_object(f"{cls}Services"))
        return "\n".join(lines)

    # ===================================================================
    # 6. Route
    # ===================================================================

    def generate_route(self) -> str:
        cls: str = self._names.class_name
        folder: str = self._names.folder_name
        upload: bool = self.uses_file_upload

        lines: List[str] = [
            "import express from 'express';",
            f"import {{ {cls}Controller }} from './{folder}.controller';",
            f"import {{ {cls}Validations }} from './{folder}.validation';",
            "import validateRequest from '../../middleware/validateRequest';",
            "import auth from '../../middleware/auth';",
            "import { USER_ROLES } from '../../../enum/user';",
        ]
        if upload:
            lines.append(
                "import { fileAndBodyProcessorUsingDiskStorage } from "
                "'../../middleware/processReqBody';"
            )
        lines.extend(["", "const router = express.Router();", ""])

        def route(method: str, path: str, middleware: List[str], action: str) -> List[str]:
            block: List[str] = [f"router.{method}(", f"  '{path}',"]
            block.extend(_AUTH_BLOCK)
            block.extend(f"  {m}," for m in middleware)
            block.extend([f"  {cls}Controller.{action}", ");", ""])
            return block

        body_middleware: List[str] = (
            ["fileAndBodyProcessorUsingDiskStorage()"] if upload else []
        )

        lines.extend(route("get", "/", [], f"getAll{cls}s"))
        lines.extend(route("get", "/:id", [], f"get{cls}"))
        lines.extend(route(
            "post", "/",
            body_middleware + [f"validateRequest({cls}Validations.create)"],
            f"create{cls}",
        ))
        lines.extend(route(
            "patch", "/:id",
            body_middleware + [f"validateRequest({cls}Validations.update)"],
            f"update{cls}",
        ))
        lines.extend(route("delete", "/:id", [], f"delete{cls}"))

        lines.extend([f"export const {cls}Routes = router;", ""])
        return "\n".join(lines)

    # ===================================================================
    # 7. Constants
    # ===================================================================

    def generate_constants(self) -> str:
        cls: str = self._names.class_name
        folder: str = self._names.folder_name
        filterable: str = ", ".join(f"'{f.name}'" for f in self._filterable_fields())
        searchable: str = ", ".join(f"'{f.name}'" for f in self._searchable_fields())
        lines: List[str] = [
            f"// Filterable fields for {cls}",
            f"export const {folder}Filterables = [{filterable}];",
            "",
            f"// Searchable fields for {cls}",
            f"export const {folder}SearchableFields = [{searchable}];",
            "",
            "// Helper function for set comparison",
            "export const isSetEqual = (setA: Set<string>, setB: Set<string>): boolean => {",
            "  if (setA.size !== setB.size) return false;",
            "  for (const item of setA) {",
            "    if (!setB.has(item)) return false;",
            "  }",
            "  return true;",
            "};",
            "",
        ]
        return "\n".join(lines)

    # ===================================================================
    # 8. Shared upload helper
    # ===================================================================

    @staticmethod
    def generate_file_helper() -> str:
        """``removeUploadedFiles`` for multer file objects, arrays and paths."""
        lines: List[str] = [
            "import fs from 'fs';",
            "import path from 'path';",
            "",
            "export const removeUploadedFiles = (file: any) => {",
            "  if (!file) return;",
            "",
            "  if (Array.isArray(file)) {",
            "    file.forEach(f => removeUploadedFiles(f));",
            "    return;",
            "  }",
            "",
            "  // Multer file object",
            "  if (typeof file === 'object' && file.path) {",
            "    try {",
            "      if (fs.existsSync(file.path)) {",
            "        fs.unlinkSync(file.path);",
            "      }",
            "    } catch (error) {",
            "      console.error('Error removing file:', error);",
            "    }",
            "    return;",
            "  }",
            "",
            "  // Stored relative path",
            "  if (typeof file === 'string') {",
            "    try {",
            "      const filePath = path.join(process.cwd(), file);",
            "      if (fs.existsSync(filePath)) {",
            "        fs.unlinkSync(filePath);",
            "      }",
            "    } catch (error) {",
            "      console.error('Error removing file:', error);",
            "    }",
            "  }",
            "};",
            "",
        ]
        return "\n".join(lines)

    # ===================================================================
    # Aggregate
    # ===================================================================

    def generate_all(self, skip: Sequence[str] = ()) -> Dict[str, str]:
        """
        Render every artifact kind not listed in *skip*.

        Returns an ordered mapping of artifact kind → file content.
        """
        renderers = {
            ArtifactKind.INTERFACE.value: self.generate_interface,
            ArtifactKind.MODEL.value: self.generate_model,
            ArtifactKind.CONTROLLER.value: self.generate_controller,
            ArtifactKind.SERVICE.value: self.generate_service,
            ArtifactKind.ROUTE.value: self.generate_route,
            ArtifactKind.VALIDATION.value: self.generate_validation,
            ArtifactKind.CONSTANTS.value: self.generate_constants,
        }
        skipped = {s.lower() for s in skip}
        result: Dict[str, str] = {}
        for kind, render in renderers.items():
            if kind in skipped:
                logger.info(
                    "Skipping %s", self._names.artifact_filename(kind)
                )
                continue
            result[kind] = render()

        logger.debug(
            "Rendered %d artifact(s) for %s.", len(result), self._names.class_name
        )
        return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TemplateGenerator",
    "UPLOAD_FIELD_NAMES",
]

logger.debug("modgen.templates loaded.")
