# File: modgen/router.py
"""
modgen - Router File Patcher
=============================
Registers a generated module in the central router file by text insertion:

    import { UserRoutes } from '../app/modules/user/user.route'
    ...
    const apiRoutes = [
      { path: '/user', route: UserRoutes }];

Both edits are skipped when their exact text is already present, so running
the patch twice leaves the file unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from modgen.models import GeneratorConfig, ModuleNames
from modgen.utils import read_file, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.router")

_ROUTES_DECLARATION: str = "const apiRoutes"


@dataclass(slots=True)
class RouterPatchResult:
    """Outcome of one ``patch_router_file`` call."""

    path: str = ""
    import_added: bool = False
    route_added: bool = False
    changed: bool = False
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Pure text edits
# ---------------------------------------------------------------------------


def import_statement(names: ModuleNames) -> str:
    return (
        f"import {{ {names.routes_symbol} }} from "
        f"'../app/modules/{names.folder_name}/{names.folder_name}.route'"
    )


def route_registration(names: ModuleNames) -> str:
    return f"{{ path: '/{names.folder_name}', route: {names.routes_symbol} }}"


def insert_import(content: str, statement: str) -> str:
    """Insert *statement* on the line after the last ``import ``, or prepend it."""
    last_import: int = content.rfind("import ")
    if last_import == -1:
        return statement + "\n" + content
    line_end: int = content.find("\n", last_import)
    if line_end == -1:
        return content + "\n" + statement + "\n"
    return content[: line_end + 1] + statement + "\n" + content[line_end + 1 :]


def _skip_string(content: str, i: int) -> int:
    """Index just past the string literal whose quote is at *i*."""
    quote: str = content[i]
    i += 1
    while i < len(content) and content[i] != quote:
        i += 2 if content[i] == "\\" else 1
    return i + 1


def _comment_start(line: str) -> int:
    """Index of a ``//`` comment on *line* outside string literals, or -1."""
    i: int = 0
    while i < len(line):
        if line[i] in "'\"`":
            i = _skip_string(line, i)
        elif line.startswith("//", i):
            return i
        else:
            i += 1
    return -1


def _matching_bracket(content: str, start: int) -> int:
    """
    Index of the ``]`` closing the ``[`` at *start*, or -1.

    Nested brackets count; brackets inside string literals and ``//``
    comments do not.
    """
    depth: int = 0
    i: int = start
    while i < len(content):
        ch = content[i]
        if ch in "'\"`":
            i = _skip_string(content, i)
            continue
        if content.startswith("//", i):
            newline: int = content.find("\n", i)
            if newline == -1:
                return -1
            i = newline
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def insert_route(content: str, registration: str) -> Optional[str]:
    """
    Append *registration* to the ``apiRoutes`` array literal.

    Returns None when no ``const apiRoutes = [ ... ]`` can be located.
    """
    declaration: int = content.find(_ROUTES_DECLARATION)
    if declaration == -1:
        return None
    equals: int = content.find("=", declaration)
    if equals == -1:
        return None
    start: int = content.find("[", equals)
    if start == -1:
        return None
    end: int = _matching_bracket(content, start)
    if end == -1:
        return None

    head: str = content[:end].rstrip()
    # A trailing comment on the last entry keeps its place after the comma.
    tail: str = ""
    line_start: int = head.rfind("\n") + 1
    comment: int = _comment_start(head[line_start:])
    if comment != -1:
        code: str = head[: line_start + comment].rstrip()
        head, tail = code, head[len(code):]
    needs_comma: bool = "{" in content[start:end] and not head.endswith((",", "["))
    return head + ("," if needs_comma else "") + tail + f"\n  {registration}\n" + content[end:]


# ---------------------------------------------------------------------------
# File operation
# ---------------------------------------------------------------------------


def patch_router_file(config: GeneratorConfig, names: ModuleNames) -> RouterPatchResult:
    """
    Add the import and route registration for *names* to the router file.

    Never raises: a missing file or array becomes a warning and I/O errors
    are logged into ``RouterPatchResult.error``.
    """
    path: Path = config.routes_path
    result = RouterPatchResult(path=str(path))

    if not path.is_file():
        message: str = f"Router file not found: {path}"
        logger.warning(message)
        result.warnings.append(message)
        return result

    try:
        original: str = read_file(path)
        content: str = original

        statement: str = import_statement(names)
        if statement not in content:
            content = insert_import(content, statement)
            result.import_added = True

        registration: str = route_registration(names)
        if registration not in content:
            patched: Optional[str] = insert_route(content, registration)
            if patched is None:
                message = "Could not find apiRoutes array in router file"
                logger.warning(message)
                result.warnings.append(message)
            else:
                content = patched
                result.route_added = True

        if content != original:
            write_file(path, content)
            result.changed = True
            logger.info("Updated router file: %s", path)
        else:
            logger.debug("Router file already up to date: %s", path)
    except (OSError, UnicodeDecodeError) as exc:
        result.error = f"Error updating router file: {exc}"
        logger.error(result.error)

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RouterPatchResult",
    "import_statement",
    "route_registration",
    "insert_import",
    "insert_route",
    "patch_router_file",
]

logger.debug("modgen.router loaded.")
