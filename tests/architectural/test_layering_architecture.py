"""Architectural tests for package layering.

Static, AST-based checks: nothing here imports or runs application code.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List, Set

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "onboard_admin"
SQL_PATTERN = re.compile(r"\b(SELECT\s+.+\s+FROM|INSERT\s+INTO|UPDATE\s+\w+\s+SET|DELETE\s+FROM)\b", re.I | re.S)


def _parse(path: Path) -> ast.AST:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _modules(folder: Path) -> List[Path]:
    return sorted(p for p in folder.rglob("*.py") if "__pycache__" not in p.parts)


def _imported_modules(tree: ast.AST) -> Set[str]:
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


def _string_constants(tree: ast.AST) -> Iterable[str]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield node.value


def _top_level_functions(tree: ast.Module) -> Set[str]:
    return {n.name for n in tree.body if isinstance(n, (ast.FunctionDef, ast.AsyncFunctionDef))}


@pytest.mark.parametrize("path", _modules(PKG_DIR / "routes"), ids=lambda p: p.name)
def test_routes_contain_no_sql(path: Path):
    tree = _parse(path)
    offending = [s for s in _string_constants(tree) if SQL_PATTERN.search(s)]
    assert not offending, f"{path.name} embeds SQL: {offending}"
    assert not any(m.startswith("sqlalchemy") for m in _imported_modules(tree))


@pytest.mark.parametrize("path", _modules(PKG_DIR / "client"), ids=lambda p: p.name)
def test_client_is_independent_of_the_service(path: Path):
    imported = _imported_modules(_parse(path))
    forbidden = {
        m
        for m in imported
        if m.split(".")[0] in {"fastapi", "starlette", "sqlalchemy", "uvicorn"}
        or m.startswith(("onboard_admin.db", "onboard_admin.routes", "onboard_admin.logic.repository_"))
    }
    assert not forbidden, f"{path.name} imports service internals: {sorted(forbidden)}"


def test_renumber_has_a_single_definition_shared_by_both_sides():
    definitions = [p for p in _modules(PKG_DIR) if "renumber" in _top_level_functions(_parse(p))]
    assert [p.name for p in definitions] == ["order_sequences.py"]
    for consumer in (PKG_DIR / "client" / "store.py", PKG_DIR / "logic" / "repository_questions.py"):
        tree = _parse(consumer)
        imports = [
            n
            for n in ast.walk(tree)
            if isinstance(n, ast.ImportFrom)
            and n.module == "onboard_admin.logic.order_sequences"
            and any(a.name == "renumber" for a in n.names)
        ]
        assert imports, f"{consumer.name} must use the shared renumber"


@pytest.mark.parametrize("path", _modules(PKG_DIR), ids=lambda p: str(p.relative_to(PKG_DIR)))
def test_modules_log_through_module_loggers(path: Path):
    tree = _parse(path)
    prints = [n for n in ast.walk(tree) if isinstance(n, ast.Call) and getattr(n.func, "id", None) == "print"]
    assert not prints, f"{path.name} uses print(); use logging.getLogger(__name__)"
    for node in ast.walk(tree):
        if isinstance(node, ast.Call) and getattr(node.func, "attr", None) == "getLogger" and node.args:
            arg = node.args[0]
            assert isinstance(arg, ast.Name) and arg.id == "__name__", f"{path.name} names its logger explicitly"


def test_migrations_are_packaged_sql():
    files = sorted(p.name for p in (PKG_DIR / "db" / "migrations").glob("*.sql"))
    assert files == ["001_create_questions.sql", "002_create_responses.sql"]
