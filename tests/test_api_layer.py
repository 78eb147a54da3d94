"""Tests for API layer guardrails and contracts."""

import ast
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1] / "src" / "backoffice" / "api"

FORBIDDEN_MODULES = ("sqlalchemy", "sessionmaker", "declarative_base")
FORBIDDEN_NAMES = ("Column", "Integer", "String", "Base")


def _in_type_checking_block(tree: ast.AST, target: ast.AST) -> bool:
    for node in ast.walk(tree):
        if isinstance(node, ast.If) and isinstance(node.test, ast.Name) and node.test.id == "TYPE_CHECKING":
            if any(target is child for stmt in node.body for child in ast.walk(stmt)):
                return True
    return False


def _annotation_nodes(tree: ast.AST) -> set:
    """Every AST node that sits inside a function parameter or return annotation."""
    nodes = set()
    for func in ast.walk(tree):
        if isinstance(func, (ast.FunctionDef, ast.AsyncFunctionDef)):
            args = func.args.posonlyargs + func.args.args + func.args.kwonlyargs
            for arg in args:
                if arg.annotation is not None:
                    nodes.update(id(n) for n in ast.walk(arg.annotation))
            if func.returns is not None:
                nodes.update(id(n) for n in ast.walk(func.returns))
    return nodes


def test_api_layer_has_no_sqlalchemy_imports():
    """API modules call repo functions only.

    `from sqlalchemy.orm import Session` is allowed for type hints, and schema
    imports are allowed inside `if TYPE_CHECKING:` blocks.
    """
    api_files = sorted(p for p in API_DIR.glob("*.py") if p.name != "__init__.py")
    assert api_files, f"No API modules found in {API_DIR}"

    violations = []
    for api_file in api_files:
        source = api_file.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(api_file))
        annotations = _annotation_nodes(tree)
        imports_session = False

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if any(forbidden in alias.name for forbidden in FORBIDDEN_MODULES):
                        violations.append(f"{api_file.name}: direct import '{alias.name}'")
            elif isinstance(node, ast.ImportFrom):
                module = node.module or ""
                if any(forbidden in module for forbidden in FORBIDDEN_MODULES):
                    if module == "sqlalchemy.orm" and all(alias.name == "Session" for alias in node.names):
                        imports_session = True
                    else:
                        violations.append(f"{api_file.name}: direct import from '{module}'")
                if module.endswith("database.schema") and not _in_type_checking_block(tree, node):
                    violations.append(f"{api_file.name}:{node.lineno} imports schema outside TYPE_CHECKING")
                for alias in node.names:
                    if alias.name in FORBIDDEN_NAMES:
                        violations.append(f"{api_file.name}: direct import '{alias.name}' from '{module}'")

        if imports_session:
            for node in ast.walk(tree):
                if isinstance(node, ast.Name) and node.id == "Session" and id(node) not in annotations:
                    violations.append(f"{api_file.name}:{node.lineno} uses Session outside type hints")

    assert not violations, "API layer has SQLAlchemy violations:\n" + "\n".join(violations)


def test_api_layer_makes_no_direct_session_calls():
    """Query/add/commit/execute belong to the repo modules."""
    patterns = ("session.query(", "session.add(", "session.commit(", ".execute(")
    violations = []
    for api_file in sorted(API_DIR.glob("*.py")):
        for lineno, line in enumerate(api_file.read_text(encoding="utf-8").splitlines(), 1):
            stripped = line.strip()
            if stripped.startswith("#"):
                continue
            if any(pattern in stripped for pattern in patterns):
                violations.append(f"{api_file.name}:{lineno}: {stripped}")
    assert not violations, "API layer touches the session directly:\n" + "\n".join(violations)
