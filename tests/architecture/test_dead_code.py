"""
Every public function and method has a caller.

A name counts as used when it appears anywhere in the packages, the tests
or ``pyproject.toml`` more often than it is defined.  SQLAlchemy and
logging hooks are invoked by the library and are listed explicitly.
"""

import ast
import re
from collections import Counter
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]

PACKAGES = ("budget_kernel", "budget_config", "budget_services")

FRAMEWORK_HOOKS = frozenset({
    "process_bind_param",   # TypeDecorator
    "process_result_value",  # TypeDecorator
})


def _package_files() -> list[Path]:
    return [path for package in PACKAGES for path in sorted((ROOT / package).rglob("*.py"))]


def _corpus() -> str:
    files = _package_files() + sorted((ROOT / "tests").rglob("*.py"))
    return "\n".join(path.read_text() for path in files) + (ROOT / "pyproject.toml").read_text()


def _public_definitions() -> Counter:
    defined: Counter = Counter()
    for path in _package_files():
        tree = ast.parse(path.read_text(), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, (ast.FunctionDef, ast.ClassDef)) and not node.name.startswith("_"):
                defined[node.name] += 1
    return defined


class TestNoUnreachableCode:
    def test_definitions_found(self):
        defined = _public_definitions()
        assert "apply_due_charges" in defined
        assert "CycleOrchestrator" in defined

    def test_every_public_name_is_referenced(self):
        corpus = _corpus()
        unused = sorted(
            name
            for name, definitions in _public_definitions().items()
            if name not in FRAMEWORK_HOOKS
            and len(re.findall(rf"\b{re.escape(name)}\b", corpus)) <= definitions
        )
        assert not unused, "Defined but never referenced:\n  " + "\n  ".join(unused)
