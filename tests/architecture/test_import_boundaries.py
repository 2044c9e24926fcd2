"""
Import-boundary enforcement for the ledger layers.

1. Domain purity     -- stock_ledger/domain/** may not import the ORM,
                        models, selectors, services or the engine.
2. Domain no-impure  -- no wall-clock reads outside domain/clock.py.
3. DB foundation     -- db/base.py and db/types.py import nothing above them.
4. Session ownership -- only services/store.py opens sessions from a factory.

All scanning is done via AST -- these tests are read-only.
"""

import ast
import glob
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[2] / "stock_ledger"


def _python_files(root: Path) -> list[str]:
    """Return all .py files under *root*, sorted for deterministic order."""
    return sorted(glob.glob(f"{root}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    return [
        (node.lineno, f"{node.value.id}.{node.attr}")
        for node in ast.walk(tree)
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name)
    ]


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(files: list[str], forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in files:
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"{filepath}:{lineno} imports {module}")
    return found


class TestDomainPurity:

    FORBIDDEN = (
        "sqlalchemy",
        "stock_ledger.models",
        "stock_ledger.selectors",
        "stock_ledger.services",
        "stock_ledger.db.engine",
        "stock_ledger.db.base",
        "stock_ledger.db.immutability",
    )

    def test_domain_has_no_infrastructure_imports(self):
        files = _python_files(PACKAGE_ROOT / "domain")
        assert files
        assert _violations(files, self.FORBIDDEN) == []

    def test_no_wall_clock_outside_clock_module(self):
        impure = {"datetime.now", "datetime.utcnow", "date.today", "time.time"}
        found = []
        for filepath in _python_files(PACKAGE_ROOT / "domain"):
            if filepath.endswith("clock.py"):
                continue
            for lineno, ref in _extract_attribute_calls(filepath):
                if ref in impure:
                    found.append(f"{filepath}:{lineno} uses {ref}")
        assert found == []


class TestDbFoundation:

    def test_base_and_types_import_nothing_above(self):
        files = [str(PACKAGE_ROOT / "db" / "base.py"), str(PACKAGE_ROOT / "db" / "types.py")]
        forbidden = (
            "stock_ledger.models",
            "stock_ledger.selectors",
            "stock_ledger.services",
            "stock_ledger.domain",
        )
        assert _violations(files, forbidden) == []


class TestSessionOwnership:

    def test_only_store_imports_engine_in_services(self):
        files = [
            f for f in _python_files(PACKAGE_ROOT / "services")
            if not f.endswith("store.py")
        ]
        assert _violations(files, ("stock_ledger.db.engine", "sqlalchemy.orm")) == []

    def test_selectors_never_commit(self):
        found = []
        for filepath in _python_files(PACKAGE_ROOT / "selectors"):
            tree = ast.parse(Path(filepath).read_text(), filename=filepath)
            for node in ast.walk(tree):
                if isinstance(node, ast.Attribute) and node.attr in ("commit", "rollback"):
                    found.append(f"{filepath}:{node.lineno} calls {node.attr}")
        assert found == []
