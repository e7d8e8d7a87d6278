"""
Kernel Boundary & Invariants Contract.

Tests that enforce the kernel's architectural boundaries:

1. tracking_kernel/** may NOT import tracking_config or tracking_services.
   The kernel never depends upward.

2. The kernel domain layer performs no I/O and reads no wall-clock time
   outside the clock module.

3. The kernel invariants declaration is complete and non-empty.

These tests read source code via AST -- they cannot break anything.
"""

import ast
from pathlib import Path

from tracking_kernel.invariants import (
    ALL_TRACKING_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    TrackingInvariant,
)

REPO_ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _attribute_calls(path: Path) -> list[tuple[int, str]]:
    """(line, 'obj.attr') for every call of the form obj.attr(...)."""
    tree = ast.parse(path.read_text(), filename=str(path))
    calls = []
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and isinstance(node.func.value, ast.Name)
        ):
            calls.append((node.lineno, f"{node.func.value.id}.{node.func.attr}"))
    return calls


def _rel(path: Path) -> str:
    return str(path.relative_to(REPO_ROOT))


# ---------------------------------------------------------------------------
# Test: Kernel has no upward dependencies
# ---------------------------------------------------------------------------

class TestKernelNoUpwardDependencies:
    """tracking_kernel/** must not import tracking_config or tracking_services."""

    def test_kernel_files_found(self):
        assert _python_files("tracking_kernel")

    def test_kernel_does_not_import_forbidden_packages(self):
        violations: list[str] = []

        for path in _python_files("tracking_kernel"):
            for lineno, module in _extract_imports(path):
                for prefix in FORBIDDEN_KERNEL_IMPORTS:
                    if module == prefix or module.startswith(f"{prefix}."):
                        violations.append(f"  {_rel(path)}:{lineno} imports '{module}'")

        assert not violations, (
            "Kernel boundary violation -- tracking_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )

    def test_config_does_not_import_services(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files("tracking_config")
            for lineno, module in _extract_imports(path)
            if module.startswith("tracking_services")
        ]
        assert not violations, "\n".join(violations)


# ---------------------------------------------------------------------------
# Test: Domain purity
# ---------------------------------------------------------------------------

class TestDomainPurity:
    """tracking_kernel/domain/** does no I/O and takes time only from a Clock."""

    IO_MODULES = ("os", "io", "socket", "sqlite3", "subprocess", "yaml", "requests")
    CLOCK_MODULE = "clock.py"

    def test_no_io_imports(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files("tracking_kernel/domain")
            for lineno, module in _extract_imports(path)
            if module.split(".")[0] in self.IO_MODULES
        ]
        assert not violations, "Domain I/O import:\n" + "\n".join(violations)

    def test_no_wall_clock_reads(self):
        violations = [
            f"  {_rel(path)}:{lineno} calls {call}()"
            for path in _python_files("tracking_kernel/domain")
            if path.name != self.CLOCK_MODULE
            for lineno, call in _attribute_calls(path)
            if call in ("datetime.now", "datetime.utcnow", "date.today", "time.time")
        ]
        assert not violations, "Wall-clock read outside Clock:\n" + "\n".join(violations)


# ---------------------------------------------------------------------------
# Test: Invariants declaration
# ---------------------------------------------------------------------------

class TestInvariantsDeclaration:
    def test_invariants_declared(self):
        assert len(ALL_TRACKING_INVARIANTS) == len(TrackingInvariant) == 6

    def test_every_invariant_documented(self):
        source = (REPO_ROOT / "tracking_kernel" / "invariants.py").read_text()
        tree = ast.parse(source)
        enum_body = next(
            node.body
            for node in ast.walk(tree)
            if isinstance(node, ast.ClassDef) and node.name == "TrackingInvariant"
        )
        documented = set()
        for current, following in zip(enum_body, enum_body[1:]):
            if (
                isinstance(current, ast.Assign)
                and isinstance(following, ast.Expr)
                and isinstance(following.value, ast.Constant)
                and isinstance(following.value.value, str)
            ):
                documented.add(current.targets[0].id)
        assert documented == {member.name for member in TrackingInvariant}

    def test_forbidden_imports_name_upper_layers(self):
        assert set(FORBIDDEN_KERNEL_IMPORTS) == {"tracking_config", "tracking_services"}
