#!/usr/bin/env python3
"""Check hexagonal architecture import boundaries.

Layering rules for the ``electorate`` package:
- domain/: models, errors and pure services; imports no other layer
- application/: ports and services; may import domain/ (and config/)
- infrastructure/: adapters; may import domain/ and application/
- workers/: entry points; may import every inner layer

``config`` and ``bootstrap`` sit outside the hierarchy: config is plain
settings, bootstrap is the composition root.

Usage:
    python scripts/check_imports.py [package_directory]

Exit codes:
    0: No violations found
    1: Violations found
"""
import ast
import sys
from pathlib import Path

PACKAGE = "electorate"

# Lower number = inner layer; inner layers cannot import outer ones
LAYER_HIERARCHY: dict[str, int] = {
    "domain": 0,
    "application": 1,
    "infrastructure": 2,
    "workers": 3,
}

ALLOWED_IMPORTS: dict[str, set[str]] = {
    "domain": set(),
    "application": {"domain"},
    "infrastructure": {"domain", "application"},
    "workers": {"domain", "application", "infrastructure"},
}


def get_import_module(node: ast.Import | ast.ImportFrom) -> str | None:
    """Extract the module name from an import statement."""
    if isinstance(node, ast.ImportFrom):
        return node.module
    if isinstance(node, ast.Import) and node.names:
        return node.names[0].name
    return None


def _get_file_layer(py_file: Path, package_dir: Path) -> str | None:
    try:
        relative = py_file.relative_to(package_dir)
    except ValueError:
        return None

    parts = relative.parts
    if not parts:
        return None
    return parts[0] if parts[0] in LAYER_HIERARCHY else None


def _parse_file(py_file: Path) -> ast.Module | None:
    try:
        source = py_file.read_text(encoding="utf-8")
        return ast.parse(source, filename=str(py_file))
    except (SyntaxError, UnicodeDecodeError) as e:
        print(f"Warning: Could not parse {py_file}: {e}", file=sys.stderr)
        return None


def _check_import_violation(
    module: str, file_layer: str, allowed_layers: set[str]
) -> str | None:
    """Return an error message if ``module`` is off-limits for ``file_layer``.

    Args:
        module: Imported module, e.g. "electorate.infrastructure.stubs"
        file_layer: Layer of the importing file
        allowed_layers: Layers that file may import from
    """
    if not module.startswith(f"{PACKAGE}."):
        return None

    module_parts = module.split(".")
    if len(module_parts) < 2:
        return None

    target_layer = module_parts[1]
    if target_layer not in LAYER_HIERARCHY or target_layer == file_layer:
        return None

    if target_layer not in allowed_layers:
        return f"{file_layer} layer cannot import from {target_layer}"
    return None


def check_file_imports(
    py_file: Path, package_dir: Path
) -> list[tuple[str, int, str]]:
    """Check a single file; returns (file, line, message) tuples."""
    file_layer = _get_file_layer(py_file, package_dir)
    if file_layer is None:
        return []

    tree = _parse_file(py_file)
    if tree is None:
        return []

    violations: list[tuple[str, int, str]] = []
    allowed_layers = ALLOWED_IMPORTS.get(file_layer, set())

    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            module = get_import_module(node)
            if module:
                error_msg = _check_import_violation(module, file_layer, allowed_layers)
                if error_msg:
                    violations.append((str(py_file), node.lineno, error_msg))

    return violations


def check_import_boundaries(package_dir: Path) -> list[tuple[str, int, str]]:
    """Check every module under ``package_dir``."""
    violations: list[tuple[str, int, str]] = []

    if not package_dir.exists():
        print(
            f"Error: Package directory '{package_dir}' does not exist",
            file=sys.stderr,
        )
        return violations

    for py_file in package_dir.rglob("*.py"):
        violations.extend(check_file_imports(py_file, package_dir))

    return violations


def format_violations(violations: list[tuple[str, int, str]]) -> str:
    if not violations:
        return ""

    lines = ["Import boundary violations found:", ""]
    for file_path, line_no, message in sorted(violations):
        lines.append(f"  {file_path}:{line_no}: {message}")
    lines.append("")
    lines.append(f"Total: {len(violations)} violation(s)")
    return "\n".join(lines)


def main() -> int:
    if len(sys.argv) > 1:
        package_dir = Path(sys.argv[1])
    else:
        package_dir = Path(__file__).parent.parent / PACKAGE

    violations = check_import_boundaries(package_dir)

    if violations:
        print(format_violations(violations))
        return 1
    print("No import boundary violations found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
