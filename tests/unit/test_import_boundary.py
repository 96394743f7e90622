"""Unit tests for the import boundary checking script.

Tests verify that the hexagonal architecture import rules are enforced:
- domain/ imports NOTHING from other electorate layers
- application/ imports from domain/ only
- infrastructure/ imports from domain/ and application/
- workers/ import from every inner layer
"""

import sys
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "scripts"))

from check_imports import (  # noqa: E402
    ALLOWED_IMPORTS,
    LAYER_HIERARCHY,
    check_file_imports,
    check_import_boundaries,
    format_violations,
)

PACKAGE_DIR = Path(__file__).parent.parent.parent / "electorate"


class TestLayerRules:
    def test_domain_is_innermost(self) -> None:
        assert LAYER_HIERARCHY["domain"] == 0
        assert ALLOWED_IMPORTS["domain"] == set()

    def test_application_imports_domain_only(self) -> None:
        assert ALLOWED_IMPORTS["application"] == {"domain"}

    def test_workers_are_outermost(self) -> None:
        assert LAYER_HIERARCHY["workers"] == max(LAYER_HIERARCHY.values())


class TestCheckFileImports:
    """Test check_file_imports with temporary files."""

    @pytest.fixture
    def package_dir(self) -> Iterator[Path]:
        with tempfile.TemporaryDirectory() as tmpdir:
            package_dir = Path(tmpdir) / "electorate"
            package_dir.mkdir()
            for layer in ["domain", "application", "infrastructure", "workers"]:
                (package_dir / layer).mkdir()
                (package_dir / layer / "__init__.py").write_text("")
            yield package_dir

    def test_application_to_domain_allowed(self, package_dir: Path) -> None:
        app_file = package_dir / "application" / "service.py"
        app_file.write_text("from electorate.domain.models import Election")

        assert check_file_imports(app_file, package_dir) == []

    def test_config_import_allowed(self, package_dir: Path) -> None:
        app_file = package_dir / "application" / "service.py"
        app_file.write_text("from electorate.config import ElectionConfig")

        assert check_file_imports(app_file, package_dir) == []

    def test_domain_importing_infrastructure(self, package_dir: Path) -> None:
        domain_file = package_dir / "domain" / "bad.py"
        domain_file.write_text("import os\nfrom electorate.infrastructure.stubs import X")

        violations = check_file_imports(domain_file, package_dir)

        assert len(violations) == 1
        assert violations[0][1] == 2
        assert "domain layer cannot import from infrastructure" in violations[0][2]

    def test_application_importing_workers(self, package_dir: Path) -> None:
        app_file = package_dir / "application" / "bad.py"
        app_file.write_text("import electorate.workers.phase_checker")

        violations = check_file_imports(app_file, package_dir)

        assert "application layer cannot import from workers" in violations[0][2]
        assert "Total: 1 violation(s)" in format_violations(violations)


class TestElectoratePackage:
    def test_no_violations(self) -> None:
        """The real package respects its layering."""
        violations = check_import_boundaries(PACKAGE_DIR)

        assert violations == [], format_violations(violations)
