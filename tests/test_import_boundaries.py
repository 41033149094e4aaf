"""
Import Boundary Tests.

Validates that architectural import rules are followed:
- web/* may NOT import directly from utils/, device/
- web/services/* may ONLY import from core/*
- core/* may NOT import from web/, flask, werkzeug
- device/* may NOT import from web/ or the coordinating core modules
"""

import ast
from pathlib import Path


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def get_imports_from_file(filepath: Path) -> list[tuple[str, int]]:
    """
    Extract all import statements from a Python file.

    Returns:
        List of (module_name, line_number) tuples
    """
    imports = []
    try:
        with open(filepath, encoding="utf-8") as f:
            tree = ast.parse(f.read(), filename=str(filepath))
    except SyntaxError:
        return imports

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.append((alias.name, node.lineno))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                imports.append((node.module, node.lineno))

    return imports


def check_forbidden_imports(
    imports: list[tuple[str, int]], forbidden_prefixes: list[str]
) -> list[tuple[str, int]]:
    """
    Check for forbidden imports.

    Returns:
        List of (module_name, line_number) for violations
    """
    violations = []
    for module, line in imports:
        for prefix in forbidden_prefixes:
            if module.startswith(prefix):
                violations.append((module, line))
                break
    return violations


def collect_violations(directory: Path, forbidden: list[str], recursive=False) -> list[str]:
    all_violations = []
    pattern = "**/*.py" if recursive else "*.py"
    for py_file in sorted(directory.glob(pattern)):
        if py_file.name == "__init__.py":
            continue
        imports = get_imports_from_file(py_file)
        for module, line in check_forbidden_imports(imports, forbidden):
            all_violations.append(f"{py_file.relative_to(directory)}:{line} imports {module}")
    return all_violations


class TestWebLayerBoundaries:
    """Tests for web layer import boundaries."""

    def test_services_only_import_from_core(self):
        """web/services/* should only import from core/*."""
        services_dir = get_project_root() / "web" / "services"

        violations = collect_violations(services_dir, ["utils.", "device.", "flask"])

        assert len(violations) == 0, (
            "Services should only import from core/*. Violations:\n"
            + "\n".join(violations)
        )

    def test_web_does_not_import_adapters(self):
        """Routes reach persistence and devices only through core."""
        web_dir = get_project_root() / "web"

        violations = collect_violations(web_dir, ["utils.", "device."], recursive=True)

        assert len(violations) == 0, (
            "web/* must not import utils/ or device/. Violations:\n"
            + "\n".join(violations)
        )

    def test_core_does_not_import_web(self):
        """core/* should never import from web/, flask, werkzeug."""
        core_dir = get_project_root() / "core"

        violations = collect_violations(core_dir, ["web.", "flask", "werkzeug"])

        assert len(violations) == 0, (
            "Core should never import web layer. Violations:\n"
            + "\n".join(violations)
        )


class TestDeviceServicesArchitecture:
    """Tests for device/* architectural boundaries."""

    def test_device_does_not_import_web(self):
        device_dir = get_project_root() / "device"

        violations = collect_violations(
            device_dir, ["web.", "flask", "werkzeug"], recursive=True
        )

        assert len(violations) == 0, (
            "Device services must not import web layer. Violations:\n"
            + "\n".join(violations)
        )

    def test_device_only_uses_core_errors(self):
        """
        device/* may raise core.errors but must not depend on the
        coordinating core modules that depend on device/ themselves.
        """
        device_dir = get_project_root() / "device"

        violations = [
            v
            for v in collect_violations(device_dir, ["core."], recursive=True)
            if not v.endswith("imports core.errors")
        ]

        assert len(violations) == 0, (
            "device/* may only import core.errors. Violations:\n"
            + "\n".join(violations)
        )


class TestModuleStructure:
    """Tests for module structure integrity."""

    def test_core_modules_exist(self):
        core_dir = get_project_root() / "core"

        required_modules = [
            "aggregation_core.py",
            "app_context.py",
            "capture_core.py",
            "errors.py",
            "export_core.py",
            "identity_core.py",
            "models.py",
            "session_core.py",
        ]

        missing = [m for m in required_modules if not (core_dir / m).exists()]
        assert len(missing) == 0, f"Missing core modules: {missing}"

    def test_service_modules_exist(self):
        services_dir = get_project_root() / "device" / "services"

        required_modules = [
            "media_picker_service.py",
            "permission_service.py",
            "positioning_service.py",
            "record_store_service.py",
            "upload_service.py",
        ]

        missing = [m for m in required_modules if not (services_dir / m).exists()]
        assert len(missing) == 0, f"Missing service modules: {missing}"
