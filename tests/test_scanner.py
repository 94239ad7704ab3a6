import pytest

import stub_app
from entwire.autowire import find_project_modules
from entwire.config import EntwireSettings
from entwire.errors import UnsupportedScanInputError

STUB_APP_MODULES = ["stub_app", "stub_app.components", "stub_app.reports"]


def test_scan_by_dotted_name(settings):
    assert find_project_modules("stub_app", settings) == STUB_APP_MODULES


def test_scan_by_module(settings):
    assert find_project_modules(stub_app, settings) == STUB_APP_MODULES


def test_scan_single_module(settings):
    assert find_project_modules("stub_app.components", settings) == ["stub_app.components"]


def test_scan_matches_whole_name_segments(settings):
    assert find_project_modules("stub_ap", settings) == []


def test_omitted_root_scans_whole_project(settings):
    modules = find_project_modules(settings=settings)

    assert len(modules) >= 1
    assert set(STUB_APP_MODULES) <= set(modules)
    assert "stub_broken" in modules
    assert modules == sorted(modules)


def test_none_root_is_not_the_same_as_omitted(settings):
    assert find_project_modules(None, settings) == []
    assert find_project_modules(None, settings) != find_project_modules(settings=settings)


@pytest.mark.parametrize("root", [42, b"stub_app", ["stub_app"], object(), "bad-root", "", "stub_app."])
def test_unsupported_root_raises_in_strict_mode(settings, root):
    with pytest.raises(UnsupportedScanInputError, match="expected a dotted module name or a module"):
        find_project_modules(root, settings)


@pytest.mark.parametrize("root", [42, b"stub_app", ["stub_app"], object(), "bad-root", "", "stub_app."])
def test_unsupported_root_scans_nothing_in_permissive_mode(permissive_settings, root):
    assert find_project_modules(root, permissive_settings) == []


def test_vendored_and_environment_directories_are_skipped(tmp_path):
    for relative in [
        "app/__init__.py",
        "app/core.py",
        "app/handlers/api.py",
        "site-packages/dependency.py",
        "venv/lib.py",
        "custom_env/pyvenv.cfg",
        "custom_env/installed.py",
        "app/__pycache__/core.py",
        ".hidden/secret.py",
        "app/not-a-module.py",
        "app/notes.txt",
    ]:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")

    settings = EntwireSettings(project_paths=[tmp_path])

    assert find_project_modules(settings=settings) == ["app", "app.core", "app.handlers.api"]


def test_missing_project_path_scans_nothing(tmp_path):
    settings = EntwireSettings(project_paths=[tmp_path / "missing"])

    assert find_project_modules(settings=settings) == []
