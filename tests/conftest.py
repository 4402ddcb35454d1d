"""Pytest configuration and fixtures for CogMD tests."""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional

import pytest
import structlog
import yaml

from cogmd.core.config_manager import ConfigManager

DEMO_THEME = b'{"name": "Demo Dark", "type": "dark", "colors": {"editor.background": "#1e1e1e"}}'
DEMO_GRAMMAR = b'{"scopeName": "source.demo", "patterns": []}'
DEMO_SNIPPETS = b'{"Heading": {"prefix": "h1", "body": ["# ${1:title}"]}}'


def write_package(
        path: Path,
        manifest: Optional[Any] = None,
        files: Optional[Dict[str, bytes]] = None,
        raw_manifest: Optional[bytes] = None,
) -> Path:
    """Write a VSIX-style package.

    Args:
        path: Where to write the archive
        manifest: Manifest tree, encoded as ``extension/package.json``
        files: Extra entries keyed by archive-internal name
        raw_manifest: Manifest bytes written verbatim instead of ``manifest``

    Returns:
        The archive path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", "<Types/>")
        zf.writestr("extension.vsixmanifest", "<PackageManifest/>")
        if raw_manifest is not None:
            zf.writestr("extension/package.json", raw_manifest)
        elif manifest is not None:
            zf.writestr("extension/package.json", json.dumps(manifest))
        for name, data in (files or {}).items():
            zf.writestr(name, data)
    return path


@pytest.fixture
def make_package(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture building packages under a temporary directory."""
    counter = {"n": 0}

    def _make(manifest: Optional[Any] = None, files: Optional[Dict[str, bytes]] = None,
              raw_manifest: Optional[bytes] = None, name: Optional[str] = None) -> Path:
        counter["n"] += 1
        filename = name or f"package-{counter['n']}.vsix"
        return write_package(tmp_path / "packages" / filename, manifest, files, raw_manifest)

    return _make


@pytest.fixture
def demo_manifest() -> Dict[str, Any]:
    """Manifest declaring one theme, one grammar and one snippet file."""
    return {
        "name": "demo",
        "displayName": "Demo Theme",
        "version": "1.0.0",
        "publisher": "cogmd",
        "contributes": {
            "themes": [{"label": "Demo Dark", "uiTheme": "vs-dark", "path": "themes/dark.json"}],
            "grammars": [{"language": "demo", "scopeName": "source.demo",
                          "path": "syntaxes/demo.tmLanguage.json"}],
            "snippets": [{"language": "markdown", "path": "snippets/markdown.json"}],
        },
    }


@pytest.fixture
def demo_package(make_package: Callable[..., Path], demo_manifest: Dict[str, Any]) -> Path:
    """A complete, valid package built from ``demo_manifest``."""
    return make_package(
        demo_manifest,
        {
            "extension/themes/dark.json": DEMO_THEME,
            "extension/syntaxes/demo.tmLanguage.json": DEMO_GRAMMAR,
            "extension/snippets/markdown.json": DEMO_SNIPPETS,
        },
        name="demo.vsix",
    )


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """An empty directory standing in for the user's home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def temp_config_file(tmp_path: Path, home_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary configuration file for testing."""
    test_config = {
        "extensions": {"home_directory": str(home_dir)},
        "logging": {
            "level": "DEBUG",
            "file": {"enabled": False},
            "console": {"enabled": True, "level": "DEBUG"},
        },
    }

    config_path = tmp_path / "cogmd.yaml"
    with open(config_path, "w") as f:
        yaml.dump(test_config, f)

    yield config_path


@pytest.fixture
def config_manager(temp_config_file: Path) -> Generator[ConfigManager, None, None]:
    """Create a ConfigManager instance for testing."""
    manager = ConfigManager(config_path=temp_config_file)
    manager.initialize()
    yield manager
    manager.shutdown()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Restore structlog and root logger state changed by LoggingManager."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    structlog.reset_defaults()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
