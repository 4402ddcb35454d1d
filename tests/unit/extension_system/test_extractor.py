"""Unit tests for contribution extraction."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from cogmd.extension_system.archive import ExtensionArchive
from cogmd.extension_system.extractor import (
    ExtractionOutcome,
    extract_category,
    extract_contributions,
    extract_entry,
    resolve_destination,
    successful_paths,
)
from cogmd.extension_system.manifest import (
    ContributionCategory,
    ContributionEntry,
    ContributionPoints,
)
from cogmd.utils.exceptions import AssetUnavailableError


def entries(*paths):
    return [ContributionEntry.from_value({"path": path} if path is not None else {}) for path in paths]


@pytest.fixture
def install_dir(tmp_path):
    path = tmp_path / "extensions" / "demo"
    path.mkdir(parents=True)
    return path


class TestResolveDestination:
    """Mapping declared paths into the install directory."""

    def test_nested_path(self, install_dir):
        assert resolve_destination(install_dir, "themes/dark.json") == install_dir / "themes" / "dark.json"

    def test_dot_segments_inside_root_are_allowed(self, install_dir):
        assert resolve_destination(install_dir, "./themes/../themes/dark.json") == (
            install_dir / "themes" / "dark.json"
        )

    @pytest.mark.parametrize("path", [
        "../evil.json",
        "themes/../../evil.json",
        "/etc/passwd",
        "C:\\evil.json",
        "C:evil.json",
        "",
        ".",
        "themes/..",
    ])
    def test_rejected_paths(self, install_dir, path):
        with pytest.raises(AssetUnavailableError):
            resolve_destination(install_dir, path)


class TestExtractEntry:
    """Extracting a single asset."""

    def test_writes_bytes_and_creates_parents(self, make_package, install_dir):
        package = make_package({"name": "demo"}, {"extension/themes/sub/dark.json": b"\x00theme\xff"})
        with ExtensionArchive.open(package) as archive:
            outcome = extract_entry(
                archive, entries("themes/sub/dark.json")[0], install_dir, ContributionCategory.THEMES
            )

        assert outcome.succeeded
        assert outcome.path == "themes/sub/dark.json"
        assert outcome.destination == install_dir / "themes" / "sub" / "dark.json"
        assert outcome.destination.read_bytes() == b"\x00theme\xff"

    def test_overwrites_existing_file(self, make_package, install_dir):
        existing = install_dir / "themes" / "dark.json"
        existing.parent.mkdir()
        existing.write_bytes(b"old contents that are longer than the new ones")

        package = make_package({"name": "demo"}, {"extension/themes/dark.json": b"new"})
        with ExtensionArchive.open(package) as archive:
            outcome = extract_entry(archive, entries("themes/dark.json")[0], install_dir, ContributionCategory.THEMES)

        assert outcome.succeeded
        assert existing.read_bytes() == b"new"

    def test_missing_entry(self, make_package, install_dir):
        package = make_package({"name": "demo"})
        with ExtensionArchive.open(package) as archive:
            outcome = extract_entry(archive, entries("themes/gone.json")[0], install_dir, ContributionCategory.THEMES)

        assert not outcome.succeeded
        assert isinstance(outcome.error, AssetUnavailableError)
        assert outcome.error.asset_path == "themes/gone.json"
        assert not (install_dir / "themes").exists()

    def test_entry_without_path(self, make_package, install_dir):
        with ExtensionArchive.open(make_package({"name": "demo"})) as archive:
            outcome = extract_entry(archive, entries(None)[0], install_dir, ContributionCategory.SNIPPETS)

        assert outcome.path is None
        assert not outcome.succeeded

    def test_traversal_is_not_written(self, make_package, install_dir):
        package = make_package({"name": "demo"}, {"extension/../evil.json": b"evil"})
        with ExtensionArchive.open(package) as archive:
            outcome = extract_entry(archive, entries("../evil.json")[0], install_dir, ContributionCategory.THEMES)

        assert not outcome.succeeded
        assert not (install_dir.parent / "evil.json").exists()

    def test_unwritable_destination(self, make_package, install_dir):
        # A file where a parent directory is needed
        (install_dir / "themes").write_bytes(b"not a directory")

        package = make_package({"name": "demo"}, {"extension/themes/dark.json": b"{}"})
        with ExtensionArchive.open(package) as archive:
            outcome = extract_entry(archive, entries("themes/dark.json")[0], install_dir, ContributionCategory.THEMES)

        assert not outcome.succeeded
        assert "Cannot write asset" in outcome.error.message

    def test_invalid_destination_name(self, install_dir):
        archive = MagicMock()
        archive.read_entry.return_value = b"{}"

        outcome = extract_entry(archive, entries("a\x00b.json")[0], install_dir, ContributionCategory.THEMES)

        assert not outcome.succeeded
        assert isinstance(outcome.error, AssetUnavailableError)
        assert "Cannot write asset" in outcome.error.message


class TestExtractCategory:
    """Per-category accumulation."""

    def test_keeps_declaration_order_and_skips_failures(self, make_package, install_dir):
        package = make_package({"name": "demo"}, {
            "extension/snippets/b.json": b"b",
            "extension/snippets/a.json": b"a",
        })
        log = MagicMock()

        with ExtensionArchive.open(package) as archive:
            outcomes = extract_category(
                archive,
                entries("snippets/b.json", None, "snippets/missing.json", "snippets/a.json"),
                install_dir,
                ContributionCategory.SNIPPETS,
                log=log,
            )

        # The path-less entry is dropped silently
        assert [outcome.path for outcome in outcomes] == [
            "snippets/b.json", "snippets/missing.json", "snippets/a.json",
        ]
        assert successful_paths(outcomes) == ["snippets/b.json", "snippets/a.json"]
        log.warning.assert_called_once()
        assert log.warning.call_args.kwargs["path"] == "snippets/missing.json"

    def test_duplicates_are_processed_each_time(self, make_package, install_dir):
        package = make_package({"name": "demo"}, {"extension/themes/dark.json": b"dark"})
        with ExtensionArchive.open(package) as archive:
            outcomes = extract_category(
                archive, entries("themes/dark.json", "themes/dark.json"), install_dir,
                ContributionCategory.THEMES, log=MagicMock(),
            )

        assert successful_paths(outcomes) == ["themes/dark.json", "themes/dark.json"]
        assert (install_dir / "themes" / "dark.json").read_bytes() == b"dark"


def test_successful_paths_filters_failures():
    outcomes = [
        ExtractionOutcome(ContributionCategory.THEMES, "a.json"),
        ExtractionOutcome(ContributionCategory.THEMES, "b.json", error=AssetUnavailableError("missing")),
        ExtractionOutcome(ContributionCategory.THEMES, None),
        ExtractionOutcome(ContributionCategory.THEMES, "c.json"),
    ]
    assert successful_paths(outcomes) == ["a.json", "c.json"]


def test_extract_contributions_handles_categories_independently(make_package, install_dir):
    package = make_package({"name": "demo"}, {
        "extension/themes/dark.json": b"theme",
        "extension/snippets/md.json": b"snippets",
        "extension/syntaxes/other.json": b"unused",
    })
    contributions = ContributionPoints.from_value({
        "themes": [{"path": "themes/dark.json"}, {"path": "themes/light.json"}],
        "grammars": [{"path": "syntaxes/missing.json"}],
        "snippets": [{"path": "snippets/md.json"}],
    })

    with ExtensionArchive.open(package) as archive:
        result = extract_contributions(archive, contributions, install_dir, log=MagicMock())

    assert result.successful_paths(ContributionCategory.THEMES) == ["themes/dark.json"]
    assert result.successful_paths(ContributionCategory.GRAMMARS) == []
    assert result.successful_paths(ContributionCategory.SNIPPETS) == ["snippets/md.json"]
    assert sorted(outcome.path for outcome in result.failures()) == [
        "syntaxes/missing.json", "themes/light.json",
    ]
    # Undeclared entries are never extracted
    assert not (install_dir / "syntaxes").exists()
