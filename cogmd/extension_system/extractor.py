"""Selective extraction of contributed assets.

Each declared asset is copied from the package archive to the install
directory independently. A failure affects only that asset: it is recorded
on the asset's :class:`ExtractionOutcome` and the asset is left out of the
installed list, while the rest of the package keeps installing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, Dict, Iterable, List, Optional

import structlog

from cogmd.extension_system.archive import ExtensionArchive
from cogmd.extension_system.manifest import (
    ContributionCategory,
    ContributionEntry,
    ContributionPoints,
)
from cogmd.utils.exceptions import AssetUnavailableError, EntryNotFoundError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of extracting one declared asset.

    Attributes:
        category: Contribution category the asset was declared under
        path: The declared relative path, exactly as written in the manifest
        destination: Where the asset was (or would have been) written
        error: Why the asset was skipped, or None on success
    """

    category: ContributionCategory
    path: Optional[str]
    destination: Optional[Path] = None
    error: Optional[AssetUnavailableError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ExtractionResult:
    """Per-category outcomes of one extraction pass, in declaration order."""

    outcomes: Dict[ContributionCategory, List[ExtractionOutcome]] = field(
        default_factory=lambda: {category: [] for category in ContributionCategory}
    )

    def successful_paths(self, category: ContributionCategory) -> List[str]:
        return successful_paths(self.outcomes.get(ContributionCategory(category), []))

    def failures(self) -> List[ExtractionOutcome]:
        return [
            outcome
            for outcomes in self.outcomes.values()
            for outcome in outcomes
            if not outcome.succeeded
        ]


def successful_paths(outcomes: Iterable[ExtractionOutcome]) -> List[str]:
    """Keep the declared paths of the assets that were written."""
    return [outcome.path for outcome in outcomes if outcome.succeeded and outcome.path is not None]


def resolve_destination(install_dir: Path, declared_path: str) -> Path:
    """Map a declared asset path to its location under ``install_dir``.

    Args:
        install_dir: The extension's install directory
        declared_path: Relative path from the manifest

    Returns:
        The destination file path

    Raises:
        AssetUnavailableError: If the path is empty, absolute, or escapes
            the install directory
    """
    if not declared_path or declared_path.strip() in ('', '.'):
        raise AssetUnavailableError('Asset path is empty', asset_path=declared_path)

    # Reject absolute paths in either convention, whatever the host OS
    if (PurePosixPath(declared_path).is_absolute()
            or PureWindowsPath(declared_path).is_absolute()
            or PureWindowsPath(declared_path).drive):
        raise AssetUnavailableError(
            f'Asset path must be relative: {declared_path}', asset_path=declared_path
        )

    root = Path(os.path.abspath(install_dir))
    destination = Path(os.path.abspath(root / declared_path))
    if destination == root or root not in destination.parents:
        raise AssetUnavailableError(
            f'Asset path escapes the install directory: {declared_path}',
            asset_path=declared_path,
        )
    return destination


def extract_entry(
        archive: ExtensionArchive,
        entry: ContributionEntry,
        install_dir: Path,
        category: ContributionCategory,
) -> ExtractionOutcome:
    """Copy one declared asset from the archive into the install directory.

    Never raises for asset-level problems; they are reported on the outcome.
    """
    path = entry.path
    if path is None:
        return ExtractionOutcome(
            category=category,
            path=None,
            error=AssetUnavailableError(f'{category.value} entry has no path'),
        )

    try:
        destination = resolve_destination(install_dir, path)
    except AssetUnavailableError as e:
        return ExtractionOutcome(category=category, path=path, error=e)

    try:
        data = archive.read_entry(entry.archive_name)
    except EntryNotFoundError as e:
        return ExtractionOutcome(
            category=category,
            path=path,
            destination=destination,
            error=AssetUnavailableError(
                f'Asset {path} is not in the package: {e.message}', asset_path=path
            ),
        )

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)
    except (OSError, ValueError) as e:
        return ExtractionOutcome(
            category=category,
            path=path,
            destination=destination,
            error=AssetUnavailableError(
                f'Cannot write asset {path} to {destination}: {e}', asset_path=path
            ),
        )

    return ExtractionOutcome(category=category, path=path, destination=destination)


def extract_category(
        archive: ExtensionArchive,
        entries: Iterable[ContributionEntry],
        install_dir: Path,
        category: ContributionCategory,
        log: Any = None,
) -> List[ExtractionOutcome]:
    """Extract every declared asset of one category, in declaration order.

    Entries without a path are dropped silently; other failures are logged
    at warning level.
    """
    log = log or logger
    outcomes: List[ExtractionOutcome] = []
    for entry in entries:
        outcome = extract_entry(archive, entry, install_dir, category)
        if outcome.path is None:
            continue
        if not outcome.succeeded:
            log.warning(
                'Skipping extension asset',
                category=category.value,
                path=outcome.path,
                reason=outcome.error.message,
            )
        else:
            log.debug(
                'Extracted extension asset',
                category=category.value,
                path=outcome.path,
                destination=str(outcome.destination),
            )
        outcomes.append(outcome)
    return outcomes


def extract_contributions(
        archive: ExtensionArchive,
        contributions: ContributionPoints,
        install_dir: Path,
        log: Any = None,
) -> ExtractionResult:
    """Extract themes, grammars and snippets into ``install_dir``.

    Each category is processed independently. Duplicate paths are processed
    each time they are declared; the last write wins.
    """
    result = ExtractionResult()
    for category in ContributionCategory:
        result.outcomes[category] = extract_category(
            archive,
            contributions.for_category(category),
            install_dir,
            category,
            log=log,
        )
    return result
