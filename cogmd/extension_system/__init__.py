"""Extension installation system for CogMD.

This package installs VSIX-style editor extension packages, extracting
only the contributions the editor supports.

Modules:
    archive: Random-access reading of package archives
    manifest: Manifest decoding and contribution points
    extractor: Per-asset extraction into the install directory
    report: The install report returned to callers
    installer: The installation pipeline
    cli: Command-line interface
"""

from __future__ import annotations

from cogmd.extension_system.archive import ExtensionArchive
from cogmd.extension_system.manifest import (
    ContributionCategory,
    ContributionEntry,
    ContributionPoints,
    ExtensionManifest,
    parse_manifest,
)
from cogmd.extension_system.extractor import ExtractionOutcome, ExtractionResult, extract_contributions
from cogmd.extension_system.report import ExtensionInfo, build_extension_info
from cogmd.extension_system.installer import (
    ExtensionInstaller,
    install_extension,
    resolve_home_directory,
)

__all__ = [
    "ExtensionArchive",
    "ContributionCategory",
    "ContributionEntry",
    "ContributionPoints",
    "ExtensionManifest",
    "parse_manifest",
    "ExtractionOutcome",
    "ExtractionResult",
    "extract_contributions",
    "ExtensionInfo",
    "build_extension_info",
    "ExtensionInstaller",
    "install_extension",
    "resolve_home_directory",
]
