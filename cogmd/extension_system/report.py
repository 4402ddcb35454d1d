from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from cogmd.extension_system.extractor import ExtractionResult
from cogmd.extension_system.manifest import ContributionCategory, ExtensionManifest


@dataclass
class ExtensionInfo:
    """Description of an installed extension, handed back to the caller.

    Attributes:
        name: Canonical extension name from the manifest
        display_name: Human-readable name (falls back to ``name``)
        themes: Declared theme paths that were installed
        grammars: Declared grammar paths that were installed
        snippets: Declared snippet paths that were installed
        install_path: Absolute, host-native path of the install directory
    """

    name: str
    display_name: str
    themes: List[str] = field(default_factory=list)
    grammars: List[str] = field(default_factory=list)
    snippets: List[str] = field(default_factory=list)
    install_path: str = ""

    def paths_for(self, category: ContributionCategory) -> List[str]:
        return getattr(self, ContributionCategory(category).value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dictionary shape the editor UI consumes.

        Returns:
            Dictionary with camelCase keys
        """
        return {
            "name": self.name,
            "displayName": self.display_name,
            "themes": list(self.themes),
            "grammars": list(self.grammars),
            "snippets": list(self.snippets),
            "installPath": self.install_path,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtensionInfo:
        """Create an ExtensionInfo from its dictionary form.

        Args:
            data: Dictionary as produced by :meth:`to_dict`

        Returns:
            ExtensionInfo instance
        """
        return cls(
            name=data["name"],
            display_name=data.get("displayName", data["name"]),
            themes=list(data.get("themes", [])),
            grammars=list(data.get("grammars", [])),
            snippets=list(data.get("snippets", [])),
            install_path=data.get("installPath", ""),
        )


def build_extension_info(
        manifest: ExtensionManifest,
        result: ExtractionResult,
        install_dir: Union[str, Path],
) -> ExtensionInfo:
    """Assemble the install report from the manifest and extraction outcomes."""
    return ExtensionInfo(
        name=manifest.name,
        display_name=manifest.display_name,
        themes=result.successful_paths(ContributionCategory.THEMES),
        grammars=result.successful_paths(ContributionCategory.GRAMMARS),
        snippets=result.successful_paths(ContributionCategory.SNIPPETS),
        install_path=os.path.abspath(install_dir),
    )
