from __future__ import annotations
import enum
import json
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

import pydantic
from pydantic import ConfigDict, Field, field_validator

from cogmd.utils.exceptions import (
    EntryNotFoundError,
    MalformedManifestError,
    MissingManifestError,
)

if TYPE_CHECKING:
    from cogmd.extension_system.archive import ExtensionArchive

MANIFEST_ENTRY = 'extension/package.json'
ARCHIVE_ROOT = 'extension/'

# Decoded JSON: dict, list, str, int, float, bool or None
ManifestValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


def get_object(tree: ManifestValue, key: str) -> Dict[str, Any]:
    """Return ``tree[key]`` if it is an object, else an empty dict."""
    if isinstance(tree, dict):
        value = tree.get(key)
        if isinstance(value, dict):
            return value
    return {}


def get_array(tree: ManifestValue, key: str) -> List[Any]:
    """Return ``tree[key]`` if it is an array, else an empty list."""
    if isinstance(tree, dict):
        value = tree.get(key)
        if isinstance(value, list):
            return value
    return []


def get_str(tree: ManifestValue, key: str, default: Optional[str] = None) -> Optional[str]:
    """Return ``tree[key]`` if it is a string, else ``default``."""
    if isinstance(tree, dict):
        value = tree.get(key)
        if isinstance(value, str):
            return value
    return default


class ContributionCategory(str, enum.Enum):
    """Contribution points the editor knows how to install."""

    THEMES = 'themes'
    GRAMMARS = 'grammars'
    SNIPPETS = 'snippets'


class ContributionEntry(pydantic.BaseModel):
    """One element of a ``contributes.<category>`` array.

    Only ``path`` matters for installation; the remaining fields are kept so
    that callers can describe what an extension provides.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: Optional[str] = None
    label: Optional[str] = None
    ui_theme: Optional[str] = Field(default=None, alias='uiTheme')
    language: Optional[str] = None
    scope_name: Optional[str] = Field(default=None, alias='scopeName')

    @classmethod
    def from_value(cls, value: ManifestValue) -> ContributionEntry:
        return cls(
            path=get_str(value, 'path'),
            label=get_str(value, 'label'),
            ui_theme=get_str(value, 'uiTheme'),
            language=get_str(value, 'language'),
            scope_name=get_str(value, 'scopeName'),
        )

    @property
    def archive_name(self) -> Optional[str]:
        """Archive-internal entry name for ``path``; the path is used verbatim."""
        if self.path is None:
            return None
        return ARCHIVE_ROOT + self.path


class ContributionPoints(pydantic.BaseModel):
    """The ``contributes`` section, restricted to supported categories."""

    themes: List[ContributionEntry] = Field(default_factory=list)
    grammars: List[ContributionEntry] = Field(default_factory=list)
    snippets: List[ContributionEntry] = Field(default_factory=list)

    @classmethod
    def from_value(cls, contributes: ManifestValue) -> ContributionPoints:
        return cls(**{
            category.value: [
                ContributionEntry.from_value(item)
                for item in get_array(contributes, category.value)
            ]
            for category in ContributionCategory
        })

    def for_category(self, category: ContributionCategory) -> List[ContributionEntry]:
        return getattr(self, ContributionCategory(category).value)

    def is_empty(self) -> bool:
        return not (self.themes or self.grammars or self.snippets)


class ExtensionManifest(pydantic.BaseModel):
    """The parts of ``extension/package.json`` the installer relies on.

    ``name`` is required. Every other field is optional and degrades to a
    default when it is missing or has the wrong type.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    display_name: str = Field(alias='displayName')
    version: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    contributes: ContributionPoints = Field(default_factory=ContributionPoints)

    @field_validator('name')
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Extension name must not be empty')
        if '/' in v or '\\' in v or v in ('.', '..'):
            raise ValueError('Extension name must not contain path separators')
        if any(ord(c) < 0x20 or ord(c) == 0x7f for c in v):
            raise ValueError('Extension name must not contain control characters')
        try:
            v.encode('utf-8')
        except UnicodeEncodeError:
            raise ValueError('Extension name must be encodable as UTF-8') from None
        return v

    @classmethod
    def from_dict(cls, data: ManifestValue) -> ExtensionManifest:
        """Build a manifest from a decoded JSON tree.

        Raises:
            MalformedManifestError: If the tree is not an object or has no
                usable ``name``
        """
        if not isinstance(data, dict):
            raise MalformedManifestError('Manifest must be a JSON object')

        name = get_str(data, 'name')
        if name is None:
            raise MalformedManifestError("Manifest is missing required string field 'name'")

        try:
            return cls(
                name=name,
                display_name=get_str(data, 'displayName', name),
                version=get_str(data, 'version'),
                publisher=get_str(data, 'publisher'),
                description=get_str(data, 'description'),
                contributes=ContributionPoints.from_value(get_object(data, 'contributes')),
            )
        except pydantic.ValidationError as e:
            raise MalformedManifestError(
                f'Invalid manifest data: {e}', extension_name=name
            ) from e

    @classmethod
    def from_bytes(cls, raw: bytes) -> ExtensionManifest:
        """Decode UTF-8 JSON manifest bytes (a leading BOM is tolerated).

        Raises:
            MalformedManifestError: If the bytes are not valid JSON
        """
        try:
            data = json.loads(raw.decode('utf-8-sig'))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
            raise MalformedManifestError(f'Invalid manifest file: {e}') from e
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_manifest(archive: ExtensionArchive, entry_name: str = MANIFEST_ENTRY) -> ExtensionManifest:
    """Read and decode the manifest of an extension package.

    Args:
        archive: Open package archive
        entry_name: Archive-internal name of the manifest

    Returns:
        The parsed manifest

    Raises:
        MissingManifestError: If the archive has no manifest entry
        MalformedManifestError: If the manifest cannot be decoded
    """
    try:
        raw = archive.read_entry(entry_name)
    except EntryNotFoundError as e:
        if archive.has_entry(entry_name):
            raise MalformedManifestError(
                f'Manifest {entry_name} could not be read: {e.message}',
                archive_path=str(archive.path),
            ) from e
        raise MissingManifestError(
            f'Package is missing {entry_name}', archive_path=str(archive.path)
        ) from e

    try:
        return ExtensionManifest.from_bytes(raw)
    except MalformedManifestError as e:
        raise MalformedManifestError(
            f'{e.message} ({entry_name})',
            extension_name=e.extension_name,
            archive_path=str(archive.path),
        ) from e
