"""Command-line interface for the CogMD extension installer.

This module provides commands to install extension packages and to
inspect their manifests.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from cogmd.core.config_manager import ConfigManager
from cogmd.core.logging_manager import LoggingManager
from cogmd.extension_system.installer import ExtensionInstaller
from cogmd.extension_system.manifest import ContributionCategory
from cogmd.utils.exceptions import CogmdError


def _setup(args: argparse.Namespace) -> Tuple[ConfigManager, LoggingManager]:
    config_manager = ConfigManager(config_path=args.config)
    config_manager.initialize()
    if args.verbose:
        config_manager.set("logging.level", "DEBUG")
        config_manager.set("logging.console.level", "DEBUG")

    logging_manager = LoggingManager(config_manager)
    logging_manager.initialize()
    return config_manager, logging_manager


def _teardown(config_manager: ConfigManager, logging_manager: LoggingManager) -> None:
    logging_manager.shutdown()
    config_manager.shutdown()


def install_command(args: argparse.Namespace) -> int:
    """Handle the install command.

    Args:
        args: Command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        config_manager, logging_manager = _setup(args)
    except CogmdError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    try:
        installer = ExtensionInstaller.from_config(
            config_manager,
            home_dir=args.home,
            logger=logging_manager.get_logger("cogmd.extension_system.installer"),
        )
        info = installer.install_extension(Path(args.package))
    except CogmdError as e:
        print(f"Error installing extension: {e}", file=sys.stderr)
        return 1
    finally:
        _teardown(config_manager, logging_manager)

    if args.json:
        print(info.to_json())
        return 0

    print(f"Successfully installed extension: {info.display_name} ({info.name})")
    print(f"Installed to: {info.install_path}")
    for category in ContributionCategory:
        paths = info.paths_for(category)
        print(f"{category.value.capitalize()}: {len(paths)}")
        for path in paths:
            print(f"  - {path}")
    return 0


def inspect_command(args: argparse.Namespace) -> int:
    """Handle the inspect command.

    Args:
        args: Command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        config_manager, logging_manager = _setup(args)
    except CogmdError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    try:
        installer = ExtensionInstaller(
            ".",
            manifest_entry=config_manager.get("extensions.manifest_entry"),
            logger=logging_manager.get_logger("cogmd.extension_system.installer"),
        )
        manifest = installer.inspect_extension(Path(args.package))
    except CogmdError as e:
        print(f"Error reading extension: {e}", file=sys.stderr)
        return 1
    finally:
        _teardown(config_manager, logging_manager)

    if args.json:
        print(json.dumps(manifest.to_dict(), indent=2))
        return 0

    version = f" v{manifest.version}" if manifest.version else ""
    print(f"Extension: {manifest.display_name} ({manifest.name}){version}")
    if manifest.publisher:
        print(f"Publisher: {manifest.publisher}")
    if manifest.description:
        print(f"Description: {manifest.description}")
    for category in ContributionCategory:
        entries = manifest.contributes.for_category(category)
        print(f"{category.value.capitalize()}: {len(entries)}")
        for entry in entries:
            label = entry.label or entry.language or entry.scope_name
            suffix = f" ({label})" if label else ""
            print(f"  - {entry.path if entry.path is not None else '<no path>'}{suffix}")
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the command-line interface.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        description="CogMD extension installer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--config", default="cogmd.yaml", help="Configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Install command
    install_parser = subparsers.add_parser("install", help="Install an extension package")
    install_parser.add_argument("package", help="Extension package (.vsix)")
    install_parser.add_argument("--home", help="Home directory (defaults to the current user's)")
    install_parser.add_argument("--json", action="store_true", help="Print the install report as JSON")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show an extension package's contributions")
    inspect_parser.add_argument("package", help="Extension package (.vsix)")
    inspect_parser.add_argument("--json", action="store_true", help="Print the manifest as JSON")

    args = parser.parse_args(args)

    if args.command == "install":
        return install_command(args)
    elif args.command == "inspect":
        return inspect_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
