"""CogMD extension installer.

Installs VSIX-style editor extension packages by extracting the theme,
grammar and snippet assets the editor understands.
"""

from cogmd.__version__ import __version__

__all__ = ["__version__"]
