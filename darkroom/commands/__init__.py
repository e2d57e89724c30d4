"""
Command implementations.

Each sub-command is an async function taking a catalog client (or the
config, for `validate`) plus its options, printing its report and
returning a process exit code.
"""

from darkroom.commands.auto_album import AutoAlbumOptions, auto_album
from darkroom.commands.stack import StackOptions, stack
from darkroom.commands.validate import validate

__all__ = [
    "AutoAlbumOptions",
    "StackOptions",
    "auto_album",
    "stack",
    "validate",
]
