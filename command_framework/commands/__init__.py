"""Handler declaration for command_framework.

Provides the @command decorator, the CommandContainer base class,
container discovery, and the built-in CoreCommands container.
"""

from .base import CommandContainer, CommandTag, command, discover_commands, get_command_tag
from .core import CoreCommands, format_help

__all__ = [
    "CommandContainer",
    "CommandTag",
    "CoreCommands",
    "command",
    "discover_commands",
    "format_help",
    "get_command_tag",
]
