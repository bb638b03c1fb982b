"""Prefix command parsing and dispatch.

Declare handlers with @command, collect them into a registry, and let
a CommandParser turn raw input lines such as ``"!help"`` into handler
calls.
"""

from .commands import CommandContainer, CoreCommands, command, format_help
from .exceptions import (
    CommandFrameworkError,
    CommandNotFoundError,
    ConfigurationError,
    DuplicateCommandError,
    HandlerSignatureError,
    InvalidCommandNameError,
    RegistryError,
)
from .models import CaseSensitivity, CommandData, DispatchOutcome, DispatchResult
from .parser import DEFAULT_PREFIX, CommandParser, split_arguments
from .registry import CommandRegistry, RegistryBuilder, build_parser

__version__ = "1.0.0"

__all__ = [
    # Declaration
    "command",
    "CommandContainer",
    "CoreCommands",
    "format_help",
    # Models
    "CaseSensitivity",
    "CommandData",
    "DispatchOutcome",
    "DispatchResult",
    # Registry
    "CommandRegistry",
    "RegistryBuilder",
    "build_parser",
    # Parser
    "CommandParser",
    "DEFAULT_PREFIX",
    "split_arguments",
    # Exceptions
    "CommandFrameworkError",
    "RegistryError",
    "HandlerSignatureError",
    "DuplicateCommandError",
    "InvalidCommandNameError",
    "CommandNotFoundError",
    "ConfigurationError",
]
