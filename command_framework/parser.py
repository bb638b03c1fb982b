"""Command parser: resolves raw input lines to registered handlers.

interpret() runs each line through the same steps:

    prefix check -> tokenize -> key lookup -> case policy -> invoke

Misses at any step return COMMAND_NOT_FOUND. A handler that raises or
returns False yields COMMAND_FAILED; the exception is logged and kept
on the DispatchOutcome from interpret_detailed(). Nothing raised by a
handler escapes interpret().

The registry is shared and read-only. ``prefix`` is the only mutable
state; callers that change it from several threads must serialize
those changes themselves.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import structlog

from .config import DEFAULT_PREFIX
from .exceptions import CommandNotFoundError
from .models import CommandData, DispatchOutcome, DispatchResult
from .registry import CommandRegistry, list_commands

logger = structlog.get_logger("command_framework.parser")

_NOT_FOUND = DispatchOutcome(result=DispatchResult.COMMAND_NOT_FOUND)


def split_arguments(user_input: str) -> List[str]:
    """Split input on whitespace and drop the command token.

    ``split_arguments("!roll 2 d6")`` returns ``["2", "d6"]``.
    """
    return user_input.split()[1:]


class CommandParser:
    """Dispatches prefixed input lines to the commands of a registry.

    Args:
        registry: Commands to dispatch to.
        prefix: Literal text that must open every command. Must be a str;
            may be empty, in which case every non-blank line is a
            candidate.
        send_message: Output callback for handlers that reply to the
            user (the built-in help command uses it). Defaults to print.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        prefix: str = DEFAULT_PREFIX,
        send_message: Optional[Callable[[str], None]] = None,
    ):
        self._registry = registry
        self.prefix = prefix
        self._send_message = send_message or print

    @property
    def prefix(self) -> str:
        return self._prefix

    @prefix.setter
    def prefix(self, value: str) -> None:
        # Any string is legal, the empty one included
        if not isinstance(value, str):
            raise TypeError(f"prefix must be a str, got {type(value).__name__}")
        self._prefix = value

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def send_message(self, text: str) -> None:
        """Deliver handler output to the user."""
        self._send_message(text)

    def resolve(self, user_input: str) -> Optional[CommandData]:
        """Find the command a line refers to, without invoking it.

        Returns:
            The matching CommandData, or None if the line lacks the
            prefix, names no registered command, or fails a
            case-sensitive match.
        """
        prefix = self.prefix
        if not user_input.startswith(prefix):
            return None

        tokens = user_input.split()
        if not tokens:
            return None
        raw_name = tokens[0][len(prefix):]

        entry = self._registry.get(raw_name.lower())
        if entry is None:
            return None

        # A case-sensitive near miss looks exactly like an unknown command
        if entry.is_case_sensitive and raw_name != entry.name:
            logger.debug("command_case_mismatch", typed=raw_name, command=entry.name)
            return None

        return entry

    def interpret_detailed(self, user_input: str) -> DispatchOutcome:
        """Interpret one line and report the resolved command and any error."""
        entry = self.resolve(user_input)
        if entry is None:
            logger.debug("command_not_found", input=user_input)
            return _NOT_FOUND

        logger.debug("command_dispatch", command=entry.name)
        try:
            succeeded = entry.handler(user_input, self)
        except Exception as e:
            logger.error(
                "command_handler_failed",
                command=entry.name,
                input=user_input,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return DispatchOutcome(
                result=DispatchResult.COMMAND_FAILED,
                command_name=entry.name,
                error=e,
            )

        if not succeeded:
            logger.info("command_handler_declined", command=entry.name)
            return DispatchOutcome(
                result=DispatchResult.COMMAND_FAILED,
                command_name=entry.name,
            )

        return DispatchOutcome(
            result=DispatchResult.COMMAND_SUCCEEDED,
            command_name=entry.name,
        )

    def interpret(self, user_input: str) -> DispatchResult:
        """Interpret one line of user input.

        Args:
            user_input: The raw line. It is passed to the handler
                unchanged, prefix and arguments included.

        Returns:
            COMMAND_SUCCEEDED, COMMAND_NOT_FOUND or COMMAND_FAILED.
        """
        return self.interpret_detailed(user_input).result

    def get_command_by_name(self, name: str) -> CommandData:
        """Look up a command by registry key.

        The lookup is exact: keys are stored lowercase, so pass the
        lowercase name.

        Raises:
            CommandNotFoundError: No command is stored under ``name``.
        """
        try:
            return self._registry[name]
        except KeyError:
            raise CommandNotFoundError(command_name=name) from None

    def get_commands(self) -> List[CommandData]:
        """Snapshot of all registered commands, sorted by key."""
        return list_commands(self._registry)

    @staticmethod
    def get_arguments_from_user_input(user_input: str) -> List[str]:
        """Alias of split_arguments for use from inside handlers."""
        return split_arguments(user_input)
