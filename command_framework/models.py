"""Pydantic models for command registration and dispatch.

Enums:
    CaseSensitivity, DispatchResult

Models:
    CommandData: One registered command (metadata + handler reference).
    DispatchOutcome: Result of interpreting one input line, with the
        resolved command name and any exception raised by the handler.
"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

# Handler signature: (user_input: str, parser: CommandParser) -> bool
Handler = Callable[[str, Any], bool]


class CaseSensitivity(str, Enum):
    """How the typed command name is matched against the declared name."""
    CASE_INVARIANT = "case_invariant"
    CASE_SENSITIVE = "case_sensitive"


class DispatchResult(str, Enum):
    """Outcome of interpreting one line of user input.

    COMMAND_FAILED covers both a handler that raised and a handler
    that returned False.
    """
    COMMAND_SUCCEEDED = "command_succeeded"
    COMMAND_NOT_FOUND = "command_not_found"
    COMMAND_FAILED = "command_failed"


class CommandData(BaseModel):
    """A registered command.

    ``name`` keeps the declared casing; case-sensitive commands are
    matched against it byte-for-byte. Lookups go through ``key``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="User-facing command name, declared casing")
    description: str = Field(default="", description="Help text for listings")
    case_sensitivity: CaseSensitivity = Field(default=CaseSensitivity.CASE_INVARIANT)
    handler: Handler = Field(..., repr=False, description="Callable invoked on dispatch")

    @property
    def key(self) -> str:
        """Registry key: the lowercase-folded name."""
        return self.name.lower()

    @property
    def is_case_sensitive(self) -> bool:
        return self.case_sensitivity == CaseSensitivity.CASE_SENSITIVE


class DispatchOutcome(BaseModel):
    """Detailed result of ``CommandParser.interpret_detailed``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    result: DispatchResult
    command_name: Optional[str] = Field(
        default=None, description="Declared name of the resolved command, if any"
    )
    error: Optional[BaseException] = Field(
        default=None, description="Exception raised by the handler, if any"
    )

    @property
    def succeeded(self) -> bool:
        return self.result == DispatchResult.COMMAND_SUCCEEDED
