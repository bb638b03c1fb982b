"""Custom exception hierarchy for command_framework.

Construction-time problems (bad handler signatures, name collisions)
raise from the registry builder and abort the build. Lookup misses on
the explicit ``get_command_by_name`` path raise CommandNotFoundError.
The ``interpret`` path never raises; it reports misses and handler
failures as DispatchResult values.
"""

from typing import Any, Optional


class CommandFrameworkError(Exception):
    """Base exception for all command_framework errors.

    Attributes:
        message: Human-readable error description.
        module: Originating module name (e.g. "registry").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"{cls}({self.message!r}, module={self.module!r})"


# ---------------------------------------------------------------------------
# Registry construction exceptions
# ---------------------------------------------------------------------------

class RegistryError(CommandFrameworkError):
    """Error while building a command registry. Fatal to the build."""

    def __init__(
        self,
        message: str = "",
        *,
        command_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command_name = command_name
        super().__init__(message, module=module or "registry", **context)


class HandlerSignatureError(RegistryError):
    """A tagged handler cannot be called as ``handler(input, parser)``.

    Raised when the member needs an instance to be bound first, or
    when its parameters cannot accept the two positional arguments.

    Attributes:
        handler_name: Qualified name of the offending callable.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command_name: Optional[str] = None,
        handler_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.handler_name = handler_name
        super().__init__(
            message, command_name=command_name, module=module, **context
        )


class DuplicateCommandError(RegistryError):
    """Two commands fold to the same registry key.

    Attributes:
        key: The lowercase registry key both names map to.
        existing_name: Declared name of the command registered first.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command_name: Optional[str] = None,
        key: Optional[str] = None,
        existing_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.key = key
        self.existing_name = existing_name
        super().__init__(
            message, command_name=command_name, module=module, **context
        )


class InvalidCommandNameError(RegistryError):
    """Command name is empty or contains whitespace."""


# ---------------------------------------------------------------------------
# Lookup exceptions
# ---------------------------------------------------------------------------

class CommandNotFoundError(CommandFrameworkError):
    """No command is registered under the requested name.

    Only raised by explicit lookups; ``interpret`` returns
    ``DispatchResult.COMMAND_NOT_FOUND`` instead.

    Attributes:
        command_name: The name that was looked up.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command_name = command_name
        super().__init__(
            message or f"No command by name {command_name}",
            module=module or "parser",
            **context,
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(CommandFrameworkError):
    """Invalid or missing configuration."""

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(message, module=module or "config", **context)
