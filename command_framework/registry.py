"""Command registry and the builder that produces it.

The builder collects handlers, either through explicit register()
calls or by scanning containers for @command-tagged members, and
checks each one before it is accepted:

    - the name is a single non-empty token,
    - the handler can be called as handler(user_input, parser),
    - no other command folds to the same lowercase key.

Any violation aborts the build with a RegistryError subclass. The
finished CommandRegistry is read-only.

Key classes:
    CommandRegistry: Immutable mapping of lowercase key -> CommandData.
    RegistryBuilder: Accumulates and validates registrations.

Key functions:
    build_parser: One-call construction of a CommandParser from
        one or more containers.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

import structlog

from .commands.base import CommandContainer, discover_commands
from .config import DEFAULT_PREFIX
from .exceptions import (
    DuplicateCommandError,
    HandlerSignatureError,
    InvalidCommandNameError,
)
from .models import CaseSensitivity, CommandData

if TYPE_CHECKING:
    from .config import Config
    from .parser import CommandParser

logger = structlog.get_logger("command_framework.registry")

_EMPTY = inspect.Signature.empty


def _handler_name(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


def validate_handler(name: str, handler: Callable[..., Any]) -> None:
    """Check that ``handler`` can be called as handler(user_input, parser).

    A return annotation, when present, must be bool.

    Raises:
        HandlerSignatureError: If the handler does not fit.
    """
    if not callable(handler):
        raise HandlerSignatureError(
            f"Handler for command '{name}' is not callable",
            command_name=name,
            handler_name=repr(handler),
        )
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are taken on trust
        return

    try:
        sig.bind("", None)
    except TypeError as e:
        raise HandlerSignatureError(
            f"Handler for command '{name}' must accept (user_input, parser): {e}",
            command_name=name,
            handler_name=_handler_name(handler),
        ) from e

    returns = sig.return_annotation
    if returns is not _EMPTY and returns not in (bool, "bool"):
        raise HandlerSignatureError(
            f"Handler for command '{name}' must return bool, "
            f"annotated as {returns!r}",
            command_name=name,
            handler_name=_handler_name(handler),
        )


class CommandRegistry(Mapping[str, CommandData]):
    """Read-only mapping of lowercase command key -> CommandData.

    Built once by RegistryBuilder and shared by any number of parsers.
    """

    def __init__(self, commands: Mapping[str, CommandData]):
        self._commands = MappingProxyType(dict(commands))

    def __getitem__(self, key: str) -> CommandData:
        return self._commands[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return f"CommandRegistry({sorted(self._commands)!r})"

    @property
    def command_names(self) -> frozenset:
        """Declared names of all registered commands."""
        return frozenset(c.name for c in self._commands.values())


class RegistryBuilder:
    """Accumulates command registrations and builds a CommandRegistry.

    Supports two registration modes: register() for a single handler,
    and register_container() for every tagged handler of a module,
    class, or instance.
    """

    def __init__(self):
        self._commands: Dict[str, CommandData] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: Callable[..., Any],
        case_sensitivity: CaseSensitivity = CaseSensitivity.CASE_INVARIANT,
    ) -> "RegistryBuilder":
        """Register a single command.

        Args:
            name: User-facing name; its casing is kept for display and
                for case-sensitive matching.
            description: Help text.
            handler: Callable (user_input, parser) -> bool.
            case_sensitivity: Matching policy for the typed name.

        Returns:
            The builder, for chaining.

        Raises:
            InvalidCommandNameError: Name is empty or contains whitespace.
            HandlerSignatureError: Handler does not fit the signature.
            DuplicateCommandError: Another command has the same
                lowercase key.
        """
        if not isinstance(name, str) or not name or any(ch.isspace() for ch in name):
            raise InvalidCommandNameError(
                f"Invalid command name {name!r}: must be a single token",
                command_name=name if isinstance(name, str) else repr(name),
            )
        validate_handler(name, handler)

        key = name.lower()
        existing = self._commands.get(key)
        if existing is not None:
            logger.error(
                "command_registration_conflict",
                command=name,
                key=key,
                existing=existing.name,
            )
            raise DuplicateCommandError(
                f"Command '{name}' conflicts with already registered "
                f"'{existing.name}' (key '{key}')",
                command_name=name,
                key=key,
                existing_name=existing.name,
            )

        self._commands[key] = CommandData(
            name=name,
            description=description,
            case_sensitivity=CaseSensitivity(case_sensitivity),
            handler=handler,
        )
        logger.debug(
            "command_registered",
            command=name,
            case_sensitivity=CaseSensitivity(case_sensitivity).value,
            handler=_handler_name(handler),
        )
        return self

    def register_container(self, container: Any) -> "RegistryBuilder":
        """Register every @command-tagged handler in a container.

        Args:
            container: A module, a class, or an instance. Instances of
                CommandContainer contribute whatever their
                get_commands() returns.

        Returns:
            The builder, for chaining.
        """
        if isinstance(container, CommandContainer):
            tagged = container.get_commands()
        else:
            tagged = discover_commands(container)

        for tag, handler in tagged:
            self.register(
                tag.name,
                tag.description,
                handler,
                case_sensitivity=tag.case_sensitivity,
            )

        logger.debug(
            "container_registered",
            container=getattr(container, "__name__", type(container).__name__),
            commands=[tag.name for tag, _ in tagged],
        )
        return self

    def build(self) -> CommandRegistry:
        """Freeze the registrations into a CommandRegistry."""
        registry = CommandRegistry(self._commands)
        logger.info("command_registry_built", commands=len(registry))
        return registry

    def build_parser(
        self,
        prefix: str = DEFAULT_PREFIX,
        config: Optional["Config"] = None,
        **kwargs: Any,
    ) -> "CommandParser":
        """Build the registry and wrap it in a CommandParser.

        Args:
            prefix: Command prefix, ``"!"`` by default.
            config: Optional Config. When given, it is validated and
                its prefix replaces ``prefix``.
            **kwargs: Passed through to CommandParser.

        Raises:
            ConfigurationError: ``config`` holds an unusable prefix.
        """
        from .parser import CommandParser

        if config is not None:
            config.validate()
            prefix = config.prefix
        return CommandParser(self.build(), prefix=prefix, **kwargs)


def build_parser(
    *containers: Any,
    prefix: str = DEFAULT_PREFIX,
    config: Optional["Config"] = None,
    **kwargs: Any,
) -> "CommandParser":
    """Build a CommandParser from one or more containers.

    Example::

        parser = build_parser(my_commands_module, CoreCommands())
        parser.interpret("!help")

        # prefix from settings.yaml / COMMAND_PREFIX
        parser = build_parser(my_commands_module, config=get_config())
    """
    builder = RegistryBuilder()
    for container in containers:
        builder.register_container(container)
    return builder.build_parser(prefix=prefix, config=config, **kwargs)


def list_commands(registry: Mapping[str, CommandData]) -> List[CommandData]:
    """Snapshot of the registry entries, sorted by key."""
    return [registry[key] for key in sorted(registry)]
