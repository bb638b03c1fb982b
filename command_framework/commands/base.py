"""Handler declaration and discovery.

Handlers are tagged with the @command decorator and grouped into a
container: a module, a class (static/class methods only), or an
instance of any class, typically a CommandContainer subclass whose
bound methods share the instance's state. discover_commands() walks
a container and returns the tagged callables ready to register.

Key classes:
    CommandTag: Metadata attached to a handler by @command.
    CommandContainer: Base class for instance containers.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import HandlerSignatureError
from ..models import CaseSensitivity

COMMAND_TAG_ATTR = "__command_tag__"


@dataclass(frozen=True)
class CommandTag:
    """Command metadata declared on a handler."""

    name: str
    description: str = ""
    case_sensitivity: CaseSensitivity = CaseSensitivity.CASE_INVARIANT


def command(
    name: str,
    description: str = "",
    case_sensitivity: CaseSensitivity = CaseSensitivity.CASE_INVARIANT,
) -> Callable[[Any], Any]:
    """Tag a function as a command handler.

    Works above or below @staticmethod / @classmethod. The decorated
    object is returned unchanged apart from the tag.

    Handler signature: (user_input: str, parser: CommandParser) -> bool
    """
    tag = CommandTag(name=name, description=description, case_sensitivity=case_sensitivity)

    def decorator(fn):
        target = getattr(fn, "__func__", fn)
        setattr(target, COMMAND_TAG_ATTR, tag)
        return fn

    return decorator


def get_command_tag(member: Any) -> Optional[CommandTag]:
    """Return the CommandTag attached to a member, or None."""
    target = getattr(member, "__func__", member)
    tag = getattr(target, COMMAND_TAG_ATTR, None)
    return tag if isinstance(tag, CommandTag) else None


def _class_members(cls: type) -> Dict[str, Any]:
    """Raw class attributes across the MRO, subclasses overriding bases."""
    members: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        members.update(vars(klass))
    return members


def discover_commands(container: Any) -> List[Tuple[CommandTag, Callable[..., Any]]]:
    """Find every tagged handler in a container.

    Args:
        container: A module, a class, or an instance.

    Returns:
        (tag, callable) pairs in declaration order. The callables need
        no receiver: module functions, static/class methods, or bound
        methods of the instance.

    Raises:
        HandlerSignatureError: A class container tags a plain method,
            which would need an instance to be called.
    """
    if inspect.ismodule(container):
        # Only functions defined in the module itself; re-exports belong
        # to the module that declared them.
        members = {
            attr_name: member
            for attr_name, member in vars(container).items()
            if getattr(member, "__module__", None) == container.__name__
        }
    elif inspect.isclass(container):
        members = _class_members(container)
    else:
        members = _class_members(type(container))

    found: List[Tuple[CommandTag, Callable[..., Any]]] = []
    for attr_name, member in members.items():
        tag = get_command_tag(member)
        if tag is None:
            continue
        if inspect.isclass(container) and inspect.isfunction(member):
            raise HandlerSignatureError(
                f"Command '{tag.name}' is an instance method of "
                f"{container.__name__}; make it a staticmethod or register "
                "an instance of the container",
                command_name=tag.name,
                handler_name=member.__qualname__,
            )
        if inspect.ismodule(container):
            found.append((tag, member))
        else:
            found.append((tag, getattr(container, attr_name)))
    return found


class CommandContainer:
    """Base class for instance containers.

    Subclasses declare handlers as ordinary methods tagged with
    @command; registering an instance binds them, so each handler
    sees ``self`` and can reach whatever state the container holds.
    Override get_commands() to add handlers that are built at runtime.
    """

    def get_commands(self) -> List[Tuple[CommandTag, Callable[..., Any]]]:
        """Return (tag, handler) pairs to register."""
        return discover_commands(self)
