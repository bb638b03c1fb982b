"""Built-in commands.

Handles: help. Register an instance of CoreCommands alongside your
own containers to get a command listing for free.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import CommandContainer, command

if TYPE_CHECKING:
    from ..parser import CommandParser


def format_help(parser: "CommandParser") -> str:
    """Render every registered command with the current prefix."""
    lines = ["List of commands:"]
    for cmd in parser.get_commands():
        lines.append(f"- {parser.prefix}{cmd.name}")
        if cmd.description:
            lines.append(f"\t{cmd.description}")
    return "\n".join(lines)


class CoreCommands(CommandContainer):
    """Container for the built-in help command."""

    @command("help", "Shows this message, or details for one command")
    def handle_help(self, user_input: str, parser: "CommandParser") -> bool:
        """Handle help [command].

        Without arguments, lists every command. With a command name,
        shows that command only; an unknown name fails the command.
        """
        args = parser.get_arguments_from_user_input(user_input)
        if not args:
            parser.send_message(format_help(parser))
            return True

        wanted = args[0]
        if wanted.startswith(parser.prefix):
            wanted = wanted[len(parser.prefix):]
        cmd = parser.registry.get(wanted.lower())
        if cmd is None:
            parser.send_message(
                f"Unknown command: {parser.prefix}{wanted}\n"
                f"Use {parser.prefix}help to see available commands."
            )
            return False

        text = f"{parser.prefix}{cmd.name}"
        if cmd.description:
            text += f"\n\t{cmd.description}"
        if cmd.is_case_sensitive:
            text += "\n\t(case sensitive)"
        parser.send_message(text)
        return True
