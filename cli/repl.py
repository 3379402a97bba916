"""Interactive upload shell built on prompt_toolkit."""

import os
import sys
from typing import Callable, Dict

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import handle_config, handle_status, handle_upload
from cli.completer import RecvaultCompleter
from cli.constants import HELP_TEXT, LOGO, PROMPT_TEXT, STYLE, WELCOME_HELP, WELCOME_TITLE
from cli.models import CommandRequest, ConfigCommand, StatusCommand, UploadCommand
from cli.parser import ParseError, parse_command

HANDLERS: Dict[type, Callable[..., str]] = {
    UploadCommand: handle_upload,
    StatusCommand: handle_status,
    ConfigCommand: handle_config,
}


class ExitShell(Exception):
    pass


def clear_screen() -> None:
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def _builtin_clear() -> None:
    clear_screen()
    show_welcome()


def _builtin_exit() -> None:
    raise ExitShell()


BUILTINS: Dict[str, Callable[[], None]] = {
    "help": lambda: print(HELP_TEXT),
    "clear": _builtin_clear,
    "exit": _builtin_exit,
}


def dispatch_command(cmd_obj: CommandRequest) -> str:
    """Route a parsed command to its handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def run_line(line: str) -> None:
    """
    Execute one line of input.

    Raises:
        ParseError: If the line is not a valid command
        ExitShell: If the user asked to leave
    """
    stripped = line.strip()
    if not stripped:
        return

    builtin = BUILTINS.get(stripped)
    if builtin is not None:
        builtin()
        return

    print(dispatch_command(parse_command(line)))


def repl_loop() -> None:
    """Prompt for commands until 'exit' or EOF."""
    session: PromptSession = PromptSession(
        completer=RecvaultCompleter(),
        history=InMemoryHistory(),
        style=STYLE,
        complete_while_typing=False,
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            run_line(session.prompt([("class:prompt", PROMPT_TEXT)]))
        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except (EOFError, ExitShell):
            print("Goodbye!")
            break
