"""Command parser for CLI input."""

import shlex

from cli.models import CommandRequest, ConfigCommand, StatusCommand, UploadCommand


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/Status/Config)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "status":
        return _parse_status(tokens[1:])
    elif command_name == "config":
        return _parse_config(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _take_value(args: list[str], index: int, flag: str) -> str:
    if index + 1 >= len(args) or args[index + 1].startswith("--"):
        raise ParseError(f"{flag} requires a value")
    return args[index + 1]


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [--name N] [--resumable] [--id ID] [--concurrency N] [--direct]'."""
    path = None
    name = None
    resumable = False
    upload_id = None
    concurrency = None
    direct = False

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--name":
            name = _take_value(args, i, arg)
            i += 2
        elif arg == "--id":
            upload_id = _take_value(args, i, arg)
            resumable = True
            i += 2
        elif arg == "--concurrency":
            raw = _take_value(args, i, arg)
            try:
                concurrency = int(raw)
            except ValueError:
                raise ParseError(f"--concurrency must be an integer, got '{raw}'")
            if concurrency < 1:
                raise ParseError("--concurrency must be at least 1")
            i += 2
        elif arg == "--resumable":
            resumable = True
            i += 1
        elif arg == "--direct":
            direct = True
            i += 1
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option: {arg}")
        elif path is None:
            path = arg
            i += 1
        else:
            raise ParseError("upload takes exactly one file path")

    if path is None:
        raise ParseError("upload requires a file path")
    if direct and (resumable or concurrency is not None):
        raise ParseError("--direct cannot be combined with chunked upload options")

    return UploadCommand(
        path=path,
        name=name,
        resumable=resumable,
        upload_id=upload_id,
        concurrency=concurrency,
        direct=direct,
    )


def _parse_status(args: list[str]) -> StatusCommand:
    """Parse 'status <upload_id>' command."""
    if len(args) != 1:
        raise ParseError("status requires exactly 1 argument: <upload_id>")
    return StatusCommand(upload_id=args[0])


def _parse_config(args: list[str]) -> ConfigCommand:
    """Parse 'config' or 'config set <key> <value>' command."""
    if not args:
        return ConfigCommand()
    if args[0] != "set" or len(args) != 3:
        raise ParseError("usage: config | config set <key> <value>")
    return ConfigCommand(key=args[1], value=args[2])
