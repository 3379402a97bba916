"""Custom completer for recvault CLI with recording file autocompletion."""

from pathlib import Path
from typing import Iterable, Optional

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, SUPPORTED_FILE_EXTENSIONS

UPLOAD_FLAGS = ["--name", "--resumable", "--id", "--concurrency", "--direct"]


class RecvaultCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Recording paths and option flags for the 'upload' command
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        if tokens[0].lower() != "upload":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        if current_word.startswith("-"):
            yield from self._complete_flags(current_word, set(tokens[1:]))
            return

        yield from self._complete_recordings(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_flags(self, partial: str, used: set) -> Iterable[Completion]:
        for flag in UPLOAD_FLAGS:
            if flag.startswith(partial) and flag not in used:
                yield Completion(flag, start_position=-len(partial))

    def _complete_recordings(self, partial: str) -> Iterable[Completion]:
        """
        Complete paths of recording files relative to the working directory.

        Directories are offered with a trailing slash so nested paths can be built.
        """
        base = self.base_dir or Path.cwd()
        head, _, prefix = partial.rpartition("/")
        directory = base / head if head else base

        if not directory.is_dir():
            return

        for item in sorted(directory.iterdir()):
            if item.name.startswith(".") or not item.name.startswith(prefix):
                continue
            rel = f"{head}/{item.name}" if head else item.name
            if item.is_dir():
                yield Completion(rel + "/", start_position=-len(partial))
            elif item.name.lower().endswith(SUPPORTED_FILE_EXTENSIONS):
                yield Completion(rel, start_position=-len(partial))
