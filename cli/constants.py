"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "status", "config", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9BF0 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;155;240m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
 ██████╗ ███████╗ ██████╗██╗   ██╗ █████╗ ██╗   ██╗██╗  ████████╗
 ██╔══██╗██╔════╝██╔════╝██║   ██║██╔══██╗██║   ██║██║  ╚══██╔══╝
 ██████╔╝█████╗  ██║     ██║   ██║███████║██║   ██║██║     ██║
 ██╔══██╗██╔══╝  ██║     ╚██╗ ██╔╝██╔══██║██║   ██║██║     ██║
 ██║  ██║███████╗╚██████╗ ╚████╔╝ ██║  ██║╚██████╔╝███████╗██║
 ╚═╝  ╚═╝╚══════╝ ╚═════╝  ╚═══╝  ╚═╝  ╚═╝ ╚═════╝ ╚══════╝╚═╝
{RESET}"""

WELCOME_TITLE = "recvault CLI - chunked recording uploads"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "recvault> "

HELP_TEXT = """Available commands:
  upload <path> [options]             Upload a recording (chunked above the threshold)
      --name <filename>               Store under a different filename
      --resumable                     Skip chunks the server already holds
      --id <upload_id>                Reuse an earlier upload id (implies --resumable)
      --concurrency <n>               Max chunk requests in flight
      --direct                        Always send in a single request
  status <upload_id>                  Show which chunks the server holds
  config                              Show current settings
  config set <key> <value>            Change a setting (e.g. chunk_size 2097152)
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  upload recordings/demo.webm
  upload big.webm --concurrency 3
  upload big.webm --id upload_1700000000000_abc123xyz
  status upload_1700000000000_abc123xyz"""

SUPPORTED_FILE_EXTENSIONS = (".webm", ".mp4", ".mp3", ".wav", ".ogg", ".m4a", ".mkv", ".mov", ".dat")
