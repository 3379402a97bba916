"""Entry point for the recvault shell."""

import argparse
import os

from common.logging_config import setup_logging
from cli.repl import repl_loop


def main() -> None:
    parser = argparse.ArgumentParser(prog="recvault", description="Upload recordings to a recvault server")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    args = parser.parse_args()

    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level)
    setup_logging('uploader', log_level=log_level)

    logger.debug("recvault shell starting")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"Shell crashed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
