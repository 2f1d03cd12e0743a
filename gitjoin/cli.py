"""Command line entry point for gitjoin."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import Config, load_configuration, validate_configuration
from .errors import ConfigurationError, GitJoinError, error_handler
from .reconcile import sync

LOGGERS = [
    'gitjoin.config',
    'gitjoin.manifest',
    'gitjoin.sync',
    'gitjoin.sweeper',
    'gitjoin.gitignore',
    'gitjoin.reconcile',
    'gitjoin.git_sync',
    'gitjoin.error_handler',
    'gitjoin.performance',
]


class StructuredFormatter(logging.Formatter):
    """Prefixes records carrying an ``operation`` with it."""

    def format(self, record):
        message = super().format(record)
        operation = getattr(record, 'operation', None)
        if operation:
            return f"[{operation}] {message}"
        return message


def setup_logging(config: Config) -> None:
    """Configure the gitjoin loggers; quiet keeps only errors."""
    level = getattr(logging, config.log_level)
    if config.quiet:
        level = max(level, logging.ERROR)

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger('gitjoin')
    root_logger.setLevel(level)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.propagate = False

    for logger_name in LOGGERS:
        logging.getLogger(logger_name).setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitjoin",
        description="Clone, update and prune the git checkouts declared in gitjoin.txt files below the root directory."
    )
    parser.add_argument("--force", action="store_true", default=None,
                        help="force sync: stash changes, switch to default branch")
    parser.add_argument("--quiet", action="store_true", default=None,
                        help="suppress all output")
    parser.add_argument("--paths", metavar="GLOB",
                        help="glob filter for repo paths")
    parser.add_argument("--root", metavar="DIR",
                        help="directory to reconcile (default: current directory)")
    parser.add_argument("--workers", type=int, metavar="N",
                        help="number of repositories processed in parallel")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="log level (default: WARNING or $GITJOIN_LOG_LEVEL)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run gitjoin.

    Returns:
        Process exit code: 0 on success, 1 on a run-level error, 130 on interrupt
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_configuration(
            root=args.root,
            force=args.force,
            quiet=args.quiet,
            paths=args.paths,
            workers=args.workers,
            log_level=args.log_level,
        )
        setup_logging(config)

        problems = validate_configuration(config)
        if problems:
            raise ConfigurationError("; ".join(problems))

        sync(config, sys.stderr)
    except GitJoinError as e:
        print(error_handler.handle_run_error(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
