"""Command-line front door for termedit.

Parses flags and subcommand words, configures logging, then hands off to the
runtime bootstrap. Deferred standard output is flushed here on the way out.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import clean_config_dir, init_config_dir, resolve_config_dir
from .errors import ConfigError
from .runtime import StartupOptions, run_editor
from .settings import default_all_settings, format_option_help
from .util import DEFERRED_STDOUT
from .version import version_report

DEBUG_LOG_FILENAME = "log.txt"
USAGE_EXIT_CODE = 1
SUBCOMMANDS = ("version", "options")


class _ArgumentParser(argparse.ArgumentParser):
    """Exit 1 on usage errors instead of argparse's default 2."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT_CODE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="termedit",
        description="A terminal text editor.",
        epilog="Subcommands: 'termedit version' and 'termedit options' (the first positional word).",
        allow_abbrev=False,
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="Files to open. '+LINE' or '+LINE:COL' sets the cursor start position.",
    )
    parser.add_argument("--clean", action="store_true", help="Clean the configuration directory and exit.")
    parser.add_argument("--config-dir", default=None, help="Use DIR as the configuration directory.")
    parser.add_argument("--debug", action="store_true", help=f"Write a debug log to ./{DEBUG_LOG_FILENAME}.")

    options = parser.add_argument_group("options", "Override a setting for this session.")
    for option in sorted(default_all_settings()):
        options.add_argument(
            f"--{option}",
            f"-{option}",
            dest=f"opt_{option}",
            default=None,
            metavar="VALUE",
        )
    return parser


def configure_logging(debug: bool) -> None:
    """Send package logs to ``log.txt`` with ``--debug``; otherwise discard them.

    Nothing may reach the terminal while the editor owns it.
    """
    logger = logging.getLogger("termedit")
    logger.handlers = []
    if debug:
        handler = logging.FileHandler(DEBUG_LOG_FILENAME, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)
    logger.propagate = False


def option_overrides(namespace: argparse.Namespace) -> dict[str, str]:
    """Collect only the option flags the user actually passed."""
    overrides: dict[str, str] = {}
    for option in sorted(default_all_settings()):
        value = getattr(namespace, f"opt_{option}", None)
        if value is not None:
            overrides[option] = value
    return overrides


def run_clean(config_dir_flag: str | None) -> int:
    config_dir = resolve_config_dir(config_dir_flag)
    try:
        init_config_dir(config_dir)
        report = clean_config_dir(config_dir)
    except ConfigError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    for line in report:
        sys.stdout.write(f"{line}\n")
    sys.stdout.write(f"Done cleaning {config_dir}\n")
    return 0


def _run(argv: list[str]) -> None:
    # Flags may sit between positionals: `termedit a.txt -tabsize 8 b.txt`.
    args = build_parser().parse_intermixed_args(argv)
    subcommand = args.files[0] if args.files and args.files[0] in SUBCOMMANDS else None
    if subcommand == "version":
        sys.stdout.write(version_report())
        return
    if subcommand == "options":
        sys.stdout.write(format_option_help(default_all_settings()))
        return

    configure_logging(args.debug)

    if args.clean:
        raise SystemExit(run_clean(args.config_dir))

    run_editor(
        StartupOptions(
            args=list(args.files),
            config_dir=args.config_dir,
            option_overrides=option_overrides(args),
        )
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the editor.

    ``argv`` defaults to ``sys.argv[1:]``. Text deferred for standard output
    is written once, after the editor has released the terminal.
    """
    if argv is None:
        argv = sys.argv[1:]
    try:
        _run(list(argv))
    finally:
        DEFERRED_STDOUT.flush_to(sys.stdout)


if __name__ == "__main__":
    main()
