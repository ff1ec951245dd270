import logging

from v0fetch.cli.parser import build_parser
from v0fetch.core.env import _parse_env_bool


def configure_logging(quiet: bool, verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    # Diagnostics go to stderr; stdout is reserved for the design dir and listings.
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    args = build_parser().parse_args()

    # Resolve quiet: CLI --quiet > V0FETCH_QUIET > builtin False.
    if args.quiet is None:
        env_quiet = _parse_env_bool("V0FETCH_QUIET")
        args.quiet = env_quiet if env_quiet is not None else False

    configure_logging(args.quiet, getattr(args, "verbose", False))
    args.func(args)
