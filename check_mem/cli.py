"""
check_mem command line plugin.

Prints a single status line with perfdata on stdout and exits with the
monitoring plugin status code (0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN).
Log messages go to stderr.
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from check_mem import __version__
from check_mem.config import get_settings
from check_mem.models.memory import METRICS, CheckOptions
from check_mem.models.quantity import UNIT_LABELS, Status
from check_mem.services import memory_monitor

logger = logging.getLogger(__name__)

# Defaults as documented in --help; a pair only becomes active when both
# flags are given on the command line.
DEFAULT_THRESHOLDS = {
    "free": (10.0, 5.0),
    "used": (90.0, 95.0),
    "buffer": (90.0, 95.0),
    "shared": (90.0, 95.0),
}

_DIRECTION_HELP = {
    "free": "below",
    "used": "above",
    "buffer": "above",
    "shared": "above",
}


class CheckArgumentError(Exception):
    def __init__(self, message: str, argument: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.argument = argument

    def render(self) -> str:
        if self.argument:
            return f"error: {self.message} for arg {self.argument}"
        return f"error: {self.message}"


class CheckArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise CheckArgumentError(message)


class ExplicitStore(argparse.Action):
    """Store the value and remember that the flag was given explicitly."""

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        namespace.explicit = set(namespace.explicit) | {self.dest}


def build_parser(default_unit: int = 2) -> argparse.ArgumentParser:
    parser = CheckArgumentParser(
        prog="check_mem",
        description="Check memory usage against warning and critical thresholds.",
        exit_on_error=False,
    )
    parser.set_defaults(explicit=frozenset())
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-u",
        "--unit",
        type=int,
        choices=range(len(UNIT_LABELS)),
        default=default_unit,
        metavar="UNITEXPONENT",
        help=(
            "unit for performance data (exponent of 1024, e.g. 0 for B, "
            f"1 for kB, default: {default_unit})"
        ),
    )
    for metric in ("free", "used", "buffer", "shared"):
        warning, critical = DEFAULT_THRESHOLDS[metric]
        side = _DIRECTION_HELP[metric]
        parser.add_argument(
            f"--{metric}-warning",
            type=float,
            action=ExplicitStore,
            default=warning,
            metavar="PERCENTAGE",
            help=f"warning threshold for {metric} memory ({side} %%, default: {warning:g})",
        )
        parser.add_argument(
            f"--{metric}-critical",
            type=float,
            action=ExplicitStore,
            default=critical,
            metavar="PERCENTAGE",
            help=f"critical threshold for {metric} memory ({side} %%, default: {critical:g})",
        )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="write debug log messages to stderr",
    )
    return parser


def parse_args(
    argv: Optional[List[str]] = None, default_unit: int = 2
) -> argparse.Namespace:
    parser = build_parser(default_unit)
    try:
        return parser.parse_args(argv)
    except argparse.ArgumentError as exc:
        raise CheckArgumentError(exc.message, exc.argument_name) from exc


def build_options(args: argparse.Namespace) -> CheckOptions:
    """
    Turn parsed arguments into a validated CheckOptions record.

    A metric's threshold pair is only set when both its warning and critical
    flags were given explicitly; the documented defaults never activate it.
    """
    pairs = {}
    for metric in METRICS:
        warning_dest = f"{metric}_warning"
        critical_dest = f"{metric}_critical"
        if warning_dest in args.explicit and critical_dest in args.explicit:
            pairs[metric] = {
                "warning": getattr(args, warning_dest),
                "critical": getattr(args, critical_dest),
            }
        elif warning_dest in args.explicit or critical_dest in args.explicit:
            logger.debug("%s thresholds ignored, both levels are required", metric)

    try:
        return CheckOptions(unit_exponent=args.unit, **pairs)
    except ValidationError as exc:
        raise _validation_to_argument_error(exc) from exc


def _validation_to_argument_error(exc: ValidationError) -> CheckArgumentError:
    error = exc.errors()[0]
    loc = [str(part) for part in error["loc"]]
    if loc == ["unit_exponent"]:
        argument = "--unit"
    else:
        argument = "--" + "-".join(loc).replace("_", "-")
    return CheckArgumentError(error["msg"], argument)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"error: invalid environment configuration: {exc.errors()[0]['msg']}")
        return int(Status.UNKNOWN)

    try:
        args = parse_args(argv, settings.unit_exponent)
        configure_logging("DEBUG" if args.debug else settings.log_level)
        options = build_options(args)
    except CheckArgumentError as exc:
        print(exc.render())
        return int(Status.UNKNOWN)

    try:
        result = memory_monitor.run_check(options)
    except memory_monitor.SnapshotError as exc:
        logger.error("could not read memory counters: %s", exc)
        print("UNKNOWN: Could not gather memory statistics")
        return int(Status.UNKNOWN)

    print(result.output)
    return result.exit_code


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
