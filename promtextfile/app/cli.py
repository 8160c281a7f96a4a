"""Command line plumbing shared by promcron and promrun"""
import argparse
import sys
from typing import Callable, List, Optional
from pydantic import ValidationError as SettingsError
from ..config import Config, DEFAULT_TEXTFILE_DIRECTORY
from ..errors import TextfileError, UsageError
from ..logging_config import get_logger, log_error, setup_structured_logging


logger = get_logger(__name__)

Handler = Callable[[argparse.Namespace, Config], int]


class UsageParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad flags as a UsageError"""

    def error(self, message):
        self.print_usage(sys.stderr)
        sys.stderr.write(f"{self.prog}: {message}\n")
        raise UsageError(message)


def build_parser(prog: str, description: str, epilog: str) -> UsageParser:
    """Options common to both tools, mode specific arguments are added by the caller"""
    parser = UsageParser(
        prog=prog,
        description=description,
        epilog=epilog,
        add_help=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", dest="description", metavar="DESCRIPTION",
                        help="Optional description")
    parser.add_argument("-D", dest="dry_run", action="store_true",
                        help="Enable dryrun mode")
    parser.add_argument("-h", dest="help", action="store_true",
                        help="Print usage")
    parser.add_argument("-i", dest="identifier", metavar="IDENTIFIER",
                        help="Output identifier, needed when multiple jobs have the same name, "
                             "but have different labels")
    parser.add_argument("-l", dest="labels", metavar="label_name=label_value", action="append", default=[],
                        help="Optionally add specified labels to node_exporter textfile data "
                             "(May be specified multiple times)")
    parser.add_argument("-s", dest="setup_user", metavar="USERNAME",
                        help="Optionally setup textfile directory file permissions for specified "
                             "username. Must be run as root. Run in dryrun mode to inspect changes")
    parser.add_argument("-t", dest="textfile_directory", metavar="DIRECTORY",
                        help=f"Specify a textfiles directory (Defaults to: {DEFAULT_TEXTFILE_DIRECTORY})")
    parser.add_argument("-v", dest="verbose", action="store_true",
                        help="Enable verbose mode")
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Command line flags override the environment"""
    overrides = {}
    if args.textfile_directory:
        overrides["textfile_directory"] = args.textfile_directory
    if args.dry_run:
        overrides["dry_run"] = True
    if args.verbose:
        overrides["verbose"] = True
    return Config(**overrides)


def run(handler: Handler, parser: UsageParser, argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run ``handler`` and map errors to exit statuses"""
    try:
        args = parser.parse_args(argv)
        if args.help:
            raise UsageError("help requested")
        config = build_config(args)
        setup_structured_logging(config)
        return handler(args, config)
    except UsageError:
        parser.print_help(sys.stdout)
        return UsageError.exit_code
    except TextfileError as e:
        sys.stderr.write(f"{e}\n")
        logger.debug("Invocation aborted", error=str(e), error_type=type(e).__name__,
                     exit_code=e.exit_code)
        return e.exit_code
    except SettingsError as e:
        sys.stderr.write(f"Invalid configuration: {e}\n")
        return TextfileError.exit_code
    except OSError as e:
        # I/O failures while publishing are not retried
        log_error(logger, e, {"component": parser.prog, "phase": "publish"})
        raise
