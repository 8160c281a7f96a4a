"""promcron: record the exit code of a command that already ran

Typical crontab usage::

    * * * * *    ls ; promcron ls_test $?
"""
import argparse
import re
import sys
from typing import Iterable, List, Optional
from ..config import DEFAULT_TEXTFILE_DIRECTORY, Config
from ..errors import InvalidValue, MissingArgument
from ..logging_config import get_logger
from ..metrics import Label, LabelSet, MetricDocument, unix_time, validate_metric_name
from ..metrics.exporters import TextfilePublisher
from .cli import build_parser, run


logger = get_logger(__name__)

PREFIX = "cron"
TOOL = "promcron"

_EXIT_VALUE = re.compile(r"[0-9]+")

EPILOG = f"""\
NAME and VALUE are required and must be specified after arguments

Basic example creating {DEFAULT_TEXTFILE_DIRECTORY}/cron_ls_test.prom:
* * * * *    ls ; {TOOL} ls_test $?

Example with description and custom labels:
* * * * *    ls ; {TOOL} -l environment="Production Environment" -l test=true -d "ls command test" ls_test $?
"""


def parse_exit_value(value: Optional[str]) -> int:
    """VALUE must be a return code, digits only and at most 255"""
    if value is None or value == "":
        raise MissingArgument("NAME and VALUE must be defined")
    if not _EXIT_VALUE.fullmatch(value) or int(value) > 255:
        raise InvalidValue("VALUE must be a return code (Integer between 0 and 255)")
    return int(value)


def build_document(metric_name: str, name: str, labels: Iterable[Label], value: int,
                   end_time: float) -> MetricDocument:
    document = MetricDocument(metric_name, labels)
    document.add_timestamp(
        "endtime", "Unix time in microseconds.", end_time,
        extra_labels=(Label(f"{TOOL}_name", name), Label(TOOL, "endtime")),
    )
    document.add(
        "", "Process return code.", value,
        extra_labels=(Label(f"{TOOL}_name", name), Label(TOOL, "value")),
    )
    return document


def record(args: argparse.Namespace, config: Config) -> int:
    if not args.name:
        raise MissingArgument("NAME must be defined")

    labels = LabelSet.from_assignments(args.labels).finalize(config.user, args.description)
    metric_name = validate_metric_name(f"{PREFIX}_{args.name}")

    publisher = TextfilePublisher(config)
    path = publisher.output_path(PREFIX, args.name, args.identifier)

    if args.setup_user:
        publisher.provision(path, args.setup_user)
        return 0

    value = parse_exit_value(args.value)
    document = build_document(metric_name, args.name, labels, value, unix_time())
    publisher.publish(path, document.render(), len(document))
    if config.dry_run:
        return 0
    logger.debug("Exit value recorded", metric=metric_name, value=value, path=str(path))

    # Pass the recorded exit code through to the caller
    return value


def build_promcron_parser() -> argparse.ArgumentParser:
    parser = build_parser(TOOL, "Record the return code of an exited command as node_exporter textfile metrics",
                          EPILOG)
    parser.add_argument("name", nargs="?", metavar="NAME")
    parser.add_argument("value", nargs="?", metavar="VALUE")
    # Anything after VALUE is ignored
    parser.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    return parser


def run_promcron(argv: Optional[List[str]] = None) -> int:
    return run(record, build_promcron_parser(), argv)


def main():
    sys.exit(run_promcron())


if __name__ == '__main__':
    main()
