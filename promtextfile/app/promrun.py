"""promrun: run a command and record its resource usage and exit status

The child is measured through a :class:`~promtextfile.collectors.Measurer`,
the start and end timestamps are taken around it.
"""
import argparse
import sys
from typing import Iterable, List, Optional
from ..collectors import MeasurerFactory
from ..collectors.process import MEASUREMENT_DIRECTIVES
from ..config import DEFAULT_TEXTFILE_DIRECTORY, Config
from ..errors import MissingArgument
from ..logging_config import get_logger
from ..metrics import Label, LabelSet, MetricDocument, Slot, unix_time, validate_metric_name
from ..metrics.exporters import TextfilePublisher
from .cli import build_parser, run


logger = get_logger(__name__)

PREFIX = "promrun"
TOOL = "promrun"

EPILOG = f"""\
NAME (-n) and COMMAND are required and must be specified after arguments

Basic example creating {DEFAULT_TEXTFILE_DIRECTORY}/promrun_ls_test.prom:
{TOOL} -n ls_test ls

Example with description and custom labels:
{TOOL} -n ls_test -l environment="Production Environment" -l test=true -d "ls command test" ls
"""

# (metric suffix, measurement field, help text), in output order
MEASURED_SAMPLES = [
    ("cpu_kernel_mode_seconds", "system_seconds",
     "Total number of CPU-seconds that the process spent in kernel mode."),
    ("elapsed_seconds", "elapsed_seconds",
     "Elapsed real time (in seconds)."),
    ("cpu_user_mode_seconds", "user_seconds",
     "Total number of CPU-seconds that the process spent in user mode."),
    ("max_resident_memory_kb", "max_resident_kb",
     "Maximum resident set size of the process during its lifetime, in Kbytes."),
    ("avg_total_memory_kb", "avg_total_kb",
     "Average total (data+stack+text) memory use of the process, in Kbytes."),
    ("swapped_from_main_memory_count", "swaps",
     "Number of times the process was swapped out of main memory."),
    ("signals_delivered_to_process_count", "signals",
     "Number of signals delivered to the process."),
    ("context_switch_count_involuntary_count", "involuntary_switches",
     "Number of times the process was context-switched involuntarily (because the time slice expired)."),
    ("context_switch_count_voluntary_count", "voluntary_switches",
     "Number of waits, times that the program was context-switched voluntarily, "
     "for instance while waiting for an I/O operation to complete."),
    ("filesystem_inputs_count", "fs_inputs",
     "Number of filesystem inputs by the process."),
    ("filesystem_outputs_count", "fs_outputs",
     "Number of filesystem outputs by the process."),
    ("socket_messages_received_count", "socket_received",
     "Number of socket messages received by the process."),
    ("socket_messages_sent_count", "socket_sent",
     "Number of socket messages sent by the process."),
    ("exit_status", "exit_status",
     "Exit status of the command."),
    ("process_avg_size_resident_set_kb", "avg_resident_kb",
     "Average resident set size of the process, in Kbytes."),
    ("process_avg_size_unshared_data_area_kb", "avg_unshared_data_kb",
     "Average size of the process's unshared data area, in Kbytes."),
    ("process_avg_size_unshared_stack_space_kb", "avg_unshared_stack_kb",
     "Average size of the process's unshared stack space, in Kbytes."),
    ("process_avg_size_shared_text_space_kb", "avg_shared_text_kb",
     "Average size of the process's shared text space, in Kbytes."),
    ("major_page_fault_count", "major_faults",
     "Number of major page faults that occurred while the process was running. "
     "These are faults where the page has to be read in from disk."),
    ("minor_page_fault_count", "minor_faults",
     "Number of minor, or recoverable, page faults. These are faults for pages that are not valid "
     "but which have not yet been claimed by other virtual pages. Thus the data in the page is still "
     "valid but the system tables must be updated."),
]

SECONDS_PRECISION = 2


def tool_labels(name: str, kind: str):
    return (Label(f"{TOOL}_name", name), Label(TOOL, kind))


def build_document(metric_name: str, name: str, labels: Iterable[Label], command: List[str],
                   start_time: float) -> MetricDocument:
    """Everything up to the end time, measured values are left as slots"""
    document = MetricDocument(metric_name, labels)
    document.add_timestamp("starttime", "Start time in Unix time with microseconds.", start_time,
                           extra_labels=tool_labels(name, "starttime"))
    for suffix, field, help_text in MEASURED_SAMPLES:
        slot = Slot(field, MEASUREMENT_DIRECTIVES[field])
        extra = tool_labels(name, "exit") if field == "exit_status" else ()
        precision = SECONDS_PRECISION if suffix.endswith("_seconds") else None
        document.add(suffix, help_text, slot, extra_labels=extra, precision=precision)
    document.add("command", "Name and command-line arguments of the command being timed. See Label.", 1,
                 extra_labels=(Label("command", " ".join(command)),))
    return document


def run_and_measure(args: argparse.Namespace, config: Config) -> int:
    if not args.name:
        raise MissingArgument("NAME (-n) must be defined")

    labels = LabelSet.from_assignments(args.labels).finalize(config.user, args.description)
    metric_name = validate_metric_name(f"{PREFIX}_{args.name}")

    publisher = TextfilePublisher(config)
    path = publisher.output_path(PREFIX, args.name, args.identifier)

    if args.setup_user:
        publisher.provision(path, args.setup_user)
        return 0

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        raise MissingArgument("A command to run must be specified")

    measurer = MeasurerFactory.create_measurer(config)

    document = build_document(metric_name, args.name, labels, command, unix_time())
    logger.debug("Measurement template", metric=metric_name, template=document.template())

    measurement = measurer.run(command)
    document.add_timestamp("endtime", "End time in Unix time with microseconds.", unix_time(),
                           extra_labels=tool_labels(args.name, "endtime"))

    publisher.publish(path, document.render(measurement), len(document))

    # Same exit status as the child
    return measurement.exit_status


def build_promrun_parser() -> argparse.ArgumentParser:
    parser = build_parser(TOOL, "Run a command and record its resource usage as node_exporter textfile metrics",
                          EPILOG)
    parser.add_argument("-n", dest="name", metavar="NAME",
                        help="Required metric name suffix, all metrics are prefixed with 'promrun_'")
    parser.add_argument("command", nargs=argparse.REMAINDER, metavar="COMMAND")
    return parser


def run_promrun(argv: Optional[List[str]] = None) -> int:
    return run(run_and_measure, build_promrun_parser(), argv)


def main():
    sys.exit(run_promrun())


if __name__ == '__main__':
    main()
