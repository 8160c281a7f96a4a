"""Run a command and collect its exit status and resource usage"""
import abc
import os
import subprocess
import tempfile
import time
from dataclasses import dataclass, fields
from typing import Dict, Sequence
from ..config import Config
from ..errors import MeasurementFacilityMissing
from ..logging_config import get_logger


logger = get_logger(__name__)

# Exit statuses used by shells when a command cannot be started
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126

CLOCK_TICKS_PER_SECOND = 100


@dataclass
class Measurement:
    """Exit status and resource usage of a finished child process"""
    exit_status: int
    command_line: str
    elapsed_seconds: float = 0.0
    user_seconds: float = 0.0
    system_seconds: float = 0.0
    max_resident_kb: int = 0
    avg_total_kb: int = 0
    avg_resident_kb: int = 0
    avg_unshared_data_kb: int = 0
    avg_unshared_stack_kb: int = 0
    avg_shared_text_kb: int = 0
    swaps: int = 0
    signals: int = 0
    involuntary_switches: int = 0
    voluntary_switches: int = 0
    fs_inputs: int = 0
    fs_outputs: int = 0
    socket_received: int = 0
    socket_sent: int = 0
    major_faults: int = 0
    minor_faults: int = 0


# Measurement field -> GNU time format directive
MEASUREMENT_DIRECTIVES: Dict[str, str] = {
    "exit_status": "%x",
    "command_line": "%C",
    "elapsed_seconds": "%e",
    "user_seconds": "%U",
    "system_seconds": "%S",
    "max_resident_kb": "%M",
    "avg_total_kb": "%K",
    "avg_resident_kb": "%t",
    "avg_unshared_data_kb": "%D",
    "avg_unshared_stack_kb": "%p",
    "avg_shared_text_kb": "%X",
    "swaps": "%W",
    "signals": "%k",
    "involuntary_switches": "%c",
    "voluntary_switches": "%w",
    "fs_inputs": "%I",
    "fs_outputs": "%O",
    "socket_received": "%r",
    "socket_sent": "%s",
    "major_faults": "%F",
    "minor_faults": "%R",
}


def command_line(command: Sequence[str]) -> str:
    return " ".join(command)


def exit_status_from_wait(status: int) -> int:
    """Shell style exit status, 128 + N for a child killed by signal N"""
    code = os.waitstatus_to_exitcode(status)
    if code < 0:
        return 128 - code
    return code


class Measurer(abc.ABC):
    """Runs a command to completion and measures it"""

    @abc.abstractmethod
    def run(self, command: Sequence[str]) -> Measurement:
        pass


class RusageMeasurer(Measurer):
    """Measure the child with the rusage record returned by wait4"""

    def run(self, command: Sequence[str]) -> Measurement:
        cmdline = command_line(command)
        start = time.monotonic()
        try:
            proc = subprocess.Popen(list(command))
        except FileNotFoundError:
            logger.warning("Command not found", command=cmdline)
            return Measurement(exit_status=EXIT_NOT_FOUND, command_line=cmdline)
        except OSError as e:
            logger.warning("Command not executable", command=cmdline, error=str(e))
            return Measurement(exit_status=EXIT_NOT_EXECUTABLE, command_line=cmdline)

        _, status, usage = os.wait4(proc.pid, 0)
        elapsed = time.monotonic() - start
        proc.returncode = os.waitstatus_to_exitcode(status)

        ticks = (usage.ru_utime + usage.ru_stime) * CLOCK_TICKS_PER_SECOND

        def average(integral: int) -> int:
            if ticks <= 0:
                return 0
            return int(integral / ticks)

        measurement = Measurement(
            exit_status=exit_status_from_wait(status),
            command_line=cmdline,
            elapsed_seconds=elapsed,
            user_seconds=usage.ru_utime,
            system_seconds=usage.ru_stime,
            max_resident_kb=usage.ru_maxrss,
            avg_total_kb=average(usage.ru_idrss + usage.ru_isrss + usage.ru_ixrss),
            avg_resident_kb=average(usage.ru_idrss),
            avg_unshared_data_kb=average(usage.ru_idrss + usage.ru_isrss),
            avg_unshared_stack_kb=average(usage.ru_isrss),
            avg_shared_text_kb=average(usage.ru_ixrss),
            swaps=usage.ru_nswap,
            signals=usage.ru_nsignals,
            involuntary_switches=usage.ru_nivcsw,
            voluntary_switches=usage.ru_nvcsw,
            fs_inputs=usage.ru_inblock,
            fs_outputs=usage.ru_oublock,
            socket_received=usage.ru_msgrcv,
            socket_sent=usage.ru_msgsnd,
            major_faults=usage.ru_majflt,
            minor_faults=usage.ru_minflt,
        )
        logger.debug("Command measured", command=cmdline, exit_status=measurement.exit_status,
                     elapsed_seconds=round(elapsed, 3))
        return measurement


class GnuTimeMeasurer(Measurer):
    """Measure the child by running it under GNU time"""

    def __init__(self, time_command):
        self.time_command = str(time_command)

    @staticmethod
    def time_format() -> str:
        # %C is left out, arguments may contain newlines
        return "\n".join(
            f"{name}={directive}"
            for name, directive in MEASUREMENT_DIRECTIVES.items()
            if name != "command_line"
        )

    def run(self, command: Sequence[str]) -> Measurement:
        cmdline = command_line(command)
        with tempfile.NamedTemporaryFile(mode="r", encoding="utf-8", prefix="promrun-", suffix=".time") as output:
            result = subprocess.run([
                self.time_command,
                "--quiet",
                f"--output={output.name}",
                f"--format={self.time_format()}",
                *command,
            ])
            report = output.read()

        measurement = self.parse(report, cmdline)
        if "exit_status=" not in report:
            # time could not start the command and wrote no report
            measurement.exit_status = result.returncode
        return measurement

    @staticmethod
    def parse(report: str, cmdline: str) -> Measurement:
        """Build a Measurement from key=value lines written by GNU time"""
        types = {f.name: f.type for f in fields(Measurement)}
        values = {}
        for line in report.splitlines():
            key, sep, raw = line.partition("=")
            if not sep or key not in types or key == "command_line":
                continue
            converter = float if types[key] is float else int
            try:
                values[key] = converter(raw.strip())
            except ValueError:
                logger.warning("Unparseable GNU time field", field=key, value=raw)
        values.setdefault("exit_status", 0)
        return Measurement(command_line=cmdline, **values)


class MeasurerFactory:
    """Factory for creating measurers based on configuration"""

    @staticmethod
    def create_measurer(config: Config) -> Measurer:
        if config.measurement_backend == "rusage":
            if not hasattr(os, "wait4"):
                raise MeasurementFacilityMissing("Resource accounting (wait4) is not available on this platform")
            return RusageMeasurer()
        elif config.measurement_backend == "gnu_time":
            if not os.access(config.gnu_time_command, os.X_OK):
                raise MeasurementFacilityMissing(f"GNU 'time' command must be executable: {config.gnu_time_command}")
            return GnuTimeMeasurer(config.gnu_time_command)
        else:
            raise MeasurementFacilityMissing(f"Unsupported measurement backend: {config.measurement_backend}")
