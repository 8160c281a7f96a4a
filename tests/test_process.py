"""Tests for child process measurement"""
import os
import sys
from pathlib import Path
import pytest

from promtextfile.collectors import GnuTimeMeasurer, Measurement, MeasurerFactory, RusageMeasurer
from promtextfile.collectors.process import MEASUREMENT_DIRECTIVES, exit_status_from_wait
from promtextfile.config import Config
from promtextfile.errors import MeasurementFacilityMissing


class TestRusageMeasurer:
    """Test wait4 based measurement"""

    def setup_method(self):
        self.measurer = RusageMeasurer()

    def test_successful_command(self):
        measurement = self.measurer.run([sys.executable, "-c", "sum(range(100000))"])

        assert measurement.exit_status == 0
        assert measurement.elapsed_seconds > 0
        assert measurement.user_seconds >= 0
        assert measurement.max_resident_kb > 0
        assert measurement.command_line == f"{sys.executable} -c sum(range(100000))"

    def test_exit_status_is_reported(self):
        measurement = self.measurer.run([sys.executable, "-c", "import sys; sys.exit(3)"])

        assert measurement.exit_status == 3

    def test_signal_death_uses_shell_convention(self):
        measurement = self.measurer.run(
            [sys.executable, "-c", "import os, signal; os.kill(os.getpid(), signal.SIGKILL)"]
        )

        assert measurement.exit_status == 137

    def test_command_not_found(self):
        measurement = self.measurer.run(["/nonexistent/promrun-test-command"])

        assert measurement.exit_status == 127
        assert measurement.elapsed_seconds == 0.0

    def test_command_not_executable(self, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\nexit 0\n")
        os.chmod(script, 0o644)

        measurement = self.measurer.run([str(script)])

        assert measurement.exit_status == 126


class TestExitStatus:

    def test_normal_exit(self):
        assert exit_status_from_wait(5 << 8) == 5

    def test_killed_by_signal(self):
        assert exit_status_from_wait(15) == 128 + 15


class TestGnuTimeMeasurer:
    """Test parsing GNU time reports"""

    def test_format_covers_every_numeric_field(self):
        lines = GnuTimeMeasurer.time_format().splitlines()

        assert "elapsed_seconds=%e" in lines
        assert "exit_status=%x" in lines
        assert not any(line.startswith("command_line=") for line in lines)
        assert len(lines) == len(MEASUREMENT_DIRECTIVES) - 1

    def test_parse_report(self):
        report = "\n".join([
            "exit_status=2",
            "elapsed_seconds=1.50",
            "user_seconds=0.25",
            "system_seconds=0.05",
            "max_resident_kb=10240",
            "minor_faults=321",
        ])

        measurement = GnuTimeMeasurer.parse(report, "ls -la")

        assert measurement == Measurement(
            exit_status=2,
            command_line="ls -la",
            elapsed_seconds=1.5,
            user_seconds=0.25,
            system_seconds=0.05,
            max_resident_kb=10240,
            minor_faults=321,
        )

    def test_parse_ignores_noise(self):
        report = "Command exited with non-zero status 1\nexit_status=1\nbogus=7\nswaps=n/a\n"

        measurement = GnuTimeMeasurer.parse(report, "false")

        assert measurement.exit_status == 1
        assert measurement.swaps == 0


class TestMeasurerFactory:
    """Test backend selection"""

    def test_rusage_backend(self):
        measurer = MeasurerFactory.create_measurer(Config())

        assert isinstance(measurer, RusageMeasurer)

    def test_rusage_backend_unavailable(self, monkeypatch):
        monkeypatch.delattr(os, "wait4")

        with pytest.raises(MeasurementFacilityMissing):
            MeasurerFactory.create_measurer(Config())

    def test_gnu_time_backend_missing_binary(self, tmp_path):
        config = Config(measurement_backend="gnu_time", gnu_time_command=tmp_path / "time")

        with pytest.raises(MeasurementFacilityMissing) as exc_info:
            MeasurerFactory.create_measurer(config)

        assert exc_info.value.exit_code == 2

    def test_gnu_time_backend(self, tmp_path):
        fake_time = tmp_path / "time"
        fake_time.write_text("#!/bin/sh\nexit 0\n")
        os.chmod(fake_time, 0o755)
        config = Config(measurement_backend="gnu_time", gnu_time_command=fake_time)

        measurer = MeasurerFactory.create_measurer(config)

        assert isinstance(measurer, GnuTimeMeasurer)
        assert measurer.time_command == str(Path(fake_time))
