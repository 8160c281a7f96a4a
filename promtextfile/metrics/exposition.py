"""Prometheus exposition format rendering for textfile documents"""
import time
from typing import Any, Iterable, List, Optional, Tuple
from .labels import render_labels
from .models import Label, Sample, Slot, Value


TIMESTAMP_PRECISION = 3


def unix_time() -> float:
    """Current Unix time in fractional seconds"""
    return time.time()


def format_value(value: Any, precision: Optional[int] = None) -> str:
    """Render a sample value as a decimal number"""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if precision is not None:
        return f"{float(value):.{precision}f}"
    return repr(float(value))


class MetricDocument:
    """Ordered gauge samples sharing a base metric name and a label set

    The document renders in two ways. :meth:`render` resolves every
    :class:`~promtextfile.metrics.models.Slot` from a measurement and gives
    the final textfile content. :meth:`template` leaves the slots as GNU
    time format directives, which is the format string an external
    ``time --format`` invocation fills in.
    """

    def __init__(self, base_name: str, labels: Iterable[Label]):
        self.base_name = base_name
        self.labels: Tuple[Label, ...] = tuple(labels)
        self.samples: List[Sample] = []

    def add(self, suffix: str, help_text: str, value: Value,
            extra_labels: Iterable[Label] = (), precision: Optional[int] = None) -> Sample:
        sample = Sample(
            suffix=suffix,
            help_text=help_text,
            value=value,
            extra_labels=tuple(extra_labels),
            precision=precision,
        )
        self.samples.append(sample)
        return sample

    def add_timestamp(self, suffix: str, help_text: str, timestamp: float,
                      extra_labels: Iterable[Label] = ()) -> Sample:
        return self.add(suffix, help_text, timestamp, extra_labels, precision=TIMESTAMP_PRECISION)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def slots(self) -> List[Slot]:
        return [sample.value for sample in self.samples if isinstance(sample.value, Slot)]

    def render(self, measurement: Any = None) -> str:
        """Render the final document, resolving slots from ``measurement``"""
        lines = []
        for sample in self.samples:
            if isinstance(sample.value, Slot):
                if measurement is None:
                    raise ValueError(f"No measurement to resolve {sample.full_name(self.base_name)}")
                value = format_value(getattr(measurement, sample.value.field), sample.precision)
            else:
                value = format_value(sample.value, sample.precision)
            lines.extend(self._sample_lines(sample, value))
        return "\n".join(lines) + "\n"

    def template(self) -> str:
        """Render with slots left as GNU time directives

        Literal backslashes and percent signs are doubled so GNU time
        reproduces the text unchanged when it is used as a format string.
        """
        lines = []
        for sample in self.samples:
            if isinstance(sample.value, Slot):
                value = sample.value.directive
            else:
                value = format_value(sample.value, sample.precision)
            for line in self._sample_lines(sample, None):
                lines.append(line.replace("\\", "\\\\").replace("%", "%%"))
            lines[-1] = f"{lines[-1]} {value}"
        return "\n".join(lines) + "\n"

    def _sample_lines(self, sample: Sample, value: Optional[str]) -> List[str]:
        name = sample.full_name(self.base_name)
        label_str = render_labels(self.labels + sample.extra_labels)
        sample_line = f"{name}{{{label_str}}}"
        if value is not None:
            sample_line = f"{sample_line} {value}"
        return [
            f"# HELP {name} {sample.help_text}",
            f"# TYPE {name} {sample.metric_type.value}",
            sample_line,
        ]
