"""Metric data models"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class MetricType(Enum):
    """Prometheus metric types written by the textfile tools"""
    GAUGE = "gauge"


def escape_label_value(value: str) -> str:
    """Escape a label value for the exposition format"""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


@dataclass(frozen=True)
class Label:
    """A single key="value" label assignment"""
    key: str
    value: str

    def to_prometheus(self) -> str:
        return f'{self.key}="{escape_label_value(self.value)}"'


@dataclass(frozen=True)
class Slot:
    """A sample value that is only known once a measurement is available

    ``field`` names the attribute of
    :class:`~promtextfile.collectors.process.Measurement` holding the value,
    ``directive`` is the equivalent GNU time format directive.
    """
    field: str
    directive: str


Value = Union[int, float, Slot]


@dataclass
class Sample:
    """One HELP/TYPE/sample triple of a metric document"""
    suffix: str
    help_text: str
    value: Value
    extra_labels: Tuple[Label, ...] = ()
    precision: Optional[int] = None
    metric_type: MetricType = MetricType.GAUGE

    def full_name(self, base_name: str) -> str:
        if not self.suffix:
            return base_name
        return f"{base_name}_{self.suffix}"
