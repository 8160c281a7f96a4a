"""Prometheus metric and label name validation"""
import re
from ..errors import InvalidLabelName, InvalidMetricName


RE_LABEL_NAME = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
RE_METRIC_NAME = r"^[a-zA-Z_:][a-zA-Z0-9_:]*$"

_LABEL_NAME = re.compile(RE_LABEL_NAME)
_METRIC_NAME = re.compile(RE_METRIC_NAME)


def is_valid_label_name(key: str) -> bool:
    # fullmatch so a trailing newline is rejected
    return _LABEL_NAME.fullmatch(key) is not None


def is_valid_metric_name(name: str) -> bool:
    return _METRIC_NAME.fullmatch(name) is not None


def validate_label_name(key: str) -> str:
    """Raise InvalidLabelName unless key is a valid Prometheus label name"""
    if not is_valid_label_name(key):
        raise InvalidLabelName(f'Label name "{key}" must match regex: {RE_LABEL_NAME}')
    return key


def validate_metric_name(name: str) -> str:
    """Raise InvalidMetricName unless name is a valid Prometheus metric name"""
    if not is_valid_metric_name(name):
        raise InvalidMetricName(f'Metric name "{name}" must match regex: {RE_METRIC_NAME}')
    return name
