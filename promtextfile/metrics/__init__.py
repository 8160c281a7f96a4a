"""Exposition format model, validation and rendering"""
from .labels import LabelSet, render_labels
from .exposition import MetricDocument, unix_time
from .models import Label, Sample, Slot, MetricType
from .validation import validate_label_name, validate_metric_name

__all__ = [
    'LabelSet',
    'render_labels',
    'MetricDocument',
    'unix_time',
    'Label',
    'Sample',
    'Slot',
    'MetricType',
    'validate_label_name',
    'validate_metric_name',
]
