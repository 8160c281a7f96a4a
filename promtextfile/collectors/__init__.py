"""Child process measurement"""
from .process import Measurement, Measurer, MeasurerFactory, RusageMeasurer, GnuTimeMeasurer

__all__ = [
    'Measurement',
    'Measurer',
    'MeasurerFactory',
    'RusageMeasurer',
    'GnuTimeMeasurer',
]
