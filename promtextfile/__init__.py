"""Prometheus textfile-collector helpers for cron jobs and wrapped commands"""

__version__ = "1.0.0"
