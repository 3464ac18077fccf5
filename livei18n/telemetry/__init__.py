"""Telemetry helpers.

This package provides structured event logging for the translation client.
"""

from .logger import EventLogger

__all__ = ["EventLogger"]
