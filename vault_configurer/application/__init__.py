"""
Application layer: the reconciliation loop and run mode selection.
"""

from .reconciler import Reconciler, close_queue
from .runner import ConfigurationRunner

__all__ = [
    "Reconciler",
    "close_queue",
    "ConfigurationRunner",
]
