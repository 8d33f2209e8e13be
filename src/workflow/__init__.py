"""Workflow module for the offline FairPlay sample.

This module ties the pieces together:
- End-to-end runner
- Guaranteed, best-effort cleanup
- Command-line entry point
"""

from .cleanup import ManagedRun, cleanup
from .runner import run_offline_fairplay

__all__ = [
    "ManagedRun",
    "cleanup",
    "run_offline_fairplay",
]
