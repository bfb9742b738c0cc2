"""Autonomous task runner: plan, execute, repair."""

__version__ = "0.1.0"
