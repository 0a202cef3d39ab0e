"""Event driven delivery of tasks and decision rules to participants."""

__version__ = "0.1.0"
