"""Support ticket triage engine."""

__version__ = "0.3.0"
