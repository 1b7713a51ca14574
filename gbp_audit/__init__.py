"""Business profile health auditor."""

__version__ = "1.0.0"
