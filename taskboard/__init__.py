"""Task Manager: a REST task tracker with a terminal client."""

__version__ = "1.0.0"
