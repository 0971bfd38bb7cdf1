"""Attach the vsdbg debugger to processes running in containers."""

__version__ = "0.1.0"
