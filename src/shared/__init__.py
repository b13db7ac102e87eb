"""Shared utilities and helpers."""
from shared.diagnostics import log_memory_usage, log_thread_status
from shared.progress import ConsoleProgress, SingleLineRenderer

__all__ = [
    'ConsoleProgress',
    'SingleLineRenderer',
    'log_memory_usage',
    'log_thread_status',
]
