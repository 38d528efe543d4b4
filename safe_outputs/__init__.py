"""
safe-outputs - validated, budgeted GitHub mutations requested by AI agents.
"""

__version__ = "0.1.0"

from safe_outputs.core.dispatch import process_messages
from safe_outputs.core.errors import SafeOutputError
from safe_outputs.core.models import ProcessingResult, RunSummary, SafeOutputMessage
from safe_outputs.handlers import HandlerRegistry, HandlerRuntime, SafeOutputHandler
from safe_outputs.handlers.builtin import register_builtin_handlers

__all__ = [
    "HandlerRegistry",
    "HandlerRuntime",
    "ProcessingResult",
    "RunSummary",
    "SafeOutputError",
    "SafeOutputHandler",
    "SafeOutputMessage",
    "__version__",
    "process_messages",
    "register_builtin_handlers",
]
