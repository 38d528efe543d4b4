"""Safe-output handler contract and registry."""

from safe_outputs.handlers.base import (
    HandlerFactory,
    HandlerRuntime,
    HandlerSpec,
    MessageHandler,
    SafeOutputHandler,
    make_handler_spec,
    normalize_handler_name,
)
from safe_outputs.handlers.registry import (
    HandlerNotFoundError,
    HandlerRegistrationError,
    HandlerRegistry,
    RegistryContributor,
)

__all__ = [
    "HandlerFactory",
    "HandlerNotFoundError",
    "HandlerRegistrationError",
    "HandlerRegistry",
    "HandlerRuntime",
    "HandlerSpec",
    "MessageHandler",
    "RegistryContributor",
    "SafeOutputHandler",
    "make_handler_spec",
    "normalize_handler_name",
]
