"""Handler registry and entry-point loading."""

import logging
import threading
from collections.abc import Mapping
from importlib.metadata import entry_points
from typing import Any, Protocol, runtime_checkable

from safe_outputs.handlers.base import (
    HandlerFactory,
    HandlerRuntime,
    HandlerSpec,
    MessageHandler,
    make_handler_spec,
    normalize_handler_name,
)

logger = logging.getLogger(__name__)


class HandlerRegistrationError(Exception):
    """Raised when handler registration fails."""


class HandlerNotFoundError(Exception):
    """Raised when a requested handler is not registered."""


@runtime_checkable
class RegistryContributor(Protocol):
    """Protocol for entry-point objects that can register handlers."""

    def register_handlers(self, registry: "HandlerRegistry") -> None:
        """Register one or more handlers in the provided registry."""


class HandlerRegistry:
    """Maps message types to handler factories."""

    def __init__(self):
        self._handlers: dict[str, HandlerSpec] = {}
        self._lock = threading.Lock()

    def register(self, spec: HandlerSpec, *, force: bool = False) -> None:
        """Register a handler spec.

        Args:
            spec: The handler spec to register.
            force: When True, replaces an existing registration without error.
        """
        key = normalize_handler_name(spec.name)
        with self._lock:
            if key in self._handlers and not force:
                existing = self._handlers[key]
                raise HandlerRegistrationError(
                    f"Handler already registered: name={spec.name} existing_version={existing.version}"
                )
            self._handlers[key] = spec
        logger.debug("Registered handler: name=%s version=%s", spec.name, spec.version)

    def unregister(self, name: str) -> None:
        """Remove a registered handler spec.

        Raises:
            HandlerNotFoundError: If no matching handler is registered.
        """
        key = normalize_handler_name(name)
        with self._lock:
            if key not in self._handlers:
                raise HandlerNotFoundError(f"No handler registered for message type '{name}'")
            del self._handlers[key]
        logger.debug("Unregistered handler: name=%s", name)

    def register_factory(
        self,
        name: str,
        version: str,
        factory: HandlerFactory,
        description: str = "",
        *,
        force: bool = False,
    ) -> None:
        """Convenience method to register a handler from primitive values."""
        self.register(make_handler_spec(name, version, factory, description), force=force)

    def create(self, name: str, config: dict[str, Any] | None, runtime: HandlerRuntime) -> MessageHandler:
        """Instantiate the handler for one message type."""
        with self._lock:
            spec = self._handlers.get(normalize_handler_name(name))
        if not spec:
            raise HandlerNotFoundError(f"No handler registered for message type '{name}'")
        return spec.factory(config or {}, runtime)

    def get_spec(self, name: str) -> HandlerSpec | None:
        with self._lock:
            return self._handlers.get(normalize_handler_name(name))

    def list_specs(self) -> list[HandlerSpec]:
        """List registered handler specs sorted by name."""
        with self._lock:
            specs = list(self._handlers.values())
        return sorted(specs, key=lambda spec: spec.name)

    def has_handler(self, name: str) -> bool:
        with self._lock:
            return normalize_handler_name(name) in self._handlers

    def build_handlers(
        self,
        config: Mapping[str, dict[str, Any]],
        runtime: HandlerRuntime,
    ) -> dict[str, MessageHandler]:
        """Instantiate one handler per configured message type.

        Types without a registered factory are skipped with a warning.
        Factory errors (e.g. an output path outside its base directory)
        propagate.
        """
        handlers: dict[str, MessageHandler] = {}
        for name, handler_config in config.items():
            key = normalize_handler_name(name)
            if not self.has_handler(key):
                logger.warning("No handler registered for configured type %s, skipping", name)
                continue
            handlers[key] = self.create(key, handler_config, runtime)
        logger.info("Built %d handler(s): %s", len(handlers), ", ".join(sorted(handlers)) or "none")
        return handlers

    def load_entrypoint_handlers(self, group: str = "safe_outputs.handlers") -> int:
        """Load handlers from package entry points.

        Supported entry point object shapes:
        - object implementing RegistryContributor (register_handlers)
        - callable accepting HandlerRegistry and registering handlers
        """
        loaded = 0
        for entry_point in entry_points(group=group):
            try:
                loaded_obj = entry_point.load()
                if isinstance(loaded_obj, RegistryContributor):
                    loaded_obj.register_handlers(self)
                    loaded += 1
                    continue

                if callable(loaded_obj):
                    loaded_obj(self)
                    loaded += 1
                    continue

                raise HandlerRegistrationError(
                    f"Unsupported entry point object for {entry_point.name}: {type(loaded_obj).__name__}"
                )
            except Exception as exc:
                logger.warning("Failed loading handler entry point %s: %s", entry_point.name, exc)
        return loaded
