"""GitHub Actions runner integration."""

from safe_outputs.adapters.actions.runtime import ActionsRuntime

__all__ = ["ActionsRuntime"]
