"""Adapters for GitHub and the Actions runner."""
