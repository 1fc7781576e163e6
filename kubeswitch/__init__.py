"""Kubeconfig editing, context switching, context history, aliases and namespace caches."""

__version__ = "0.1.0"

__all__ = [
    "alias_commands",
    "aliases",
    "config",
    "contexts",
    "history",
    "kubeconfig",
    "namespace_cache",
    "sanitized",
    "stores",
]