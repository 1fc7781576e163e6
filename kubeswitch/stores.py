"""Interfaces of kubeconfig stores and the results of a search over them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator, Protocol, runtime_checkable

from kubeswitch.config import KubeconfigStoreConfig, StoreKind


@dataclass
class SearchResult:
    """A kubeconfig path discovered in a store, or an error from the discovery."""

    kubeconfig_path: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None


class KubeconfigStore(ABC):
    """A backing store that kubeconfigs are discovered in and fetched from."""

    @property
    @abstractmethod
    def id(self) -> str:
        """``<kind>.default``, or ``<kind>.<id>`` when the store has an ID."""

    @property
    @abstractmethod
    def kind(self) -> StoreKind | str:
        """The store kind, e.g. filesystem."""

    @property
    @abstractmethod
    def store_config(self) -> KubeconfigStoreConfig:
        """The store's entry in the switch configuration."""

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(f"kubeswitch.store.{self.id}")

    @abstractmethod
    def get_context_prefix(self, path: str) -> str:
        """Return the prefix shown before context names found at ``path``."""

    @abstractmethod
    def verify_kubeconfig_paths(self) -> None:
        """Check the configured search paths; raise if they are invalid."""

    @abstractmethod
    def start_search(self) -> Iterator[SearchResult]:
        """Search the configured paths, yielding each result."""

    @abstractmethod
    def get_kubeconfig_for_path(self, path: str, tags: dict[str, str]) -> bytes:
        """Fetch the kubeconfig stored at ``path``."""


@runtime_checkable
class Previewer(Protocol):
    """Implemented by stores that show their own preview before the kubeconfig."""

    def get_search_preview(self, path: str, optional_tags: dict[str, str]) -> str:
        ...


@dataclass
class DiscoveredContext:
    """A context found by a search, with the store it came from."""

    name: str = ""
    path: str = ""
    alias: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    store: KubeconfigStore | None = None
    error: Exception | None = None

    def context_without_prefix(self) -> str:
        """Return the context name without the store's ``<prefix>/``."""
        if self.store is None:
            return self.name
        prefix = self.store.get_context_prefix(self.path)
        if prefix and self.name.startswith(prefix):
            trimmed = f"{prefix}/"
            if self.name.startswith(trimmed):
                return self.name[len(trimmed):]
        return self.name