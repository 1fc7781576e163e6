"""Per-context cache of namespace names kept in the state directory."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

NAMESPACE_SUBDIRECTORY = "namespace"


class NamespaceCache:
    """The namespaces last seen for one context.

    The cache file lives in ``<state_directory>/namespace/<context>``, where
    slashes are removed from the context name.
    """

    def __init__(self, state_directory: str | Path, context_name: str) -> None:
        directory = Path(state_directory) / NAMESPACE_SUBDIRECTORY
        directory.mkdir(mode=0o755, exist_ok=True)
        self.cache_filepath = directory / context_name.replace("/", "")
        self._content = self._load_from_file()

    def _load_from_file(self) -> list[str] | None:
        """Read the cache file, last line first; ``None`` if there is nothing."""
        try:
            text = self.cache_filepath.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        if not lines:
            return None
        return [line[:-1] if line.endswith("\r") else line for line in reversed(lines)]

    def has_content(self) -> bool:
        return self._content is not None or not self._content

    def get_content(self) -> list[str]:
        """Return the cached namespaces, an empty list if there are none."""
        return [] if self._content is None else list(self._content)

    def write(self, to_write: Iterable[str]) -> None:
        """Replace the cache file with the given namespaces, one per line."""
        with self.cache_filepath.open("w", encoding="utf-8") as handle:
            for value in to_write:
                handle.write(f"{value}\n")