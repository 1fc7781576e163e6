"""The history of switched-to contexts and namespaces."""

from __future__ import annotations

from pathlib import Path

from kubeswitch.sanitized import expand_env

HISTORY_FILE_PATH = "$HOME/.kube/.switch_history"


def history_file_path() -> str:
    """Return the location of the history file."""
    return expand_env(HISTORY_FILE_PATH)


def _target(path: str | Path | None) -> Path:
    return Path(history_file_path() if path is None else path)


def read_history(path: str | Path | None = None) -> list[str]:
    """Return the history entries, newest first."""
    target = _target(path)
    try:
        data = target.read_bytes()
    except FileNotFoundError as err:
        raise FileNotFoundError("no history entries yet - please run `switch` first") from err
    lines = data.decode("utf-8", errors="replace").split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in reversed(lines)]


def _last_line(path: Path) -> bytes:
    """Return the last line of the file including its line ending."""
    data = path.read_bytes()
    if not data:
        return b""
    last, rest = data[-1:], data[:-1]
    cut = max(rest.rfind(b"\n"), rest.rfind(b"\r"))
    return rest[cut + 1:] + last


def append_to_history(context: str, namespace: str, path: str | Path | None = None) -> None:
    """Append ``context:: namespace`` unless it equals the last entry."""
    target = _target(path)
    entry = f"{context}:: {namespace}\n".encode("utf-8")
    with target.open("ab") as handle:
        if _last_line(target) == entry:
            return
        handle.write(entry)


def parse_history_entry(entry: str) -> tuple[str, str | None]:
    """Split a history entry into its context and namespace (``None`` for old entries)."""
    parts = entry.split("::")
    if len(parts) == 1:
        return parts[0], None
    if len(parts) == 2:
        return parts[0], parts[1].replace(" ", "")
    raise ValueError("history entry with unrecognized format")