"""Commands that create, list and remove context aliases."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

from kubeswitch.aliases import get_default_alias
from kubeswitch.contexts import ContextNotFoundError
from kubeswitch.stores import DiscoveredContext

log = logging.getLogger(__name__)


def _ensure_dir(state_dir: str) -> None:
    Path(state_dir).mkdir(mode=0o755, exist_ok=True)


def _render_table(header: Sequence[str], rows: Sequence[Sequence[Any]], footer: Sequence[Any]) -> str:
    head = [str(cell).upper() for cell in header]
    foot = [str(cell).upper() for cell in footer]
    body = [[str(cell) for cell in row] for row in rows]
    widths = [max(len(row[col]) for row in [head, *body, foot]) for col in range(len(head))]
    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    parts = [border, line(head), border, *(line(row) for row in body), border, line(foot), border]
    return "\n".join(parts)


def get_aliases(state_dir: str) -> list[str]:
    """Return all alias names recorded in ``state_dir``."""
    _ensure_dir(state_dir)
    mapping = get_default_alias(state_dir).content.context_to_alias_mapping
    return list(mapping.values()) if mapping else []


def list_aliases(state_dir: str) -> None:
    """Print a table of all aliases and the contexts they point to."""
    _ensure_dir(state_dir)
    mapping = get_default_alias(state_dir).content.context_to_alias_mapping
    if mapping is None:
        print("No aliases registered")
        return
    rows = [(alias_name, context) for context, alias_name in mapping.items()]
    print(_render_table(("Alias", "Context"), rows, ("Total", len(mapping))))


def remove_alias(alias_to_remove: str, state_dir: str) -> None:
    """Delete an alias; raises ``LookupError`` if it does not exist."""
    _ensure_dir(state_dir)
    state = get_default_alias(state_dir)
    mapping = state.content.context_to_alias_mapping
    if mapping is None:
        print("No aliases registered")
        return

    remaining = {ctx: name for ctx, name in mapping.items() if name != alias_to_remove}
    if len(remaining) == len(mapping):
        raise LookupError(f'alias with name "{alias_to_remove}" does not exist')

    state.content.context_to_alias_mapping = remaining
    try:
        state.write_all_aliases()
    except OSError as err:
        raise OSError(f"failed to write aliases: {err}") from err
    print(
        f'Removed alias "{alias_to_remove}". There are now {len(remaining)} alias(es) defined. '
    )


def alias(
    alias_name: str,
    context_name: str,
    discovered: Iterable[DiscoveredContext],
    state_dir: str,
) -> str | None:
    """Record ``alias_name`` for the discovered context called ``context_name``.

    Returns the context the alias pointed to before, if any.
    """
    _ensure_dir(state_dir)
    log.debug("Writing alias %s for context name %s", alias_name, context_name)
    state = get_default_alias(state_dir)

    for found in discovered:
        if found.error is not None:
            log.warning("cannot list contexts. Error returned from search: %s", found.error)
            continue
        if found.store is None:
            log.debug("store returned from search is nil. This should not happen")
            continue

        prefix = found.store.get_context_prefix(found.path)
        without_prefix = ""
        if prefix and found.name.startswith(prefix):
            without_prefix = found.context_without_prefix()

        if context_name in (found.name, without_prefix):
            replaced = state.write_alias(alias_name, found.name)
            note = (
                f' replacing existing alias for context with name "{replaced}"'
                if replaced is not None
                else ""
            )
            print(f'Set alias "{alias_name}" for context "{found.name}"{note}.')
            return replaced

    raise ContextNotFoundError(
        f'cannot set aliasStore "{alias_name}": context "{context_name}" not found'
    )