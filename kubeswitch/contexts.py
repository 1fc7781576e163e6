"""Setting, listing, deleting and unsetting kubeconfig contexts."""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable, Sequence

from kubeswitch.history import append_to_history
from kubeswitch.kubeconfig import KubeconfigError, new_kubeconfig, new_kubeconfig_for_path
from kubeswitch.stores import DiscoveredContext

log = logging.getLogger(__name__)


class ContextNotFoundError(LookupError):
    """Raised when no discovered context matches the requested name."""

    def __init__(self, message: str, errors: Sequence[Exception] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


def wildmatch(pattern: str, text: str) -> bool:
    """Match ``text`` against a pattern where ``*`` is any run and ``?`` one character."""
    regex = "".join(
        ".*" if ch == "*" else "." if ch == "?" else re.escape(ch) for ch in pattern
    )
    return re.fullmatch(regex, text, re.DOTALL) is not None


def list_contexts(pattern: str, discovered: Iterable[DiscoveredContext]) -> list[str]:
    """Return the sorted context names (aliases where set) matching ``pattern``."""
    names = []
    for found in discovered:
        if found.error is not None:
            log.warning("cannot list contexts. Error returned from search: %s", found.error)
            continue
        name = found.alias or found.name
        if wildmatch(pattern, name):
            names.append(name)
    return sorted(names)


def _format_errors(errors: Sequence[Exception]) -> str:
    head = "1 error occurred" if len(errors) == 1 else f"{len(errors)} errors occurred"
    body = "".join(f"\n\t* {err}" for err in errors)
    return f"{head}:{body}\n\n"


def set_context(
    desired_context: str, discovered: Iterable[DiscoveredContext], append_history: bool = False
) -> tuple[str, str]:
    """Write a temporary kubeconfig for the named context.

    Returns the path of the written kubeconfig and the context name.
    """
    errors: list[Exception] = []
    for found in discovered:
        if found.error is not None:
            errors.append(found.error)
            continue
        store = found.store
        if store is None:
            log.debug("store returned from search is nil. This should not happen")
            continue

        without_prefix = found.context_without_prefix()
        if desired_context not in (found.name, without_prefix, found.alias):
            continue

        data = store.get_kubeconfig_for_path(found.path, found.tags)
        try:
            kubeconfig = new_kubeconfig(data)
        except KubeconfigError as err:
            raise KubeconfigError(f"failed to parse kubeconfig: {err}") from err

        original_before_alias = without_prefix if found.alias else ""
        kubeconfig.set_context(
            without_prefix, original_before_alias, store.get_context_prefix(found.path)
        )
        kubeconfig.set_kubeswitch_context(desired_context)

        try:
            temp_path = kubeconfig.write_kubeconfig_file()
        except (OSError, KubeconfigError) as err:
            raise KubeconfigError(f"failed to write temporary kubeconfig file: {err}") from err

        if append_history:
            try:
                namespace = kubeconfig.namespace_of_context(kubeconfig.get_current_context())
            except KubeconfigError as err:
                raise KubeconfigError(
                    f"failed to get namespace of current context: {err}"
                ) from err
            try:
                append_to_history(desired_context, namespace)
            except OSError as err:
                log.warning("failed to append context to history file: %s", err)
        return temp_path, desired_context

    if errors:
        raise ContextNotFoundError(
            f'context with name "{desired_context}" not found. '
            f"Possibly due to errors: {_format_errors(errors)}",
            errors,
        )
    raise ContextNotFoundError(f'context with name "{desired_context}" not found')


def delete_context(desired_context: str) -> None:
    """Remove a context from the kubeconfig named by ``$KUBECONFIG``."""
    kubeconfig = new_kubeconfig_for_path(os.environ.get("KUBECONFIG", ""))
    kubeconfig.remove_context(desired_context)
    try:
        kubeconfig.write_kubeconfig_file()
    except (OSError, KubeconfigError) as err:
        raise KubeconfigError(f"failed to write kubeconfig file: {err}") from err


def unset_current_context() -> None:
    """Clear ``current-context`` in the kubeconfig named by ``$KUBECONFIG``."""
    kubeconfig = new_kubeconfig_for_path(os.environ.get("KUBECONFIG", ""))
    kubeconfig.modify_current_context("")
    try:
        kubeconfig.write_kubeconfig_file()
    except (OSError, KubeconfigError) as err:
        raise KubeconfigError(f"failed to write temporary kubeconfig file: {err}") from err