"""Persistent record of context aliases in the state directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from kubeswitch.config import ContextAlias

ALIAS_FILE_NAME = "alias"


def _parse_aliases(data: bytes, path: str) -> ContextAlias:
    try:
        raw = yaml.safe_load(data)
        if raw is None:
            return ContextAlias()
        if not isinstance(raw, Mapping):
            raise ValueError(f"expected a mapping, got {type(raw).__name__}")
        mapping = raw.get("contextToAliasMapping")
        if mapping is None:
            return ContextAlias()
        if not isinstance(mapping, Mapping):
            raise ValueError("contextToAliasMapping must be a mapping")
        return ContextAlias(
            {str(k): "" if v is None else str(v) for k, v in mapping.items()}
        )
    except (yaml.YAMLError, ValueError) as err:
        raise ValueError(f"could not unmarshal index file with path '{path}': {err}") from err


@dataclass
class AliasState:
    """The alias state file and its content."""

    alias_filepath: str
    content: ContextAlias = field(default_factory=ContextAlias)

    def _load_from_file(self) -> None:
        try:
            data = Path(self.alias_filepath).read_bytes()
        except FileNotFoundError:
            return
        except OSError as err:
            raise OSError(
                f'failed to read alias file from "{self.alias_filepath}". File corrupt?: {err}'
            ) from err
        if not data:
            return
        self.content = _parse_aliases(data, self.alias_filepath)

    def write_alias(self, alias_name: str, context_name: str) -> str | None:
        """Map ``context_name`` to ``alias_name`` and save.

        Returns the context that the alias pointed to before, if any.
        """
        if self.content.context_to_alias_mapping is None:
            self.content.context_to_alias_mapping = {}
        replaced = self.contains_alias(alias_name)
        if replaced is not None:
            del self.content.context_to_alias_mapping[replaced]
        self.content.context_to_alias_mapping[context_name] = alias_name
        self.write_all_aliases()
        return replaced

    def contains_alias(self, alias: str) -> str | None:
        """Return the context currently mapped to ``alias``, if any."""
        for context, existing in (self.content.context_to_alias_mapping or {}).items():
            if existing == alias:
                return context
        return None

    def write_all_aliases(self) -> None:
        """Overwrite the state file with the current content."""
        text = yaml.safe_dump(self.content.to_dict(), default_flow_style=False, sort_keys=True)
        Path(self.alias_filepath).write_text(text, encoding="utf-8")


def get_default_alias(state_dir: str) -> AliasState:
    """Load the alias state stored in ``state_dir``."""
    state = AliasState(f"{state_dir}/switch.{ALIAS_FILE_NAME}")
    state._load_from_file()
    return state


def get_context_for_alias(context: str, mapping: Mapping[str, str]) -> str:
    """Return the value stored for ``context`` in the mapping, or an empty string."""
    return mapping.get(context, "")