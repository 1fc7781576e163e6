"""Editing kubeconfig files while keeping their layout and key order."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

TEMPORARY_KUBECONFIG_DIR = "$HOME/.kube/.switch_tmp"
DEFAULT_NAMESPACE = "default"

_STR_TAG = "tag:yaml.org,2002:str"
_MAP_TAG = "tag:yaml.org,2002:map"
_ENV_VAR = re.compile(r"\$\{([^}]*)\}|\$([A-Za-z0-9_]+)")


class KubeconfigError(Exception):
    """Raised when a kubeconfig cannot be read, interpreted or changed."""


def _expand_env(text: str) -> str:
    """Replace ``$VAR`` and ``${VAR}`` with their values; unset variables become empty."""
    return _ENV_VAR.sub(lambda m: os.environ.get(m.group(1) or m.group(2), ""), text)


def _scalar(value: str, style: str | None = None) -> ScalarNode:
    return ScalarNode(_STR_TAG, value, style=style)


def _value_of(node: Node | None, key: str) -> Node | None:
    """Return the value node stored under ``key`` in a mapping node."""
    if not isinstance(node, MappingNode):
        return None
    for key_node, value_node in node.value:
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            return value_node
    return None


def _string_of(node: Node | None, key: str) -> str:
    value = _value_of(node, key)
    if value is None or not isinstance(value, ScalarNode):
        return ""
    return value.value


def _set_string(mapping: MappingNode, key: str, value: str) -> None:
    """Set ``key`` to the string ``value``, appending the key if it is missing."""
    for index, (key_node, value_node) in enumerate(mapping.value):
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            style = value_node.style if isinstance(value_node, ScalarNode) else None
            mapping.value[index] = (key_node, _scalar(value, style))
            return
    mapping.value.append((_scalar(key), _scalar(value)))


def _replace_value(mapping: MappingNode, key: str, new_node: Node) -> None:
    for index, (key_node, _) in enumerate(mapping.value):
        if isinstance(key_node, ScalarNode) and key_node.value == key:
            mapping.value[index] = (key_node, new_node)
            return
    mapping.value.append((_scalar(key), new_node))


class Kubeconfig:
    """A kubeconfig document that can be edited and written back.

    When ``use_tmp_file`` is true, ``path`` is the directory in which a new
    temporary file is created on write; otherwise ``path`` is the file itself.
    """

    def __init__(self, data: bytes | str, path: str, use_tmp_file: bool = False) -> None:
        try:
            root = yaml.compose(data, Loader=yaml.SafeLoader)
        except yaml.YAMLError as err:
            raise KubeconfigError(str(err)) from err
        if not isinstance(root, MappingNode):
            raise KubeconfigError("kubeconfig file does not have expected format")
        self._root = root
        self.path = path
        self.use_tmp_file = use_tmp_file

    # -- node lookup -------------------------------------------------------

    def _contexts_node(self) -> SequenceNode:
        contexts = _value_of(self._root, "contexts")
        if contexts is None:
            raise KubeconfigError('"contexts" entry is nil')
        if not isinstance(contexts, SequenceNode):
            raise KubeconfigError('"contexts" is not a sequence node')
        return contexts

    def _context_node(self, name: str) -> MappingNode:
        for context_node in self._contexts_node().value:
            name_node = _value_of(context_node, "name")
            if isinstance(name_node, ScalarNode) and name_node.value == name:
                return context_node
        raise KubeconfigError(f'context with name "{name}" not found')

    # -- reading -----------------------------------------------------------

    def get_current_context(self) -> str:
        """Return ``current-context``, or an empty string if it is not set."""
        return _string_of(self._root, "current-context")

    def get_context_names(self) -> list[str]:
        """Return the names of all contexts."""
        names = []
        for context_node in self._contexts_node().value:
            name_node = _value_of(context_node, "name")
            if isinstance(name_node, ScalarNode):
                names.append(name_node.value)
        return names

    def get_kubeswitch_context(self) -> str:
        """Return ``kubeswitch-context``, or an empty string if it is not set."""
        return _string_of(self._root, "kubeswitch-context")

    def is_gardener_kubeconfig(self) -> bool:
        """Whether the file carries the meta information written by a Gardener store."""
        return _value_of(self._root, "gardener-landscape-identity") is not None

    def get_gardener_landscape_identity(self) -> str:
        return _string_of(self._root, "gardener-landscape-identity")

    def get_gardener_project(self) -> str:
        return _string_of(self._root, "gardener-project")

    def get_gardener_cluster_name(self) -> str:
        return _string_of(self._root, "gardener-cluster-name")

    def get_gardener_cluster_type(self) -> str:
        return _string_of(self._root, "gardener-cluster-type")

    def namespace_of_context(self, context_name: str) -> str:
        """Return the namespace of a context, ``default`` when none is set."""
        context_node = self._context_node(context_name)
        body = _value_of(context_node, "context")
        if body is None:
            return DEFAULT_NAMESPACE
        namespace = _value_of(body, "namespace")
        if not isinstance(namespace, ScalarNode) or namespace.value == "":
            return DEFAULT_NAMESPACE
        return namespace.value

    # -- modifying ---------------------------------------------------------

    def modify_kubeswitch_context(self, context: str) -> None:
        _set_string(self._root, "kubeswitch-context", context)

    def modify_gardener_landscape_identity(self, identity: str) -> None:
        _set_string(self._root, "gardener-landscape-identity", identity)

    def modify_gardener_project(self, project: str) -> None:
        _set_string(self._root, "gardener-project", project)

    def modify_gardener_cluster_name(self, name: str) -> None:
        _set_string(self._root, "gardener-cluster-name", name)

    def modify_gardener_cluster_type(self, cluster_type: str) -> None:
        _set_string(self._root, "gardener-cluster-type", cluster_type)

    def modify_current_context(self, name: str) -> None:
        _set_string(self._root, "current-context", name)

    def modify_context_name(self, old: str, new: str) -> None:
        """Rename the first context called ``old``."""
        for context_node in self._contexts_node().value:
            name_node = _value_of(context_node, "name")
            if isinstance(name_node, ScalarNode) and name_node.value == old:
                _set_string(context_node, "name", new)
                return
        raise KubeconfigError(f'context with name "{old}" not found')

    def remove_context(self, name: str) -> None:
        """Drop every context called ``name``."""
        contexts = _value_of(self._root, "contexts")
        if contexts is None:
            raise KubeconfigError("contexts entry is nil")
        if not isinstance(contexts, SequenceNode):
            raise KubeconfigError("contexts is not a sequence node")
        contexts.value = [
            node
            for node in contexts.value
            if not (
                isinstance(_value_of(node, "name"), ScalarNode)
                and _value_of(node, "name").value == name
            )
        ]

    def set_namespace(self, context_name: str, namespace: str) -> None:
        """Set the namespace of the named context."""
        context_node = self._context_node(context_name)
        body = _value_of(context_node, "context")
        if not isinstance(body, MappingNode):
            body = MappingNode(_MAP_TAG, [], flow_style=False)
            _replace_value(context_node, "context", body)
        _set_string(body, "namespace", namespace)

    def set_context(
        self, current_context: str, original_context_before_alias: str, prefix: str
    ) -> None:
        """Make ``current_context`` the current context.

        If it is an alias, the original context is renamed to the alias first so
        that ``current-context`` points to an existing context.
        """
        if original_context_before_alias:
            original = original_context_before_alias
            if prefix and original.startswith(prefix):
                trimmed = f"{prefix}/"
                if original.startswith(trimmed):
                    original = original[len(trimmed):]
            try:
                self.modify_context_name(original, current_context)
            except KubeconfigError as err:
                raise KubeconfigError(
                    f"failed to set currentContext on selected kubeconfig: {err}"
                ) from err
        self.modify_current_context(current_context)

    def set_kubeswitch_context(self, context: str) -> None:
        self.modify_kubeswitch_context(context)

    def set_gardener_store_meta_information(
        self, landscape_identity: str, cluster_type: str, project: str, name: str
    ) -> None:
        """Record the Gardener meta information needed by later runs."""
        self.modify_gardener_landscape_identity(landscape_identity)
        self.modify_gardener_cluster_type(cluster_type)
        self.modify_gardener_project(project)
        self.modify_gardener_cluster_name(name)

    def set_namespace_for_current_context(self, namespace: str) -> None:
        current = self.get_current_context()
        if not current:
            raise KubeconfigError("current-context is not set")
        try:
            self.set_namespace(current, namespace)
        except KubeconfigError as err:
            raise KubeconfigError(f'failed to set namespace "{namespace}": {err}') from err

    # -- output ------------------------------------------------------------

    def _serialize(self) -> str:
        return yaml.serialize(self._root, Dumper=yaml.SafeDumper, allow_unicode=True)

    def get_bytes(self) -> bytes:
        return self._serialize().encode("utf-8")

    def write_kubeconfig_file(self) -> str:
        """Write the kubeconfig and return the path of the written file."""
        text = self._serialize()
        if self.use_tmp_file:
            try:
                os.mkdir(self.path, 0o700)
            except FileExistsError:
                pass
            fd, name = tempfile.mkstemp(prefix="config.", suffix=".tmp", dir=self.path)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            return name
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o644)
        except OSError as err:
            raise KubeconfigError(f"failed to open existing kubeconfig file: {err}") from err
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        return self.path


def kubeconfig_path() -> str:
    """Return the path of the kubeconfig in use: ``$KUBECONFIG`` or ``~/.kube/config``."""
    value = os.environ.get("KUBECONFIG", "")
    if value:
        if len([p for p in value.split(os.pathsep) if p]) > 1:
            raise KubeconfigError("multiple files in KUBECONFIG are currently not supported")
        return value
    home = os.environ.get("HOME", "")
    if not home:
        raise KubeconfigError("HOME environment variable not set")
    return str(Path(home) / ".kube" / "config")


def new_kubeconfig_for_path(path: str) -> Kubeconfig:
    """Load the kubeconfig at ``path``; writing it back overwrites that file."""
    try:
        data = Path(path).read_bytes()
    except OSError as err:
        raise KubeconfigError(f"failed to read kubeconfig file: {err}") from err
    return Kubeconfig(data, path, False)


def new_kubeconfig(data: bytes | str) -> Kubeconfig:
    """Create a kubeconfig that is written to a new file in the temporary directory."""
    return Kubeconfig(data, _expand_env(TEMPORARY_KUBECONFIG_DIR), True)


def load_current_kubeconfig() -> Kubeconfig:
    """Load the kubeconfig currently in use."""
    return new_kubeconfig_for_path(kubeconfig_path())