"""Credential-free view of kubeconfig files and small command-line helpers."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import yaml

from kubeswitch.kubeconfig import KubeconfigError, load_current_kubeconfig


@dataclass
class TypeMeta:
    """Kind and API version of a kubeconfig document."""

    kind: str = ""
    api_version: str = ""


@dataclass
class Context:
    """The body of a context: which cluster and user it refers to."""

    cluster: str = ""
    user: str = ""


@dataclass
class KubeContext:
    """A named context of a kubeconfig file."""

    name: str = ""
    context: Context = field(default_factory=Context)


@dataclass
class Cluster:
    """Connection details of a cluster."""

    certificate_authority_data: str = ""
    server: str = ""
    insecure: bool = False


@dataclass
class KubeCluster:
    """A named cluster of a kubeconfig file."""

    name: str = ""
    cluster: Cluster = field(default_factory=Cluster)


@dataclass
class EnvMap:
    """An environment variable handed to an exec credential plugin."""

    name: str = ""
    value: str = ""


@dataclass
class ExecProvider:
    """An exec credential plugin."""

    api_version: str = ""
    args: list[str] = field(default_factory=list)
    command: str = ""
    env: list[EnvMap] = field(default_factory=list)
    install_hint: str = ""
    provide_cluster_info: bool = False


@dataclass
class AuthProvider:
    """An external auth provider plugin."""

    config: dict[str, str] = field(default_factory=dict)
    name: str = ""


@dataclass
class User:
    """The non-secret part of a user's auth information."""

    auth_provider: AuthProvider | None = None
    exec_provider: ExecProvider | None = None


@dataclass
class KubeUser:
    """A named user of a kubeconfig file."""

    name: str = ""
    user: User = field(default_factory=User)


@dataclass
class KubeConfig:
    """A kubeconfig without any field that could hold credentials."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    current_context: str = ""
    contexts: list[KubeContext] = field(default_factory=list)
    clusters: list[KubeCluster] = field(default_factory=list)
    users: list[KubeUser] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.type_meta.kind:
            out["kind"] = self.type_meta.kind
        if self.type_meta.api_version:
            out["apiVersion"] = self.type_meta.api_version
        out["current-context"] = self.current_context
        out["contexts"] = [
            {
                "name": ctx.name,
                "context": {"cluster": ctx.context.cluster, "user": ctx.context.user},
            }
            for ctx in self.contexts
        ]
        out["clusters"] = [
            {"name": cluster.name, "cluster": _cluster_dict(cluster.cluster)}
            for cluster in self.clusters
        ]
        out["users"] = [{"name": user.name, "user": _user_dict(user.user)} for user in self.users]
        return out


def _cluster_dict(cluster: Cluster) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if cluster.certificate_authority_data:
        out["certificate-authority-data"] = cluster.certificate_authority_data
    out["server"] = cluster.server
    if cluster.insecure:
        out["insecure-skip-tls-verify"] = True
    return out


def _exec_dict(provider: ExecProvider) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if provider.api_version:
        out["apiVersion"] = provider.api_version
    out["args"] = list(provider.args)
    out["command"] = provider.command
    out["env"] = [{"name": env.name, "value": env.value} for env in provider.env]
    if provider.install_hint:
        out["installHint"] = provider.install_hint
    if provider.provide_cluster_info:
        out["provideClusterInfo"] = True
    return out


def _user_dict(user: User) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if user.auth_provider is not None:
        out["auth-provider"] = {
            "config": dict(user.auth_provider.config),
            "name": user.auth_provider.name,
        }
    if user.exec_provider is not None:
        out["exec"] = _exec_dict(user.exec_provider)
    return out


# ---------------------------------------------------------------------------
# parsing


def _mapping(value: Any, key: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"field {key!r} must be a mapping")
    return value


def _seq(value: Any, key: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a sequence")
    return value


def _str(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (Mapping, list)):
        raise ValueError(f"field {key!r} must be a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"field {key!r} must be a boolean")


def _exec_from(raw: Mapping[Any, Any]) -> ExecProvider:
    return ExecProvider(
        api_version=_str(raw.get("apiVersion"), "apiVersion"),
        args=[_str(arg, "args") for arg in _seq(raw.get("args"), "args")],
        command=_str(raw.get("command"), "command"),
        env=[
            EnvMap(
                name=_str(_mapping(item, "env").get("name"), "name"),
                value=_str(_mapping(item, "env").get("value"), "value"),
            )
            for item in _seq(raw.get("env"), "env")
        ],
        install_hint=_str(raw.get("installHint"), "installHint"),
        provide_cluster_info=_bool(raw.get("provideClusterInfo"), "provideClusterInfo"),
    )


def _user_from(raw: Mapping[Any, Any]) -> User:
    auth_raw = raw.get("auth-provider")
    exec_raw = raw.get("exec")
    auth = None
    if auth_raw is not None:
        auth_map = _mapping(auth_raw, "auth-provider")
        auth = AuthProvider(
            config={
                str(k): _str(v, "config")
                for k, v in _mapping(auth_map.get("config"), "config").items()
            },
            name=_str(auth_map.get("name"), "name"),
        )
    exec_provider = None
    if exec_raw is not None:
        exec_provider = _exec_from(_mapping(exec_raw, "exec"))
    return User(auth_provider=auth, exec_provider=exec_provider)


def _kubeconfig_from(raw: Mapping[Any, Any]) -> KubeConfig:
    contexts = []
    for item in _seq(raw.get("contexts"), "contexts"):
        entry = _mapping(item, "contexts")
        body = _mapping(entry.get("context"), "context")
        contexts.append(
            KubeContext(
                name=_str(entry.get("name"), "name"),
                context=Context(
                    cluster=_str(body.get("cluster"), "cluster"),
                    user=_str(body.get("user"), "user"),
                ),
            )
        )
    clusters = []
    for item in _seq(raw.get("clusters"), "clusters"):
        entry = _mapping(item, "clusters")
        body = _mapping(entry.get("cluster"), "cluster")
        clusters.append(
            KubeCluster(
                name=_str(entry.get("name"), "name"),
                cluster=Cluster(
                    certificate_authority_data=_str(
                        body.get("certificate-authority-data"), "certificate-authority-data"
                    ),
                    server=_str(body.get("server"), "server"),
                    insecure=_bool(
                        body.get("insecure-skip-tls-verify"), "insecure-skip-tls-verify"
                    ),
                ),
            )
        )
    users = []
    for item in _seq(raw.get("users"), "users"):
        entry = _mapping(item, "users")
        users.append(
            KubeUser(
                name=_str(entry.get("name"), "name"),
                user=_user_from(_mapping(entry.get("user"), "user")),
            )
        )
    return KubeConfig(
        type_meta=TypeMeta(
            kind=_str(raw.get("kind"), "kind"),
            api_version=_str(raw.get("apiVersion"), "apiVersion"),
        ),
        current_context=_str(raw.get("current-context"), "current-context"),
        contexts=contexts,
        clusters=clusters,
        users=users,
    )


def parse_sanitized_kubeconfig(data: bytes | str) -> KubeConfig:
    """Parse kubeconfig data, keeping only fields that hold no credentials."""
    try:
        raw = yaml.safe_load(data)
        if raw is not None and not isinstance(raw, Mapping):
            raise ValueError(f"expected a mapping, got {type(raw).__name__}")
        return _kubeconfig_from(raw or {})
    except (yaml.YAMLError, ValueError) as err:
        raise ValueError(f"could not unmarshal kubeconfig: {err}") from err


def get_contexts_names_from_kubeconfig(
    data: bytes | str, context_prefix: str
) -> tuple[str, list[str]]:
    """Return the sanitized kubeconfig as YAML text and its (prefixed) context names."""
    try:
        config = parse_sanitized_kubeconfig(data)
    except ValueError as err:
        raise ValueError(f"could not parse Kubeconfig: {err}") from err
    text = yaml.safe_dump(
        config.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True
    )
    prefix = f"{context_prefix}/" if context_prefix else ""
    return text, [f"{prefix}{ctx.name}" for ctx in config.contexts]


# ---------------------------------------------------------------------------
# environment and arguments

_SPECIAL_VARS = frozenset("*#$@!?-0123456789")


def _shell_name(text: str) -> tuple[str, int]:
    """Return the variable name at the start of ``text`` and how many characters it spans."""
    if text[0] == "{":
        if len(text) > 2 and text[1] in _SPECIAL_VARS and text[2] == "}":
            return text[1], 3
        end = text.find("}", 1)
        if end == -1:
            return "", 1
        if end == 1:
            return "", 2
        return text[1:end], end + 1
    if text[0] in _SPECIAL_VARS:
        return text[0], 1
    length = 0
    while length < len(text) and (
        text[length] == "_" or (text[length].isascii() and text[length].isalnum())
    ):
        length += 1
    return text[:length], length


def expand_env(path: str) -> str:
    """Expand ``~`` to ``$HOME`` and replace ``$VAR``/``${VAR}`` with their values."""
    text = path.replace("~", "$HOME")
    out: list[str] = []
    start = 0
    pos = 0
    while pos < len(text):
        if text[pos] == "$" and pos + 1 < len(text):
            out.append(text[start:pos])
            name, width = _shell_name(text[pos + 1:])
            if not name and width > 0:
                pass  # invalid syntax is dropped
            elif not name:
                out.append("$")
            else:
                out.append(os.environ.get(name, ""))
            pos += width
            start = pos + 1
        pos += 1
    out.append(text[start:])
    return "".join(out)


def get_current_context() -> str:
    """Return ``current-context`` of the kubeconfig in use."""
    current = load_current_kubeconfig().get_current_context()
    if not current:
        raise KubeconfigError("current-context is not set")
    return current


def split_additional_args(
    args: Sequence[str], argv: Sequence[str] | None = None
) -> tuple[list[str], list[str]]:
    """Split off the arguments given after ``--`` on the command line.

    Returns the remaining ``args`` and the additional arguments.
    """
    argv = sys.argv if argv is None else argv
    arg_list = list(argv)
    index = arg_list.index("--") if "--" in arg_list else -1
    additional = arg_list[index + 1:] if index > 0 else []
    remaining = list(args)
    if additional:
        remaining = remaining[: max(len(remaining) - len(additional), 0)]
    return remaining, additional