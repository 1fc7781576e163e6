"""Configuration, hook, alias and index data models of the switch tool."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from fractions import Fraction
from typing import Any, Mapping, TypeVar

import yaml


class StoreKind(str, Enum):
    """Identifies a supported kubeconfig store kind."""

    FILESYSTEM = "filesystem"
    VAULT = "vault"
    GARDENER = "gardener"
    GKE = "gke"
    AZURE = "azure"
    EKS = "eks"
    RANCHER = "rancher"
    OVH = "ovh"
    SCALEWAY = "scaleway"
    DIGITALOCEAN = "digitalocean"
    AKAMAI = "akamai"
    CAPI = "capi"
    PLUGIN = "plugin"


class HookType(str, Enum):
    """The kind of a hook: an external executable or an inline shell command."""

    EXECUTABLE = "Executable"
    INLINE_COMMAND = "InlineCommand"


class GKEPreferredEndpoint(str, Enum):
    """Which GKE API endpoint to prefer."""

    PRIVATE = "private"
    PUBLIC = "public"
    DNS = "dns"


# The authentication type identifiers are fixed by the configuration file format.
_GCP_AUTHENTICATION_TYPES = [
    ("GCLOUD", "gcloud"),
    ("API_KEY", "api-key"),
    ("SERVICE_ACCOUNT", "service-account"),
    ("LEGACY", "legacy"),
]

GCPAuthenticationType = Enum(  # type: ignore[misc]
    "GCPAuthenticationType",
    _GCP_AUTHENTICATION_TYPES,
    type=str,
    module=__name__,
    qualname="GCPAuthenticationType",
)
GCPAuthenticationType.__doc__ = "How to authenticate against GCP."


VALID_STORE_KINDS = frozenset(kind.value for kind in StoreKind)
VALID_CONFIG_VERSIONS = frozenset({"v1alpha1"})
VALID_HOOK_TYPES = frozenset(kind.value for kind in HookType)


# ---------------------------------------------------------------------------
# durations

_NS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"10s"`` or ``"1.5ms"``."""
    if not isinstance(text, str):
        raise ValueError(f"invalid duration {text!r}")
    rest = text
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError(f"invalid duration {text!r}")
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _NS_PER_UNIT[unit]
        pos = match.end()

    microseconds = int(total / 1000)
    return timedelta(microseconds=sign * microseconds)


def _with_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    width = len(str(unit)) - 1
    digits = str(frac).rjust(width, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """Format a duration the way the configuration file expects it (e.g. ``1h0m0s``)."""
    ns = ((value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds) * 1000
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_with_fraction(ns, 1_000)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_with_fraction(ns, 1_000_000)}ms"
    hours, rem = divmod(ns, _NS_PER_UNIT["h"])
    minutes, rem = divmod(rem, _NS_PER_UNIT["m"])
    seconds = f"{_with_fraction(rem, _NS_PER_UNIT['s'])}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


# ---------------------------------------------------------------------------
# data models


@dataclass
class Hook:
    """A command executed before the search, either periodically or on demand."""

    name: str = ""
    type: HookType | str = ""
    path: str | None = None
    arguments: list[str] = field(default_factory=list)
    # None means the hook only runs on demand
    interval: timedelta | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": _enum_value(self.type),
            "path": self.path,
            "arguments": list(self.arguments),
            "execution": None
            if self.interval is None
            else {"interval": format_duration(self.interval)},
        }


@dataclass
class HookState:
    """The persisted state of a hook."""

    hook_name: str
    last_execution_time: datetime


@dataclass
class Cache:
    """Cache configuration of a kubeconfig store."""

    kind: str = ""
    config: Any = None


@dataclass
class KubeconfigStoreConfig:
    """The configuration of one kubeconfig store."""

    kind: StoreKind | str = ""
    id: str | None = None
    kubeconfig_name: str | None = None
    paths: list[str] = field(default_factory=list)
    refresh_index_after: timedelta | None = None
    required: bool | None = None
    show_prefix: bool | None = None
    config: Any = None
    cache: Cache | None = None


@dataclass
class Config:
    """The switch configuration file."""

    kind: str = ""
    version: str = ""
    kubeconfig_name: str | None = None
    show_preview: bool | None = None
    exec_shell: str | None = None
    refresh_index_after: timedelta | None = None
    hooks: list[Hook] = field(default_factory=list)
    kubeconfig_stores: list[KubeconfigStoreConfig] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "version": self.version,
            "kubeconfigName": self.kubeconfig_name,
            "showPreview": self.show_preview,
            "execShell": self.exec_shell,
            "refreshIndexAfter": _format_optional(self.refresh_index_after),
            "hooks": [hook.to_dict() for hook in self.hooks],
            "kubeconfigStores": [_store_to_dict(store) for store in self.kubeconfig_stores],
        }


@dataclass
class KubeconfigPath:
    """A search path of the old configuration format."""

    path: str = ""
    store: StoreKind | str = ""


@dataclass
class ConfigOld:
    """The old configuration format, kept to convert existing files."""

    kind: str = ""
    kubeconfig_name: str = ""
    kubeconfig_rediscovery_interval: timedelta | None = None
    vault_api_address: str = ""
    hooks: list[Hook] = field(default_factory=list)
    kubeconfig_paths: list[KubeconfigPath] = field(default_factory=list)


@dataclass
class ContextAlias:
    """Mapping of context names to their alias names."""

    context_to_alias_mapping: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"contextToAliasMapping": dict(self.context_to_alias_mapping or {})}


@dataclass
class Index:
    """The search index of a kubeconfig store."""

    kind: StoreKind | str = ""
    context_to_path_mapping: dict[str, str] = field(default_factory=dict)
    context_to_tags: dict[str, dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": _enum_value(self.kind),
            "contextToPathMapping": dict(self.context_to_path_mapping),
            "contextToTags": {ctx: dict(tags) for ctx, tags in self.context_to_tags.items()},
        }


@dataclass
class IndexState:
    """When the index of a kubeconfig store was last refreshed."""

    kind: StoreKind | str
    last_update_time: datetime


# ---------------------------------------------------------------------------
# parsing helpers

_E = TypeVar("_E", bound=Enum)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _format_optional(value: timedelta | None) -> str | None:
    return None if value is None else format_duration(value)


def _store_to_dict(store: KubeconfigStoreConfig) -> dict[str, Any]:
    return {
        "id": store.id,
        "kind": _enum_value(store.kind),
        "kubeconfigName": store.kubeconfig_name,
        "paths": list(store.paths),
        "refreshIndexAfter": _format_optional(store.refresh_index_after),
        "required": store.required,
        "showPrefix": store.show_prefix,
        "config": store.config,
        "cache": None
        if store.cache is None
        else {"kind": store.cache.kind, "config": store.cache.config},
    }


def _load(data: Any) -> Any:
    if isinstance(data, (bytes, str)):
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as err:
            raise ValueError(f"could not parse YAML: {err}") from err
    return data


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _opt_str(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (Mapping, list)):
        raise ValueError(f"field {key!r} must be a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _str(value: Any, key: str) -> str:
    return _opt_str(value, key) or ""


def _opt_bool(value: Any, key: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ValueError(f"field {key!r} must be a boolean")


def _list(value: Any, key: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list")
    return value


def _str_list(value: Any, key: str) -> list[str]:
    return [_str(item, key) for item in _list(value, key)]


def _str_map(value: Any, key: str) -> dict[str, str]:
    return {str(k): _str(v, key) for k, v in _mapping(value, key).items()}


def _opt_duration(value: Any, key: str) -> timedelta | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a duration")
    if isinstance(value, int):
        # bare integers are nanoseconds
        return timedelta(microseconds=int(value / 1000))
    if isinstance(value, str):
        return parse_duration(value)
    raise ValueError(f"field {key!r} must be a duration")


def _coerce(enum_cls: type[_E], value: Any, key: str) -> _E | str:
    text = _str(value, key)
    try:
        return enum_cls(text)
    except ValueError:
        return text


def _hook_from(data: Any) -> Hook:
    raw = _mapping(data, "hook")
    execution = _mapping(raw.get("execution"), "execution")
    return Hook(
        name=_str(raw.get("name"), "name"),
        type=_coerce(HookType, raw.get("type"), "type"),
        path=_opt_str(raw.get("path"), "path"),
        arguments=_str_list(raw.get("arguments"), "arguments"),
        interval=_opt_duration(execution.get("interval"), "interval"),
    )


def _store_from(data: Any) -> KubeconfigStoreConfig:
    raw = _mapping(data, "kubeconfig store")
    cache_raw = raw.get("cache")
    cache = None
    if cache_raw is not None:
        cache_map = _mapping(cache_raw, "cache")
        cache = Cache(kind=_str(cache_map.get("kind"), "kind"), config=cache_map.get("config"))
    return KubeconfigStoreConfig(
        kind=_coerce(StoreKind, raw.get("kind"), "kind"),
        id=_opt_str(raw.get("id"), "id"),
        kubeconfig_name=_opt_str(raw.get("kubeconfigName"), "kubeconfigName"),
        paths=_str_list(raw.get("paths"), "paths"),
        refresh_index_after=_opt_duration(raw.get("refreshIndexAfter"), "refreshIndexAfter"),
        required=_opt_bool(raw.get("required"), "required"),
        show_prefix=_opt_bool(raw.get("showPrefix"), "showPrefix"),
        config=raw.get("config"),
        cache=cache,
    )


def parse_hook(data: Any) -> Hook:
    """Parse one hook from YAML text or an already loaded mapping."""
    return _hook_from(_load(data))


def parse_config(data: Any) -> Config:
    """Parse the switch configuration from YAML text or an already loaded mapping."""
    raw = _mapping(_load(data), "config")
    return Config(
        kind=_str(raw.get("kind"), "kind"),
        version=_str(raw.get("version"), "version"),
        kubeconfig_name=_opt_str(raw.get("kubeconfigName"), "kubeconfigName"),
        show_preview=_opt_bool(raw.get("showPreview"), "showPreview"),
        exec_shell=_opt_str(raw.get("execShell"), "execShell"),
        refresh_index_after=_opt_duration(raw.get("refreshIndexAfter"), "refreshIndexAfter"),
        hooks=[_hook_from(h) for h in _list(raw.get("hooks"), "hooks")],
        kubeconfig_stores=[
            _store_from(s) for s in _list(raw.get("kubeconfigStores"), "kubeconfigStores")
        ],
    )


def parse_config_old(data: Any) -> ConfigOld:
    """Parse a configuration file in the old format."""
    raw = _mapping(_load(data), "config")
    paths = []
    for item in _list(raw.get("kubeconfigPaths"), "kubeconfigPaths"):
        entry = _mapping(item, "kubeconfig path")
        paths.append(
            KubeconfigPath(
                path=_str(entry.get("path"), "path"),
                store=_coerce(StoreKind, entry.get("store"), "store"),
            )
        )
    return ConfigOld(
        kind=_str(raw.get("kind"), "kind"),
        kubeconfig_name=_str(raw.get("kubeconfigName"), "kubeconfigName"),
        kubeconfig_rediscovery_interval=_opt_duration(
            raw.get("kubeconfigRediscoveryInterval"), "kubeconfigRediscoveryInterval"
        ),
        vault_api_address=_str(raw.get("vaultAPIAddress"), "vaultAPIAddress"),
        hooks=[_hook_from(h) for h in _list(raw.get("hooks"), "hooks")],
        kubeconfig_paths=paths,
    )


def parse_index(data: Any) -> Index:
    """Parse the search index of a kubeconfig store."""
    raw = _mapping(_load(data), "index")
    tags = {
        str(ctx): _str_map(value, "contextToTags")
        for ctx, value in _mapping(raw.get("contextToTags"), "contextToTags").items()
    }
    return Index(
        kind=_coerce(StoreKind, raw.get("kind"), "kind"),
        context_to_path_mapping=_str_map(raw.get("contextToPathMapping"), "contextToPathMapping"),
        context_to_tags=tags,
    )