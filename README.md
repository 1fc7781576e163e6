# kubeswitch

A library for working with kubeconfig files the way a context switcher
needs to: pick a context, give it a namespace, remember what was used
before and keep short aliases for long context names.

Kubeconfig changes are made on the parsed YAML node tree, so key order and
every field the library does not know about are kept when the file is
written back. Comments are not kept.

## Modules

- `kubeswitch.kubeconfig`: the `Kubeconfig` class and `KubeconfigError`.
  Load a kubeconfig with `new_kubeconfig_for_path(path)`, from bytes with
  `new_kubeconfig(data)`, or with `load_current_kubeconfig()` from where
  `kubeconfig_path()` points (`$KUBECONFIG`, else `$HOME/.kube/config`; a
  `KUBECONFIG` naming several files raises `KubeconfigError`). Change the
  current context, rename or remove contexts, set a context's namespace,
  record `kubeswitch-context` and Gardener meta information, and write the
  result back with `write_kubeconfig_file()`.
- `kubeswitch.sanitized`: `parse_sanitized_kubeconfig` reads a kubeconfig
  into a `KubeConfig` dataclass with no credential fields;
  `get_contexts_names_from_kubeconfig(data, prefix)` returns that view as
  YAML text together with the context names, written `prefix/name` when a
  prefix is given. Also `expand_env` (`~` becomes `$HOME`, then `$VAR` and
  `${VAR}` are expanded), `get_current_context()` and
  `split_additional_args(args, argv)`, which splits off what follows `--`.
- `kubeswitch.history`: the history file (`$HOME/.kube/.switch_history` by
  default, or any path passed in) of `context:: namespace` lines.
- `kubeswitch.aliases`: `AliasState`, the alias state file
  `<state_dir>/switch.alias`, loaded with `get_default_alias(state_dir)`.
- `kubeswitch.alias_commands`: `get_aliases`, `list_aliases` (prints a
  table), `remove_alias` and `alias`.
- `kubeswitch.namespace_cache`: `NamespaceCache`, the namespaces last seen
  for one context, kept in `<state_dir>/namespace/<context>`.
- `kubeswitch.stores`: the abstract `KubeconfigStore`, the `Previewer`
  protocol, `SearchResult` and `DiscoveredContext`.
- `kubeswitch.contexts`: `wildmatch`, `list_contexts`, `set_context`,
  `delete_context`, `unset_current_context` and `ContextNotFoundError`.
- `kubeswitch.config`: the switch configuration file (`parse_config`,
  `parse_config_old`), hooks (`parse_hook`), store indexes
  (`parse_index`), the `StoreKind` and `HookType` enums, and
  `parse_duration` / `format_duration` for durations such as `1h30m`.

## Editing a kubeconfig

```python
from kubeswitch.kubeconfig import new_kubeconfig_for_path

kubeconfig = new_kubeconfig_for_path("/path/to/kubeconfig")
print(kubeconfig.get_context_names())

kubeconfig.modify_current_context("dev-frontend")
kubeconfig.set_namespace_for_current_context("team-a")
print(kubeconfig.namespace_of_context("dev-frontend"))  # team-a

kubeconfig.write_kubeconfig_file()  # overwrites /path/to/kubeconfig
```

A kubeconfig created from bytes with `new_kubeconfig` is written to a new
file `config.*.tmp` under `$HOME/.kube/.switch_tmp` instead, and
`write_kubeconfig_file` returns that file's path.

A context that has no namespace set reports `default`. Asking for a
context that does not exist raises `KubeconfigError`.

## Switching contexts

`set_context(desired_context, discovered, append_history=False)` takes the
`DiscoveredContext` entries of a search. The first one whose name, name
without the store prefix, or alias equals `desired_context` is fetched
from its store, made current, written to a temporary kubeconfig, and the
path and context name are returned. With `append_history=True` the context
and its namespace are added to the history file. If nothing matches,
`ContextNotFoundError` is raised, carrying any errors reported by the
search.

`list_contexts(pattern, discovered)` returns the sorted names (aliases
where set) that match a pattern in which `*` matches any run of characters
and `?` matches one:

```python
from kubeswitch.contexts import wildmatch

wildmatch("dev-*", "dev-frontend")   # True
wildmatch("dev-?", "dev-frontend")   # False
```

`delete_context(name)` and `unset_current_context()` change the file named
by `$KUBECONFIG` in place.

## History entries

```python
from kubeswitch.history import append_to_history, parse_history_entry, read_history

append_to_history("prod/cluster-a", "kube-system", "/tmp/history")
read_history("/tmp/history")  # newest first

parse_history_entry("prod/cluster-a:: kube-system")
# ("prod/cluster-a", "kube-system")

parse_history_entry("prod/cluster-a")
# ("prod/cluster-a", None) - an older entry without a namespace
```

An entry equal to the last line of the file is not written again.

## Aliases

```python
from kubeswitch.aliases import get_default_alias

state = get_default_alias("/path/to/state-dir")
replaced = state.write_alias("prod", "gardener/prod-cluster")
print(state.contains_alias("prod"))  # gardener/prod-cluster
```

Giving an existing alias to another context moves it: `write_alias`
returns the context that held the alias before, or `None`.
`remove_alias` raises `LookupError` for an alias that does not exist.

## What this package does not do

- It has no command-line program; everything is called from Python.
- It contains no store implementations. `KubeconfigStore` only defines the
  interface; filesystem, Vault, cloud-provider and plugin stores, the
  search over them and the search index are not part of the package, so
  the discovered contexts handed to `set_context`, `list_contexts` and
  `alias` have to come from the caller.
- It does not run hooks, talk to a Kubernetes API server (for example to
  list namespaces), or offer an interactive picker.

## Development

The test suite uses pytest; its dependency is in the `test` extra.