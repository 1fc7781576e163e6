import pytest

from kubeswitch.alias_commands import alias, get_aliases, list_aliases, remove_alias
from kubeswitch.aliases import get_default_alias
from kubeswitch.config import KubeconfigStoreConfig, StoreKind
from kubeswitch.contexts import ContextNotFoundError
from kubeswitch.stores import DiscoveredContext, KubeconfigStore, SearchResult


class FakeStore(KubeconfigStore):
    def __init__(self, prefix="fs"):
        self.prefix = prefix

    @property
    def id(self):
        return "filesystem.default"

    @property
    def kind(self):
        return StoreKind.FILESYSTEM

    @property
    def store_config(self):
        return KubeconfigStoreConfig(kind=StoreKind.FILESYSTEM)

    def get_context_prefix(self, path):
        return self.prefix

    def verify_kubeconfig_paths(self):
        return None

    def start_search(self):
        yield SearchResult(kubeconfig_path="/p")

    def get_kubeconfig_for_path(self, path, tags):
        return b""


@pytest.fixture
def state_dir(tmp_path):
    return str(tmp_path / "state")


@pytest.fixture
def discovered():
    store = FakeStore()
    return [
        DiscoveredContext(error=RuntimeError("boom")),
        DiscoveredContext(name="fs/dev", path="/p", store=store),
        DiscoveredContext(name="fs/prod", path="/p", store=store),
    ]


def test_get_aliases_empty_creates_state_dir(state_dir, tmp_path):
    assert get_aliases(state_dir) == []
    assert (tmp_path / "state").is_dir()


def test_alias_by_name_without_prefix(state_dir, discovered, capsys):
    assert alias("short", "dev", discovered, state_dir) is None
    mapping = get_default_alias(state_dir).content.context_to_alias_mapping
    assert mapping == {"fs/dev": "short"}
    assert 'Set alias "short" for context "fs/dev".' in capsys.readouterr().out


def test_alias_replaces_existing(state_dir, discovered, capsys):
    alias("short", "fs/dev", discovered, state_dir)
    replaced = alias("short", "fs/prod", discovered, state_dir)
    assert replaced == "fs/dev"
    assert get_default_alias(state_dir).content.context_to_alias_mapping == {"fs/prod": "short"}
    assert "replacing existing alias" in capsys.readouterr().out


def test_alias_unknown_context(state_dir, discovered):
    with pytest.raises(ContextNotFoundError, match="not found"):
        alias("short", "missing", discovered, state_dir)


def test_remove_alias(state_dir, discovered, capsys):
    alias("a1", "dev", discovered, state_dir)
    alias("a2", "prod", discovered, state_dir)
    remove_alias("a1", state_dir)
    assert get_aliases(state_dir) == ["a2"]
    assert "There are now 1 alias(es) defined." in capsys.readouterr().out


def test_remove_unknown_alias(state_dir, discovered):
    alias("a1", "dev", discovered, state_dir)
    with pytest.raises(LookupError, match="does not exist"):
        remove_alias("nope", state_dir)
    assert get_aliases(state_dir) == ["a1"]


def test_remove_alias_when_none_registered(state_dir, capsys):
    remove_alias("a1", state_dir)
    assert capsys.readouterr().out == "No aliases registered\n"


def test_list_aliases_empty(state_dir, capsys):
    list_aliases(state_dir)
    assert capsys.readouterr().out == "No aliases registered\n"


def test_list_aliases_table(state_dir, discovered, capsys):
    alias("short", "dev", discovered, state_dir)
    capsys.readouterr()
    list_aliases(state_dir)
    out = capsys.readouterr().out
    assert "ALIAS" in out and "CONTEXT" in out
    assert "| short | fs/dev  |" in out
    assert "TOTAL" in out
    lines = out.strip().splitlines()
    assert len({len(line) for line in lines}) == 1
    assert lines[0] == lines[-1]
    assert lines[0].startswith("+") and lines[0].endswith("+")