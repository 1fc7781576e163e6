from pathlib import Path

import pytest

from kubeswitch.config import KubeconfigStoreConfig, StoreKind
from kubeswitch.contexts import (
    ContextNotFoundError,
    delete_context,
    list_contexts,
    set_context,
    unset_current_context,
    wildmatch,
)
from kubeswitch.history import history_file_path, parse_history_entry, read_history
from kubeswitch.kubeconfig import KubeconfigError, new_kubeconfig_for_path
from kubeswitch.stores import DiscoveredContext, KubeconfigStore, SearchResult

KUBECONFIG = """\
apiVersion: v1
kind: Config
current-context: prod
contexts:
- name: dev
  context:
    cluster: c1
    user: u1
    namespace: team
- name: prod
  context:
    cluster: c2
    user: u2
clusters: []
users: []
"""


class FakeStore(KubeconfigStore):
    def __init__(self, data=KUBECONFIG, prefix="fs"):
        self.data = data
        self.prefix = prefix
        self.requested = []

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
        yield SearchResult(kubeconfig_path="/p/config")

    def get_kubeconfig_for_path(self, path, tags):
        self.requested.append((path, tags))
        return self.data


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / ".kube").mkdir()
    return tmp_path


@pytest.mark.parametrize(
    "pattern, text, expected",
    [
        ("*", "anything", True),
        ("a*c", "abbc", True),
        ("a?c", "abc", True),
        ("a?c", "ac", False),
        ("a.c", "abc", False),
        ("[a]", "a", False),
        ("[a]", "[a]", True),
        ("dev", "dev-2", False),
    ],
)
def test_wildmatch(pattern, text, expected):
    assert wildmatch(pattern, text) is expected


def test_list_contexts_sorted_with_aliases_and_errors_skipped():
    store = FakeStore()
    found = [
        DiscoveredContext(name="fs/b", path="/p", store=store),
        DiscoveredContext(name="fs/a", path="/p", store=store),
        DiscoveredContext(name="fs/c", path="/p", alias="short", store=store),
        DiscoveredContext(error=RuntimeError("boom")),
    ]
    assert list_contexts("*", found) == ["fs/a", "fs/b", "short"]
    assert list_contexts("fs/?", found) == ["fs/a", "fs/b"]


def test_set_context_writes_temporary_kubeconfig(home):
    store = FakeStore()
    found = [DiscoveredContext(name="fs/dev", path="/p/config", tags={"k": "v"}, store=store)]
    path, name = set_context("dev", found)
    assert name == "dev"
    assert Path(path).parent == home / ".kube" / ".switch_tmp"
    written = new_kubeconfig_for_path(path)
    assert written.get_current_context() == "dev"
    assert written.get_kubeswitch_context() == "dev"
    assert store.requested == [("/p/config", {"k": "v"})]


def test_set_context_by_full_name_appends_history(home):
    found = [DiscoveredContext(name="fs/dev", path="/p/config", store=FakeStore())]
    path, name = set_context("fs/dev", found, append_history=True)
    assert name == "fs/dev"
    assert new_kubeconfig_for_path(path).get_kubeswitch_context() == "fs/dev"
    history = read_history(history_file_path())
    assert [parse_history_entry(entry) for entry in history] == [("fs/dev", "team")]


def test_set_context_by_alias(home):
    found = [DiscoveredContext(name="fs/dev", path="/p", alias="short", store=FakeStore())]
    path, name = set_context("short", found)
    written = new_kubeconfig_for_path(path)
    assert name == "short"
    assert written.get_current_context() == "dev"
    assert written.get_kubeswitch_context() == "short"


def test_set_context_not_found_reports_errors(home):
    found = [
        DiscoveredContext(error=RuntimeError("boom")),
        DiscoveredContext(name="fs/dev", path="/p", store=FakeStore()),
    ]
    with pytest.raises(ContextNotFoundError, match="boom") as info:
        set_context("missing", found)
    assert [str(err) for err in info.value.errors] == ["boom"]


def test_set_context_not_found_without_errors(home):
    with pytest.raises(ContextNotFoundError, match='"missing" not found'):
        set_context("missing", [])


def test_set_context_rejects_invalid_kubeconfig(home):
    found = [DiscoveredContext(name="fs/dev", path="/p", store=FakeStore(data="- a\n- b\n"))]
    with pytest.raises(KubeconfigError, match="failed to parse kubeconfig"):
        set_context("dev", found)


def test_delete_context(tmp_path, monkeypatch):
    target = tmp_path / "config"
    target.write_text(KUBECONFIG)
    monkeypatch.setenv("KUBECONFIG", str(target))
    delete_context("dev")
    assert new_kubeconfig_for_path(str(target)).get_context_names() == ["prod"]


def test_unset_current_context(tmp_path, monkeypatch):
    target = tmp_path / "config"
    target.write_text(KUBECONFIG)
    monkeypatch.setenv("KUBECONFIG", str(target))
    unset_current_context()
    loaded = new_kubeconfig_for_path(str(target))
    assert loaded.get_current_context() == ""
    assert loaded.get_context_names() == ["dev", "prod"]


def test_delete_context_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv("KUBECONFIG", str(tmp_path / "absent"))
    with pytest.raises(KubeconfigError):
        delete_context("dev")