import pytest

from kubeswitch.config import KubeconfigStoreConfig, StoreKind
from kubeswitch.stores import DiscoveredContext, KubeconfigStore, SearchResult


class FakeStore(KubeconfigStore):
    def __init__(self, prefix):
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
        yield SearchResult(kubeconfig_path="/p/config")

    def get_kubeconfig_for_path(self, path, tags):
        return b""


def test_abstract_store_cannot_be_instantiated():
    with pytest.raises(TypeError):
        KubeconfigStore()


def test_search_result_defaults():
    assert SearchResult("p") == SearchResult(kubeconfig_path="p", tags={}, error=None)


@pytest.mark.parametrize(
    "prefix, name, expected",
    [
        ("fs", "fs/dev", "dev"),
        ("", "dev", "dev"),
        ("fs", "other/dev", "other/dev"),
        ("fs", "fsx", "fsx"),
    ],
)
def test_context_without_prefix(prefix, name, expected):
    found = DiscoveredContext(name=name, path="/p", store=FakeStore(prefix))
    assert found.context_without_prefix() == expected


def test_context_without_prefix_without_store():
    assert DiscoveredContext(name="fs/dev").context_without_prefix() == "fs/dev"


def test_logger_named_after_store_id():
    found = DiscoveredContext(name="fs/dev", path="/p", store=FakeStore("fs"))
    assert found.context_without_prefix() == "dev"
    assert found.store.logger.name == "kubeswitch.store.filesystem.default"