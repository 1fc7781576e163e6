import pytest

from kubeswitch.kubeconfig import KubeconfigError
from kubeswitch.sanitized import (
    KubeConfig,
    expand_env,
    get_contexts_names_from_kubeconfig,
    get_current_context,
    parse_sanitized_kubeconfig,
    split_additional_args,
)

SAMPLE = """\
apiVersion: v1
kind: Config
current-context: dev
clusters:
- name: dev-cluster
  cluster:
    server: https://dev.example.com
    certificate-authority-data: Y2E=
contexts:
- name: dev
  context:
    cluster: dev-cluster
    user: dev-user
- name: prod
  context:
    cluster: prod-cluster
    user: prod-user
users:
- name: dev-user
  user:
    token: token
- name: gcp-user
  user:
    auth-provider:
      name: gcp
      config:
        cmd-path: gcloud
- name: exec-user
  user:
    exec:
      apiVersion: client.authentication.k8s.io/v1
      command: helper
      args: [get-credentials]
      env:
      - name: MODE
        value: fast
"""


def test_parse_keeps_structure():
    config = parse_sanitized_kubeconfig(SAMPLE)
    assert config.type_meta.kind == "Config"
    assert config.type_meta.api_version == "v1"
    assert config.current_context == "dev"
    assert [c.name for c in config.contexts] == ["dev", "prod"]
    assert config.contexts[0].context.cluster == "dev-cluster"
    assert config.contexts[0].context.user == "dev-user"
    assert config.clusters[0].cluster.server == "https://dev.example.com"
    assert config.users[1].user.auth_provider.name == "gcp"
    assert config.users[1].user.auth_provider.config == {"cmd-path": "gcloud"}
    exec_provider = config.users[2].user.exec_provider
    assert exec_provider.command == "helper"
    assert exec_provider.args == ["get-credentials"]
    assert exec_provider.env[0].name == "MODE"


def test_credentials_are_dropped():
    config = parse_sanitized_kubeconfig(SAMPLE.encode())
    assert config.to_dict()["users"][0] == {"name": "dev-user", "user": {}}


def test_contexts_names_with_prefix():
    text, names = get_contexts_names_from_kubeconfig(SAMPLE, "store")
    assert names == ["store/dev", "store/prod"]
    assert "token" not in text


def test_contexts_names_without_prefix():
    _, names = get_contexts_names_from_kubeconfig(SAMPLE, "")
    assert names == ["dev", "prod"]


def test_sanitized_yaml_round_trips():
    text, _ = get_contexts_names_from_kubeconfig(SAMPLE, "")
    assert parse_sanitized_kubeconfig(text) == parse_sanitized_kubeconfig(SAMPLE)


def test_omitempty_fields_are_left_out():
    config = parse_sanitized_kubeconfig("contexts:\n- name: a\n")
    data = config.to_dict()
    assert "kind" not in data
    assert "apiVersion" not in data
    assert data["contexts"] == [{"name": "a", "context": {"cluster": "", "user": ""}}]


def test_empty_document():
    config = parse_sanitized_kubeconfig(b"")
    assert config == KubeConfig()
    _, names = get_contexts_names_from_kubeconfig(b"", "p")
    assert names == []


@pytest.mark.parametrize("data", ["- a\n- b\n", "just text", "contexts: 5\n", "a: [b"])
def test_invalid_documents_raise(data):
    with pytest.raises(ValueError):
        parse_sanitized_kubeconfig(data)


def test_invalid_document_in_context_names():
    with pytest.raises(ValueError, match="could not parse Kubeconfig"):
        get_contexts_names_from_kubeconfig("- a\n", "")


def test_expand_env_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert expand_env("~/.kube/config") == f"{tmp_path}/.kube/config"


def test_expand_env_variables(monkeypatch):
    monkeypatch.setenv("KS_DIR", "dir")
    monkeypatch.delenv("KS_UNSET", raising=False)
    assert expand_env("/a/$KS_DIR/${KS_DIR}/b") == "/a/dir/dir/b"
    assert expand_env("x$KS_UNSET") == "x"
    assert expand_env("cost$") == "cost$"


def test_get_current_context(monkeypatch, tmp_path):
    path = tmp_path / "config"
    path.write_text("current-context: dev\ncontexts:\n- name: dev\n")
    monkeypatch.setenv("KUBECONFIG", str(path))
    assert get_current_context() == "dev"


def test_get_current_context_unset(monkeypatch, tmp_path):
    path = tmp_path / "config"
    path.write_text("contexts:\n- name: dev\n")
    monkeypatch.setenv("KUBECONFIG", str(path))
    with pytest.raises(KubeconfigError):
        get_current_context()


def test_split_additional_args():
    argv = ["switch", "exec", "pattern", "--", "kubectl", "get", "pods"]
    args = ["exec", "pattern", "kubectl", "get", "pods"]
    remaining, additional = split_additional_args(args, argv)
    assert additional == ["kubectl", "get", "pods"]
    assert remaining == ["exec", "pattern"]


def test_split_without_separator():
    remaining, additional = split_additional_args(["a", "b"], ["switch", "a", "b"])
    assert additional == []
    assert remaining == ["a", "b"]


def test_separator_at_start_is_ignored():
    remaining, additional = split_additional_args(["x"], ["--", "x"])
    assert additional == []
    assert remaining == ["x"]