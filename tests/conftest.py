"""Shared test fixtures for sealed-secrets-rotator tests."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from sealed_secrets_rotator.cluster import Cluster
from sealed_secrets_rotator.kubeseal import Kubeseal
from sealed_secrets_rotator.models import KeySet, RotatorConfig, SealedSecretRef
from sealed_secrets_rotator.process import CommandResult

CURRENT_KEY = "sealed-secrets-key-new"
OLD_KEY = "sealed-secrets-key-old"


def pem_for(key_name: str) -> str:
    """Fake certificate identifying the key it was issued for."""
    return f"-----BEGIN CERTIFICATE-----\n{key_name}\n-----END CERTIFICATE-----\n"


def key_bundle(*key_names: str) -> str:
    """Fake `kubectl get secret -l ... -o yaml` output."""
    items = [
        {"apiVersion": "v1", "kind": "Secret", "metadata": {"name": name, "namespace": "kube-system"}}
        for name in key_names
    ]
    return yaml.safe_dump({"apiVersion": "v1", "kind": "List", "items": items})


def seal_value(key_name: str, plaintext: str) -> str:
    return f"sealed:{key_name}:{plaintext}"


class FakeTools:
    """Scripted stand-in for kubectl and kubeseal.

    SealedSecrets are stored in memory. "Encryption" tags each value with the
    key it was sealed for, so tests can tell which key a secret is under.
    """

    def __init__(self, secrets: dict[SealedSecretRef, dict[str, str]], keys: tuple[str, ...] = (OLD_KEY, CURRENT_KEY)):
        self.secrets = secrets
        self.keys = keys
        self.current_key = keys[-1]
        self.calls: list[tuple[list[str], str | None]] = []
        self.failures: dict[tuple[str, str | None], CommandResult] = {}
        self.key_paths: list[Path] = []
        self.key_files_present: list[bool] = []

    def fail(self, operation: str, name: str | None = None, stderr: str = "boom") -> None:
        self.failures[(operation, name)] = CommandResult(stdout="", stderr=stderr, returncode=1)

    def commands(self, operation: str) -> list[list[str]]:
        return [cmd for cmd, _ in self.calls if self._operation(cmd) == operation]

    @staticmethod
    def _operation(cmd: list[str]) -> str:
        args = [arg for arg in cmd[1:] if not arg.startswith("--context=")]
        if cmd[0] == "kubectl" or cmd[0].endswith("/kubectl"):
            if args[0] == "apply":
                return "apply"
            if args[1] == "secret":
                return "keys"
            return "list" if "-A" in args else "get"
        if "--fetch-cert" in args:
            return "fetch-cert"
        if "--recovery-unseal" in args:
            return "unseal"
        return "seal"

    def run(self, cmd: list[str], stdin: str | None = None) -> CommandResult:
        self.calls.append((cmd, stdin))
        operation = self._operation(cmd)
        self._record_key_paths(cmd)

        name = None
        if operation == "get":
            name = cmd[cmd.index("-n") - 1]
        elif stdin is not None:
            name = (yaml.safe_load(stdin).get("metadata") or {}).get("name")

        failure = self.failures.get((operation, name)) or self.failures.get((operation, None))
        if failure is not None:
            return failure

        return getattr(self, f"_{operation.replace('-', '_')}")(cmd, stdin)

    def _record_key_paths(self, cmd: list[str]) -> None:
        for index, arg in enumerate(cmd):
            if arg == "--recovery-private-key":
                path = Path(cmd[index + 1])
            elif arg.startswith("--cert="):
                path = Path(arg.removeprefix("--cert="))
            else:
                continue
            self.key_paths.append(path)
            self.key_files_present.append(path.exists())

    def _list(self, cmd, stdin):
        items = [self._manifest(ref) for ref in self.secrets]
        return CommandResult(stdout=json.dumps({"apiVersion": "v1", "kind": "List", "items": items}), stderr="", returncode=0)

    def _get(self, cmd, stdin):
        ref = SealedSecretRef(name=cmd[cmd.index("-n") - 1], namespace=cmd[cmd.index("-n") + 1])
        if ref not in self.secrets:
            return CommandResult(stdout="", stderr=f'sealedsecrets "{ref.name}" not found', returncode=1)
        return CommandResult(stdout=json.dumps(self._manifest(ref)), stderr="", returncode=0)

    def _keys(self, cmd, stdin):
        return CommandResult(stdout=key_bundle(*self.keys), stderr="", returncode=0)

    def _apply(self, cmd, stdin):
        document = yaml.safe_load(stdin)
        ref = SealedSecretRef(name=document["metadata"]["name"], namespace=document["metadata"]["namespace"])
        self.secrets[ref] = dict(document["spec"]["encryptedData"])
        return CommandResult(stdout=f"sealedsecret.bitnami.com/{ref.name} configured\n", stderr="", returncode=0)

    def _fetch_cert(self, cmd, stdin):
        return CommandResult(stdout=pem_for(self.current_key), stderr="", returncode=0)

    def _unseal(self, cmd, stdin):
        path = Path(cmd[cmd.index("--recovery-private-key") + 1])
        known = {item["metadata"]["name"] for item in yaml.safe_load(path.read_text())["items"]}

        document = yaml.safe_load(stdin)
        data = {}
        for key, value in document["spec"]["encryptedData"].items():
            _, key_name, plaintext = value.split(":", 2)
            if key_name not in known:
                return CommandResult(stdout="", stderr="no key could decrypt secret", returncode=1)
            data[key] = plaintext

        secret = {"apiVersion": "v1", "kind": "Secret", "metadata": document["metadata"], "stringData": data}
        return CommandResult(stdout=json.dumps(secret), stderr="", returncode=0)

    def _seal(self, cmd, stdin):
        cert_arg = next(arg for arg in cmd if arg.startswith("--cert="))
        path = Path(cert_arg.removeprefix("--cert="))
        key_name = path.read_text().splitlines()[1]

        secret = yaml.safe_load(stdin)
        sealed = {
            "apiVersion": "bitnami.com/v1alpha1",
            "kind": "SealedSecret",
            "metadata": {"name": secret["metadata"]["name"], "namespace": secret["metadata"]["namespace"]},
            "spec": {"encryptedData": {k: seal_value(key_name, v) for k, v in secret["stringData"].items()}},
        }
        return CommandResult(stdout=yaml.safe_dump(sealed), stderr="", returncode=0)

    def _manifest(self, ref: SealedSecretRef) -> dict:
        return {
            "apiVersion": "bitnami.com/v1alpha1",
            "kind": "SealedSecret",
            "metadata": {"name": ref.name, "namespace": ref.namespace},
            "spec": {"encryptedData": dict(self.secrets[ref])},
        }


class RecordingReporter:
    """Reporter capturing every message as (kind, text)."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def section(self, title: str) -> None:
        self.messages.append(("section", title))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of_kind(self, kind: str) -> list[str]:
        return [text for k, text in self.messages if k == kind]


@pytest.fixture
def refs():
    """Three SealedSecrets across two namespaces."""
    return [
        SealedSecretRef(name="db-credentials", namespace="default"),
        SealedSecretRef(name="api-token", namespace="default"),
        SealedSecretRef(name="grafana-admin", namespace="monitoring"),
    ]


@pytest.fixture
def fake_tools(refs):
    """FakeTools holding the three SealedSecrets, sealed under the old key."""
    return FakeTools({ref: {"password": seal_value(OLD_KEY, f"{ref.name}-pw")} for ref in refs})


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def config():
    return RotatorConfig()


@pytest.fixture
def cluster(fake_tools):
    return Cluster(fake_tools)


@pytest.fixture
def kubeseal(fake_tools, config):
    return Kubeseal(
        fake_tools,
        controller_name=config.controller_name,
        controller_namespace=config.controller_namespace,
    )


@pytest.fixture
def keys():
    return KeySet(public_key=pem_for(CURRENT_KEY), private_keys=key_bundle(OLD_KEY, CURRENT_KEY))


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}, {"name": "staging"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def sample_sealed_secret_yaml():
    """Sample sealed secret YAML content."""
    return """apiVersion: bitnami.com/v1alpha1
kind: SealedSecret
metadata:
  name: test-secret
  namespace: default
spec:
  encryptedData:
    username: AgBy8hCi...
    password: AgBy8hCi...
"""
