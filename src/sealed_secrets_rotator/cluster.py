"""Kubernetes cluster interaction utilities.

This module provides the Cluster class, which wraps the kubectl calls the
rotator needs, together with kubeconfig context resolution and controller
version discovery through the Kubernetes API.
"""

import click
import questionary
from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from sealed_secrets_rotator import console
from sealed_secrets_rotator.exceptions import (
    ApplyError,
    ClusterConnectionError,
    InventoryError,
    ItemFetchError,
    KeyFetchError,
)
from sealed_secrets_rotator.models import SealedSecretRef
from sealed_secrets_rotator.parsing import SEALED_SECRET_KIND, parse_inventory
from sealed_secrets_rotator.process import CommandRunner
from sealed_secrets_rotator.styles import POINTER, PROMPT_STYLE, QMARK

# Label carried by every key secret the controller has generated
SEALED_SECRETS_KEY_LABEL = "sealedsecrets.bitnami.com/sealed-secrets-key"
_VERSION_LABEL = "app.kubernetes.io/version"


def resolve_context(*, select_context: bool, context: str | None = None) -> str | None:
    """Determine which Kubernetes context the run works against.

    Args:
        select_context: If True, prompt the user to pick a context.
        context: Explicit context name, validated against the kubeconfig.

    Returns:
        The context name, or None to let kubectl and kubeseal use the
        current context.

    Raises:
        ClusterConnectionError: If the kubeconfig is invalid or missing,
            or the requested context does not exist.
        click.Abort: If the user cancels context selection.

    """
    if not select_context and context is None:
        return None

    try:
        contexts, current_context = config.list_kube_config_contexts()
    except ConfigException as e:
        raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

    context_names: list[str] = [ctx["name"] for ctx in contexts]
    ic(context_names)

    if select_context:
        preselected = context if context in context_names else str(current_context["name"])
        context = questionary.select(
            "Select context to work with",
            choices=context_names,
            default=preselected,
            style=PROMPT_STYLE,
            pointer=POINTER,
            qmark=QMARK,
        ).ask()
        if context is None:
            console.warning("Context selection cancelled.")
            raise click.Abort()
    elif context not in context_names:
        raise ClusterConnectionError(f"Context '{context}' not found in kubeconfig")

    console.action(f"Working with {console.highlight(context)} cluster")
    return context


def find_controller_version(controller_name: str, controller_namespace: str, context: str | None = None) -> str:
    """Read the version label of the sealed-secrets controller service.

    Args:
        controller_name: Name of the controller service.
        controller_namespace: Namespace of the controller service.
        context: Kubernetes context, or None for the current one.

    Returns:
        The raw version label (may carry a 'v' prefix), or an empty string
        if the service is not labelled.

    Raises:
        ClusterConnectionError: If the kubeconfig is unusable, the cluster is
            unreachable or the service cannot be read.

    """
    try:
        config.load_kube_config(context=context)
    except ConfigException as e:
        raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

    with console.spinner("Looking up SealedSecrets controller version..."):
        try:
            service = client.CoreV1Api().read_namespaced_service(controller_name, controller_namespace)
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        except ApiException as e:
            raise ClusterConnectionError(
                f"Cannot read controller service {controller_namespace}/{controller_name}: {e.reason}"
            ) from e

    labels = service.metadata.labels or {}
    version: str = labels.get(_VERSION_LABEL, "")
    ic(version)
    return version


class Cluster:
    """kubectl operations used by the rotation.

    Attributes:
        runner: CommandRunner used to invoke kubectl.
        context: Kubernetes context passed to kubectl, if any.
        binary: kubectl executable.

    """

    def __init__(self, runner: CommandRunner, *, context: str | None = None, binary: str = "kubectl") -> None:
        self.runner = runner
        self.context = context
        self.binary = binary

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r}, binary={self.binary!r})"

    def _kubectl(self, *args: str) -> list[str]:
        cmd: list[str] = [self.binary]
        if self.context:
            cmd.append(f"--context={self.context}")
        cmd.extend(args)
        return cmd

    def list_sealed_secrets(self) -> list[SealedSecretRef]:
        """List every SealedSecret across all namespaces.

        Returns:
            References in the order reported by the cluster.

        Raises:
            InventoryError: If kubectl fails or returns nothing.
            InventoryParseError: If the response cannot be parsed.

        """
        result = self.runner.run(self._kubectl("get", SEALED_SECRET_KIND, "-A", "-o", "json"))
        if not result.ok:
            raise InventoryError(f"kubectl could not list SealedSecrets ({result.describe()})")
        if not result.stdout.strip():
            raise InventoryError("kubectl returned an empty SealedSecret list")

        return parse_inventory(result.stdout)

    def get_sealed_secret(self, ref: SealedSecretRef) -> str:
        """Fetch the current manifest of a SealedSecret.

        Args:
            ref: The SealedSecret to fetch.

        Returns:
            The manifest as JSON.

        Raises:
            ItemFetchError: If kubectl fails or returns nothing.

        """
        result = self.runner.run(
            self._kubectl("get", SEALED_SECRET_KIND, ref.name, "-n", ref.namespace, "-o", "json")
        )
        if not result.ok:
            raise ItemFetchError(f"kubectl could not get {ref} ({result.describe()})")
        if not result.stdout.strip():
            raise ItemFetchError(f"kubectl returned an empty manifest for {ref}")
        return result.stdout

    def get_key_secrets(self, namespace: str) -> str:
        """Fetch every sealed-secrets key secret in the controller namespace.

        Args:
            namespace: The controller namespace.

        Returns:
            The key secrets as a YAML list.

        Raises:
            KeyFetchError: If kubectl fails or returns nothing.

        """
        result = self.runner.run(
            self._kubectl("get", "secret", "-n", namespace, "-l", SEALED_SECRETS_KEY_LABEL, "-o", "yaml")
        )
        if not result.ok:
            raise KeyFetchError(f"kubectl could not read private keys in {namespace} ({result.describe()})")
        if not result.stdout.strip():
            raise KeyFetchError(f"kubectl returned no private keys in {namespace}")
        return result.stdout

    def apply(self, manifest: str, ref: SealedSecretRef) -> str:
        """Apply a manifest, replacing the resource in place.

        Args:
            manifest: The manifest to apply.
            ref: The resource the manifest describes, for error messages.

        Returns:
            kubectl's status line.

        Raises:
            ApplyError: If the cluster rejects the manifest.

        """
        result = self.runner.run(self._kubectl("apply", "-f", "-"), stdin=manifest)
        if not result.ok:
            raise ApplyError(f"kubectl could not apply {ref} ({result.describe()})")
        return result.stdout.strip()
