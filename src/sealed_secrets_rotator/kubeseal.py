"""Wrapper around the kubeseal binary.

This module provides the Kubeseal class, covering the three kubeseal modes
used by a rotation: fetching the controller certificate, recovery-unsealing
with a private key bundle, and sealing offline against a certificate.
"""

from pathlib import Path

from sealed_secrets_rotator.exceptions import KeyFetchError, TransformError
from sealed_secrets_rotator.process import CommandRunner

# CLI flag constant for kubeseal commands
_FORMAT_YAML = "--format=yaml"


class Kubeseal:
    """kubeseal operations bound to one controller.

    Attributes:
        runner: CommandRunner used to invoke kubeseal.
        controller_name: Name of the SealedSecrets controller.
        controller_namespace: Namespace of the SealedSecrets controller.
        context: Kubernetes context passed to kubeseal, if any.
        binary: Path to the kubeseal binary.

    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        controller_name: str,
        controller_namespace: str,
        context: str | None = None,
        binary: str = "kubeseal",
    ) -> None:
        self.runner = runner
        self.controller_name = controller_name
        self.controller_namespace = controller_namespace
        self.context = context
        self.binary = binary

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return (
            f"Kubeseal(binary={self.binary!r}, "
            f"controller={self.controller_namespace}/{self.controller_name}, context={self.context!r})"
        )

    def _build_kubeseal_cmd(self, extra_args: list[str] | None = None) -> list[str]:
        """Build a kubeseal command with the controller flags.

        Args:
            extra_args: Additional arguments to append to the command.

        Returns:
            List of command arguments ready for execution.

        """
        cmd: list[str] = [self.binary]
        if self.context:
            cmd.append(f"--context={self.context}")
        cmd.extend(
            [
                f"--controller-name={self.controller_name}",
                f"--controller-namespace={self.controller_namespace}",
            ]
        )
        if extra_args:
            cmd.extend(extra_args)
        return cmd

    def fetch_cert(self) -> str:
        """Fetch the controller's active public certificate.

        Returns:
            The PEM encoded certificate.

        Raises:
            KeyFetchError: If kubeseal fails or returns no certificate.

        """
        result = self.runner.run(self._build_kubeseal_cmd(["--fetch-cert"]))
        if not result.ok:
            raise KeyFetchError(
                f"kubeseal could not fetch the certificate from "
                f"{self.controller_namespace}/{self.controller_name} ({result.describe()})"
            )
        if not result.stdout.strip():
            raise KeyFetchError("kubeseal returned an empty certificate")
        if "BEGIN CERTIFICATE" not in result.stdout:
            raise KeyFetchError("kubeseal did not return a PEM certificate")
        return result.stdout

    def unseal(self, manifest: str, private_keys_path: Path) -> str:
        """Decrypt a SealedSecret offline with the controller's private keys.

        Args:
            manifest: The SealedSecret manifest (JSON or YAML).
            private_keys_path: File holding every private key of the controller.

        Returns:
            The plaintext Secret manifest.

        Raises:
            TransformError: If kubeseal cannot decrypt the manifest.

        """
        cmd = [self.binary, "--recovery-unseal", "--recovery-private-key", str(private_keys_path)]
        result = self.runner.run(cmd, stdin=manifest)
        if not result.ok:
            raise TransformError(f"kubeseal could not unseal the secret ({result.describe()})")
        if not result.stdout.strip():
            raise TransformError("kubeseal produced an empty unsealed secret")
        return result.stdout

    def seal(self, secret: str, cert_path: Path) -> str:
        """Encrypt a plaintext Secret against a certificate.

        Args:
            secret: The plaintext Secret manifest.
            cert_path: File holding the controller's public certificate.

        Returns:
            The SealedSecret manifest as YAML.

        Raises:
            TransformError: If kubeseal cannot seal the secret.

        """
        result = self.runner.run(self._build_kubeseal_cmd([_FORMAT_YAML, f"--cert={cert_path}"]), stdin=secret)
        if not result.ok:
            raise TransformError(f"kubeseal could not reseal the secret ({result.describe()})")
        if not result.stdout.strip():
            raise TransformError("kubeseal produced an empty sealed secret")
        return result.stdout

    def reseal(self, manifest: str, *, private_keys_path: Path, cert_path: Path) -> str:
        """Unseal a manifest with the private keys and seal it again with the certificate.

        The plaintext never leaves memory.

        Returns:
            The resealed SealedSecret manifest as YAML.

        Raises:
            TransformError: If either stage fails.

        """
        return self.seal(self.unseal(manifest, private_keys_path), cert_path)
