"""SealedSecret rotation.

This module provides the Rotator class, which drives a whole run: list the
SealedSecrets, fetch the controller keys once, then re-encrypt and apply
every SealedSecret in turn. Precondition failures propagate to the caller;
failures of a single SealedSecret are recorded and the run moves on.
"""

from icecream import ic

from sealed_secrets_rotator.cluster import Cluster
from sealed_secrets_rotator.exceptions import ItemRotationError
from sealed_secrets_rotator.keys import KeyFetcher, key_material_files
from sealed_secrets_rotator.kubeseal import Kubeseal
from sealed_secrets_rotator.models import KeySet, RotationOutcome, RotationReport, RotatorConfig, SealedSecretRef
from sealed_secrets_rotator.parsing import check_resealed_manifest
from sealed_secrets_rotator.reporting import Reporter, print_summary


class Rotator:
    """Re-encrypts every SealedSecret in a cluster under the current key.

    Attributes:
        config: The run configuration.
        cluster: kubectl operations.
        kubeseal: kubeseal operations bound to the controller.
        reporter: Where progress and the summary are reported.

    """

    def __init__(self, config: RotatorConfig, cluster: Cluster, kubeseal: Kubeseal, reporter: Reporter) -> None:
        self.config = config
        self.cluster = cluster
        self.kubeseal = kubeseal
        self.reporter = reporter
        self.key_fetcher = KeyFetcher(cluster, kubeseal)

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Rotator(config={self.config!r}, cluster={self.cluster!r}, kubeseal={self.kubeseal!r})"

    def _verbose(self, message: str) -> None:
        if self.config.verbose:
            self.reporter.info(message)

    def list_sealed_secrets(self) -> list[SealedSecretRef]:
        """List the SealedSecrets to rotate.

        Raises:
            InventoryError: If the cluster cannot be enumerated.

        """
        self.reporter.section("Fetching all SealedSecrets in the cluster")
        refs = self.cluster.list_sealed_secrets()
        ic(refs)
        self.reporter.success(f"Found {len(refs)} SealedSecrets")
        return refs

    def fetch_keys(self) -> KeySet:
        """Fetch the controller's certificate and private keys.

        Raises:
            KeyFetchError: If either half cannot be obtained.

        """
        self.reporter.section("Fetching current public key")
        public_key = self.key_fetcher.fetch_public_key()
        self.reporter.success("Public key fetched successfully")

        self.reporter.section("Fetching private keys")
        private_keys = self.key_fetcher.fetch_private_keys()
        self.reporter.success(f"Private keys fetched successfully ({self.key_fetcher.key_count} keys)")

        return KeySet(public_key=public_key, private_keys=private_keys)

    def rotate_one(self, ref: SealedSecretRef, keys: KeySet) -> None:
        """Re-encrypt one SealedSecret and apply it back to the cluster.

        The cluster is only written by the final apply, so a failure at any
        earlier stage leaves the resource as it was. Key files exist only
        while this call runs.

        Args:
            ref: The SealedSecret to rotate.
            keys: The controller's key material.

        Raises:
            ItemFetchError: If the manifest cannot be fetched.
            TransformError: If unsealing or resealing fails.
            ApplyError: If the cluster rejects the resealed manifest.

        """
        manifest = self.cluster.get_sealed_secret(ref)
        self._verbose(f"Fetched manifest for {ref}")

        with key_material_files(keys) as files:
            resealed = self.kubeseal.reseal(
                manifest,
                private_keys_path=files.private_keys_path,
                cert_path=files.cert_path,
            )
        check_resealed_manifest(resealed, ref)
        self._verbose(f"Resealed {ref} with the current public key")

        status = self.cluster.apply(resealed, ref)
        if status:
            self._verbose(status)

    def process(self, refs: list[SealedSecretRef], keys: KeySet) -> RotationReport:
        """Rotate every SealedSecret in order, recording each outcome.

        Args:
            refs: The SealedSecrets to rotate.
            keys: The controller's key material.

        Returns:
            One outcome per reference, in the same order.

        """
        self.reporter.section("Processing SealedSecrets")
        report = RotationReport()

        for ref in refs:
            self._verbose(f"Processing {ref.name} in namespace {ref.namespace}...")

            if self.config.dry_run:
                self.reporter.info(f"[DRY RUN] Would process {ref}")
                report.add(RotationOutcome.success(ref, simulated=True))
                continue

            try:
                self.rotate_one(ref, keys)
            except ItemRotationError as err:
                self.reporter.error(f"Error processing {ref}: {err}")
                report.add(RotationOutcome.failure(ref, str(err)))
                continue

            self.reporter.success(f"{ref} processed")
            report.add(RotationOutcome.success(ref))

        return report

    def run(self) -> RotationReport:
        """Run a full rotation.

        Returns:
            The outcome of every SealedSecret found.

        Raises:
            InventoryError: If the SealedSecrets cannot be listed.
            KeyFetchError: If the controller keys cannot be fetched.

        """
        refs = self.list_sealed_secrets()
        keys = self.fetch_keys()
        report = self.process(refs, keys)
        print_summary(report, self.reporter, dry_run=self.config.dry_run)
        return report
