"""Data models for sealed-secrets-rotator.

This module provides the immutable values passed between the inventory,
key-fetching, rotation and reporting stages of a run.
"""

from dataclasses import dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    """Result of processing a single SealedSecret."""

    ROTATED = "rotated"
    SIMULATED = "simulated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SealedSecretRef:
    """Identifies one SealedSecret resource in the cluster.

    Attributes:
        name: The resource name, unique within its namespace.
        namespace: The namespace holding the resource.

    """

    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class KeySet:
    """Key material shared by every rotation in a run.

    Attributes:
        public_key: PEM certificate of the controller's active sealing key.
        private_keys: YAML list of every key secret held by the controller,
            current and historical.

    """

    public_key: str
    private_keys: str

    def __repr__(self) -> str:
        return f"KeySet(public_key=<{len(self.public_key)} chars>, private_keys=<redacted>)"


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """Outcome of one SealedSecret in a run.

    Attributes:
        ref: The SealedSecret this outcome belongs to.
        status: Whether it was rotated, simulated or failed.
        reason: Failure description, empty on success.

    """

    ref: SealedSecretRef
    status: OutcomeStatus
    reason: str = ""

    @classmethod
    def success(cls, ref: SealedSecretRef, *, simulated: bool = False) -> "RotationOutcome":
        status = OutcomeStatus.SIMULATED if simulated else OutcomeStatus.ROTATED
        return cls(ref=ref, status=status)

    @classmethod
    def failure(cls, ref: SealedSecretRef, reason: str) -> "RotationOutcome":
        return cls(ref=ref, status=OutcomeStatus.FAILED, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


@dataclass(slots=True)
class RotationReport:
    """Ordered record of every outcome in a run."""

    outcomes: list[RotationOutcome] = field(default_factory=list)

    def add(self, outcome: RotationOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def successes(self) -> list[RotationOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failures(self) -> list[RotationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def processed_count(self) -> int:
        """Number of SealedSecrets rotated (or simulated) successfully."""
        return len(self.successes)

    def __len__(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True, slots=True)
class RotatorConfig:
    """Run configuration assembled from the command line.

    Attributes:
        controller_name: Name of the sealed-secrets controller service.
        controller_namespace: Namespace where the controller is installed.
        dry_run: Simulate the rotation without mutating the cluster.
        verbose: Narrate per-item progress.
        context: Kubernetes context to use, or None for the current one.

    """

    controller_name: str = "sealed-secrets"
    controller_namespace: str = "kube-system"
    dry_run: bool = False
    verbose: bool = False
    context: str | None = None
