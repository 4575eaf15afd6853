"""sealed-secrets-rotator: re-encrypt SealedSecrets under the current key.

The rotator lists every SealedSecret in a cluster, fetches the sealing
controller's current certificate and all of its private keys, and reseals
each SealedSecret so that it is encrypted with the newest key.

Example usage:
    from sealed_secrets_rotator import Cluster, Kubeseal, Rotator, RotatorConfig, SubprocessRunner
    from sealed_secrets_rotator.reporting import ConsoleReporter

    config = RotatorConfig(dry_run=True)
    runner = SubprocessRunner()
    kubeseal = Kubeseal(
        runner,
        controller_name=config.controller_name,
        controller_namespace=config.controller_namespace,
    )
    report = Rotator(config, Cluster(runner), kubeseal, ConsoleReporter()).run()
"""

__version__ = "0.1.0"

from sealed_secrets_rotator.cluster import Cluster
from sealed_secrets_rotator.exceptions import (
    ApplyError,
    BinaryNotFoundError,
    ClusterConnectionError,
    InventoryError,
    InventoryParseError,
    ItemFetchError,
    ItemRotationError,
    KeyFetchError,
    RotatorError,
    TransformError,
    UnsupportedPlatformError,
)
from sealed_secrets_rotator.kubeseal import Kubeseal
from sealed_secrets_rotator.models import (
    KeySet,
    OutcomeStatus,
    RotationOutcome,
    RotationReport,
    RotatorConfig,
    SealedSecretRef,
)
from sealed_secrets_rotator.process import CommandResult, SubprocessRunner
from sealed_secrets_rotator.rotation import Rotator

__all__ = [
    # Version
    "__version__",
    # Classes
    "Cluster",
    "Kubeseal",
    "Rotator",
    "SubprocessRunner",
    # Models
    "CommandResult",
    "KeySet",
    "OutcomeStatus",
    "RotationOutcome",
    "RotationReport",
    "RotatorConfig",
    "SealedSecretRef",
    # Exceptions
    "RotatorError",
    "InventoryError",
    "InventoryParseError",
    "KeyFetchError",
    "ItemRotationError",
    "ItemFetchError",
    "TransformError",
    "ApplyError",
    "ClusterConnectionError",
    "BinaryNotFoundError",
    "UnsupportedPlatformError",
]
