"""Custom exceptions for sealed-secrets-rotator.

Errors fall in two groups. Precondition failures (inventory, key material,
cluster access, binaries) abort the whole run. Item failures are raised by a
single rotation and are recorded against that item while the run continues.
"""


class RotatorError(Exception):
    """Base exception for all sealed-secrets-rotator errors."""

    pass


class InventoryError(RotatorError):
    """Raised when the SealedSecrets in the cluster cannot be enumerated.

    This can occur when:
    - kubectl cannot reach the cluster or is not authorized
    - the SealedSecret resource kind is not installed
    """

    pass


class InventoryParseError(InventoryError):
    """Raised when the inventory response cannot be parsed."""

    pass


class KeyFetchError(RotatorError):
    """Raised when the controller's public or private keys cannot be obtained.

    Rotation is meaningless without both, so this is always fatal.
    """

    pass


class ItemRotationError(RotatorError):
    """Base class for failures local to a single SealedSecret."""

    pass


class ItemFetchError(ItemRotationError):
    """Raised when a SealedSecret manifest cannot be retrieved."""

    pass


class TransformError(ItemRotationError):
    """Raised when the unseal/reseal pipeline fails.

    This can occur when:
    - none of the private keys decrypts the secret
    - the manifest is malformed
    - kubeseal exits with an error or produces unexpected output
    - the key material cannot be written to a temporary directory
    """

    pass


class ApplyError(ItemRotationError):
    """Raised when the cluster rejects the resealed manifest.

    The original resource is left untouched.
    """

    pass


class ClusterConnectionError(RotatorError):
    """Raised when the kubeconfig is invalid or the cluster is unreachable."""

    pass


class BinaryNotFoundError(RotatorError):
    """Raised when a required kubeseal binary cannot be found or downloaded."""

    pass


class UnsupportedPlatformError(RotatorError):
    """Raised when the current platform is not supported.

    Supported operating systems are Linux and macOS (Darwin),
    on x86_64 (amd64) or arm64.
    """

    pass
