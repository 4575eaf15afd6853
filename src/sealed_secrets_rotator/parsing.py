"""Parsing of kubectl and kubeseal output.

kubectl and kubeseal both emit JSON or YAML; everything is read with
yaml.safe_load, which accepts either.
"""

from typing import Any

import yaml

from sealed_secrets_rotator.exceptions import InventoryParseError, KeyFetchError, TransformError
from sealed_secrets_rotator.models import SealedSecretRef

SEALED_SECRET_KIND = "SealedSecret"


def _load_mapping(payload: str) -> dict[str, Any] | None:
    """Load a single JSON/YAML document that must be a mapping.

    Returns:
        The mapping, or None if the document is empty or not a mapping.

    Raises:
        yaml.YAMLError: If the payload is not valid JSON/YAML.

    """
    document = yaml.safe_load(payload)
    if not isinstance(document, dict):
        return None
    return document


def parse_inventory(payload: str) -> list[SealedSecretRef]:
    """Parse the output of ``kubectl get SealedSecret -A -o json``.

    Args:
        payload: The raw command output.

    Returns:
        References to every listed SealedSecret, in the order returned.

    Raises:
        InventoryParseError: If the payload is malformed or any item lacks
            a name or namespace. A partial inventory is never returned.

    """
    try:
        document = _load_mapping(payload)
    except yaml.YAMLError as err:
        raise InventoryParseError(f"SealedSecret list is not valid JSON: {err}") from err

    if document is None or not isinstance(document.get("items"), list):
        raise InventoryParseError("SealedSecret list does not contain an 'items' array")

    refs: list[SealedSecretRef] = []
    for index, item in enumerate(document["items"]):
        metadata = item.get("metadata") if isinstance(item, dict) else None
        if not isinstance(metadata, dict):
            raise InventoryParseError(f"SealedSecret list item {index} has no metadata")
        name = metadata.get("name")
        namespace = metadata.get("namespace")
        if not name or not namespace:
            raise InventoryParseError(f"SealedSecret list item {index} is missing a name or namespace")
        refs.append(SealedSecretRef(name=str(name), namespace=str(namespace)))

    return refs


def count_private_keys(payload: str) -> int:
    """Validate the key bundle returned by kubectl and count its keys.

    Args:
        payload: The YAML list of sealed-secrets key secrets.

    Returns:
        The number of key secrets in the bundle.

    Raises:
        KeyFetchError: If the bundle is malformed or holds no keys.

    """
    try:
        document = _load_mapping(payload)
    except yaml.YAMLError as err:
        raise KeyFetchError(f"Private key bundle is not valid YAML: {err}") from err

    if document is None:
        raise KeyFetchError("Private key bundle is not a Kubernetes list")

    items = document.get("items") or []
    if not items:
        raise KeyFetchError("No sealed-secrets private keys found")

    return len(items)


def check_resealed_manifest(manifest: str, ref: SealedSecretRef) -> None:
    """Verify that kubeseal produced a SealedSecret for the expected resource.

    Args:
        manifest: The resealed YAML manifest.
        ref: The SealedSecret being rotated.

    Raises:
        TransformError: If the manifest is unparsable, not a SealedSecret,
            or names a different resource.

    """
    try:
        document = _load_mapping(manifest)
    except yaml.YAMLError as err:
        raise TransformError(f"Resealed manifest is not valid YAML: {err}") from err

    if document is None or document.get("kind") != SEALED_SECRET_KIND:
        raise TransformError("Resealed manifest is not a SealedSecret")

    metadata = document.get("metadata")
    if not isinstance(metadata, dict):
        raise TransformError("Resealed manifest has no metadata")
    if metadata.get("name") != ref.name:
        raise TransformError(f"Resealed manifest is named {metadata.get('name')!r}, expected {ref.name!r}")

    namespace = metadata.get("namespace")
    if namespace is not None and namespace != ref.namespace:
        raise TransformError(f"Resealed manifest targets namespace {namespace!r}, expected {ref.namespace!r}")
