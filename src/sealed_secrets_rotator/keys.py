"""Controller key material.

This module fetches the sealing controller's key material once per run and
materializes it on disk, for the duration of one rotation, in files that
kubeseal can read.
"""

import os
import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import NamedTuple

from icecream import ic

from sealed_secrets_rotator.cluster import Cluster
from sealed_secrets_rotator.exceptions import TransformError
from sealed_secrets_rotator.kubeseal import Kubeseal
from sealed_secrets_rotator.models import KeySet
from sealed_secrets_rotator.parsing import count_private_keys

_TEMP_PREFIX = "sealed-secrets-rotator-"


class KeyFiles(NamedTuple):
    """Paths of the key material written for one rotation."""

    cert_path: Path
    private_keys_path: Path


class KeyFetcher:
    """Fetches the public certificate and private-key bundle of a controller."""

    def __init__(self, cluster: Cluster, kubeseal: Kubeseal) -> None:
        self.cluster = cluster
        self.kubeseal = kubeseal
        self.key_count: int = 0

    def fetch_public_key(self) -> str:
        """Fetch the controller's active certificate.

        Raises:
            KeyFetchError: If the certificate cannot be obtained.

        """
        return self.kubeseal.fetch_cert()

    def fetch_private_keys(self) -> str:
        """Fetch every key secret of the controller, current and historical.

        Raises:
            KeyFetchError: If the keys cannot be obtained or there are none.

        """
        bundle = self.cluster.get_key_secrets(self.kubeseal.controller_namespace)
        self.key_count = count_private_keys(bundle)
        ic(self.key_count)
        return bundle


def _write_private(path: Path, content: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w") as stream:
        stream.write(content)


@contextmanager
def key_material_files(keys: KeySet) -> Generator[KeyFiles, None, None]:
    """Write key material to a private temporary directory.

    The directory is created with mode 0700 and removed with its contents
    when the block exits, whether it completes or raises.

    Args:
        keys: The key material to write.

    Yields:
        Paths of the certificate and private-key bundle files.

    Raises:
        TransformError: If the key material cannot be written.

    """
    try:
        directory = Path(tempfile.mkdtemp(prefix=_TEMP_PREFIX))
    except OSError as err:
        raise TransformError(f"Cannot create a directory for key material: {err}") from err

    try:
        files = KeyFiles(
            cert_path=directory / "public-key.pem",
            private_keys_path=directory / "private-keys.yaml",
        )
        try:
            _write_private(files.cert_path, keys.public_key)
            _write_private(files.private_keys_path, keys.private_keys)
        except OSError as err:
            raise TransformError(f"Cannot write key material to {directory}: {err}") from err
        yield files
    finally:
        shutil.rmtree(directory, ignore_errors=True)
