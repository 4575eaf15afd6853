"""kubeseal binary management.

This module provides the Host class, which downloads kubeseal releases
matching a requested version, and resolve_kubeseal_binary, which picks the
binary a run should use.
"""

import os
import platform
import re
import shutil
import tarfile
import tempfile
from pathlib import Path

import requests
from icecream import ic
from rich.markup import escape

from sealed_secrets_rotator import console
from sealed_secrets_rotator.exceptions import BinaryNotFoundError, UnsupportedPlatformError

_SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+(?:-[\w.]+)?(?:\+[\w.]+)?$")
_RELEASES_URL = "https://github.com/bitnami-labs/sealed-secrets/releases/download"


def normalize_version(version: str) -> str:
    """Strip a single leading 'v' from a version string and validate it.

    Args:
        version: The version string (e.g., 'v0.26.0' or '0.26.0').

    Returns:
        The version without the prefix (e.g., '0.26.0').

    Raises:
        ValueError: If the version is empty or not a semantic version.

    """
    if not version:
        raise ValueError("Version string cannot be empty")

    normalized = version[1:] if version.startswith("v") else version
    if not _SEMVER_PATTERN.match(normalized):
        raise ValueError(f"Invalid version format: '{version}' does not match semantic versioning pattern")

    return normalized


class Host:
    """Downloads and locates versioned kubeseal binaries.

    Attributes:
        base_url: Base URL for sealed-secrets releases.
        bin_location: Local directory holding downloaded binaries.
        cpu_type: Detected CPU architecture (amd64 or arm64).
        system: Detected operating system (linux or darwin).

    """

    def __init__(self) -> None:
        self.base_url: str = _RELEASES_URL
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        base_path = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
        self.bin_location: Path = base_path / "sealed-secrets-rotator" / "bin"
        self.cpu_type: str = self._get_cpu_type()
        self.system: str = self._get_system_type()

    @staticmethod
    def _get_cpu_type() -> str:
        """Detect the CPU architecture.

        Raises:
            UnsupportedPlatformError: If the CPU architecture is not supported.

        """
        match platform.machine():
            case "x86_64" | "amd64":
                return "amd64"
            case "arm64" | "aarch64":
                return "arm64"
            case _:
                raise UnsupportedPlatformError(f"Unsupported CPU architecture: {platform.machine()}")

    @staticmethod
    def _get_system_type() -> str:
        """Detect the operating system.

        Raises:
            UnsupportedPlatformError: If the operating system is not supported.

        """
        match platform.system():
            case "Linux":
                return "linux"
            case "Darwin":
                return "darwin"
            case _:
                raise UnsupportedPlatformError(f"Unsupported operating system: {platform.system()}")

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Host(system={self.system!r}, cpu_type={self.cpu_type!r}, bin_location={self.bin_location!r})"

    def release_url(self, version: str) -> str:
        """Build the download URL of a kubeseal release archive."""
        normalized = normalize_version(version)
        return f"{self.base_url}/v{normalized}/kubeseal-{normalized}-{self.system}-{self.cpu_type}.tar.gz"

    def get_binary_path(self, version: str) -> Path:
        """Return where the binary for a version lives once downloaded."""
        return self.bin_location / f"kubeseal-{normalize_version(version)}"

    def _download_kubeseal_binary(self, version: str) -> None:
        """Download and unpack the kubeseal binary for a version.

        Raises:
            BinaryNotFoundError: If the release cannot be downloaded or unpacked.
            ValueError: If the version format is invalid.

        """
        normalized = normalize_version(version)
        url = self.release_url(normalized)
        ic(url)
        console.action(f"Downloading kubeseal {console.highlight(f'v{normalized}')}")

        self.bin_location.mkdir(parents=True, exist_ok=True)
        archive = Path(tempfile.gettempdir()) / f"kubeseal-{normalized}-{self.system}-{self.cpu_type}.tar.gz"

        try:
            with requests.get(url, timeout=60, stream=True) as r:
                if r.status_code == 404:
                    raise BinaryNotFoundError(f"kubeseal version {normalized} is not available for download")
                r.raise_for_status()

                total_size = int(r.headers.get("content-length", 0))
                with console.create_download_progress() as progress:
                    task = progress.add_task(f"kubeseal v{normalized}", total=total_size)
                    with archive.open("wb") as f:
                        for chunk in r.iter_content(chunk_size=8192):
                            if chunk:
                                f.write(chunk)
                                progress.update(task, advance=len(chunk))
        except requests.RequestException as err:
            archive.unlink(missing_ok=True)
            raise BinaryNotFoundError(f"Failed to download kubeseal {normalized}: {err}") from err

        try:
            with tarfile.open(archive, "r:gz") as tar:
                self._extract_kubeseal(tar, normalized)
        except tarfile.TarError as err:
            raise BinaryNotFoundError(f"Downloaded kubeseal {normalized} archive is unreadable: {err}") from err
        finally:
            archive.unlink(missing_ok=True)

    def _extract_kubeseal(self, tar: tarfile.TarFile, version: str) -> None:
        """Extract only the kubeseal binary, renamed with its version.

        Raises:
            BinaryNotFoundError: If the archive holds no kubeseal binary.

        """
        member = next((m for m in tar.getmembers() if m.name == "kubeseal" and m.isfile()), None)
        if member is None:
            raise BinaryNotFoundError(f"kubeseal binary not found in archive for version {version}")

        member.name = f"kubeseal-{version}"
        tar.extract(member, path=self.bin_location, filter="data")

    def ensure_kubeseal_binary(self, version: str) -> Path:
        """Return the binary for a version, downloading it if missing.

        Raises:
            BinaryNotFoundError: If the binary cannot be downloaded.
            ValueError: If the version format is invalid.

        """
        binary_path = self.get_binary_path(version)
        if not binary_path.exists():
            console.info(f"kubeseal binary not found at {console.highlight(str(binary_path))}")
            self._download_kubeseal_binary(version)
        return binary_path


def resolve_kubeseal_binary(version: str | None = None) -> str:
    """Pick the kubeseal binary for a run.

    Args:
        version: kubeseal version to use. None selects the binary on PATH.

    Returns:
        Path to the kubeseal binary.

    Raises:
        BinaryNotFoundError: If no usable kubeseal binary exists.
        UnsupportedPlatformError: If a download is needed on an unsupported platform.

    """
    if version:
        try:
            return str(Host().ensure_kubeseal_binary(version))
        except (BinaryNotFoundError, ValueError) as exc:
            console.warning(
                f"Failed to get kubeseal {version} ({escape(str(exc))}); falling back to system kubeseal binary"
            )

    system_binary = shutil.which("kubeseal")
    if system_binary is None:
        raise BinaryNotFoundError(
            "kubeseal binary not found. Please install kubeseal or ensure it's in your PATH. "
            "See: https://github.com/bitnami-labs/sealed-secrets#installation"
        )
    ic(system_binary)
    return system_binary
