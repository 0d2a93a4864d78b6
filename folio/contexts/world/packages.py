"""
Package resolution.

Maps a PackageSpec to a local directory holding the package's files. The
default PackageStorage looks in a local package directory first, then in the
download cache, and downloads "preview" packages from the registry on demand.
Downloads are synchronous and report to a Progress sink; nothing is retried.
"""

import io
import shutil
import tarfile
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import requests

from folio import __version__
from folio.contexts.world.errors import PackageError
from folio.contexts.world.identity import PackageSpec
from folio.contexts.world.logger import _log_debug, log_package_download
from folio.utils.settings import PACKAGE_CACHE_PATH, PACKAGE_PATH, PACKAGE_REGISTRY

DOWNLOADABLE_NAMESPACE = "preview"
CHUNK_SIZE = 1 << 16
DOWNLOAD_TIMEOUT_S = 60


@dataclass
class DownloadState:
    """Progress of one download."""

    content_len: Optional[int] = None
    total_downloaded: int = 0
    start_time: float = field(default_factory=time.monotonic)


class Progress(Protocol):
    def print_start(self) -> None: ...

    def print_progress(self, state: DownloadState) -> None: ...

    def print_finish(self, state: DownloadState) -> None: ...


class SilentProgress:
    """Progress sink that reports nothing."""

    def print_start(self) -> None:
        pass

    def print_progress(self, state: DownloadState) -> None:
        pass

    def print_finish(self, state: DownloadState) -> None:
        pass


class PackageResolver(Protocol):
    """Anything that can turn a package spec into a local directory."""

    def prepare_package(self, spec: PackageSpec, progress: Progress) -> Path: ...


class PackageStorage:
    """
    Local package directory + download cache + registry downloads.

    Attributes:
        package_path: Directory of locally installed packages (checked first)
        package_cache_path: Directory downloaded packages are extracted into
        registry: Base URL of the package registry
    """

    def __init__(
        self,
        package_cache_path: Optional[Path] = None,
        package_path: Optional[Path] = None,
        registry: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.package_cache_path = Path(package_cache_path or PACKAGE_CACHE_PATH)
        self.package_path = Path(package_path or PACKAGE_PATH)
        self.registry = (registry or PACKAGE_REGISTRY).rstrip("/")
        self._session = session

    def _relative_dir(self, spec: PackageSpec) -> Path:
        return Path(spec.namespace) / spec.name / spec.version

    def prepare_package(self, spec: PackageSpec, progress: Optional[Progress] = None) -> Path:
        """
        Return the directory containing spec, downloading it if necessary.

        Raises:
            PackageError: If the package is unknown or cannot be fetched
        """
        subdir = self._relative_dir(spec)

        for base in (self.package_path, self.package_cache_path):
            candidate = base / subdir
            if candidate.is_dir():
                _log_debug(f"Package {spec} found at {candidate}")
                return candidate

        if spec.namespace != DOWNLOADABLE_NAMESPACE:
            raise PackageError(f"package not found ({spec})")

        target = self.package_cache_path / subdir
        self.download_package(spec, target, progress or SilentProgress())
        return target

    def download_package(self, spec: PackageSpec, target: Path, progress: Progress) -> None:
        """Download and extract spec into target."""
        url = f"{self.registry}/{spec.namespace}/{spec.name}-{spec.version}.tar.gz"
        log_package_download(spec, url)

        archive = self._download(url, spec, progress)

        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{spec.name}-", dir=target.parent))
        try:
            _extract_tar_gz(archive, staging, spec)
            if target.exists():
                # Another session extracted the same package first
                return
            staging.rename(target)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    def _download(self, url: str, spec: PackageSpec, progress: Progress) -> bytes:
        session = self._session or requests.Session()
        headers = {"User-Agent": f"folio/{__version__}"}
        state = DownloadState()
        buffer = io.BytesIO()

        progress.print_start()
        try:
            with session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_S, headers=headers) as response:
                if response.status_code == 404:
                    raise PackageError(f"package not found ({spec})")
                response.raise_for_status()

                length = response.headers.get("Content-Length")
                state.content_len = int(length) if length and length.isdigit() else None

                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        buffer.write(chunk)
                        state.total_downloaded += len(chunk)
                        progress.print_progress(state)
        except requests.RequestException as e:
            raise PackageError(f"failed to download package {spec} ({e})") from e
        finally:
            if self._session is None:
                session.close()

        progress.print_finish(state)
        return buffer.getvalue()


def _extract_tar_gz(archive: bytes, destination: Path, spec: PackageSpec) -> None:
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                for member in tar.getmembers():
                    member_path = (destination / member.name).resolve()
                    if not member_path.is_relative_to(destination.resolve()):
                        raise PackageError(f"package {spec} contains unsafe path {member.name}")
                tar.extractall(destination)
    except (tarfile.TarError, OSError) as e:
        raise PackageError(f"failed to extract package {spec} ({e})") from e
