"""Unit tests for package storage (no network: the HTTP session is faked)."""

import io
import tarfile

import pytest
import requests

from folio.contexts.world import PackageError, PackageSpec, PackageStorage


def make_archive(files):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, body=b""):
        self.status_code = status_code
        self.body = body
        self.headers = {"Content-Length": str(len(body))}

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i : i + chunk_size]


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, **kwargs):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


class RecordingProgress:
    def __init__(self):
        self.events = []

    def print_start(self):
        self.events.append("start")

    def print_progress(self, state):
        self.events.append(state.total_downloaded)

    def print_finish(self, state):
        self.events.append("finish")


@pytest.fixture
def storage_paths(tmp_path):
    return tmp_path / "cache", tmp_path / "local"


@pytest.mark.unit
def test_local_package_path_wins(storage_paths, package_dir):
    """Test that an installed package is used without downloading."""
    cache, _ = storage_paths
    session = FakeSession()
    storage = PackageStorage(package_cache_path=cache, package_path=package_dir, session=session)

    path = storage.prepare_package(PackageSpec.parse("@local/greet:1.0.0"))

    assert path == package_dir / "local" / "greet" / "1.0.0"
    assert session.urls == []


@pytest.mark.unit
def test_non_preview_namespace_not_downloaded(storage_paths):
    """Test that unknown non-preview packages fail without network access."""
    cache, local = storage_paths
    session = FakeSession()
    storage = PackageStorage(package_cache_path=cache, package_path=local, session=session)

    with pytest.raises(PackageError, match="package not found"):
        storage.prepare_package(PackageSpec.parse("@local/missing:1.0.0"))
    assert session.urls == []


@pytest.mark.unit
def test_preview_package_downloaded_and_extracted(storage_paths):
    """Test download, extraction into the cache and progress reporting."""
    cache, local = storage_paths
    archive = make_archive({"lib.typ": "#let x = 1\n", "typst.toml": "[package]\n"})
    session = FakeSession(FakeResponse(body=archive))
    storage = PackageStorage(
        package_cache_path=cache, package_path=local, registry="https://registry.test/", session=session
    )
    progress = RecordingProgress()

    path = storage.prepare_package(PackageSpec.parse("@preview/demo:0.1.0"), progress)

    assert path == cache / "preview" / "demo" / "0.1.0"
    assert (path / "lib.typ").read_text() == "#let x = 1\n"
    assert session.urls == ["https://registry.test/preview/demo-0.1.0.tar.gz"]
    assert progress.events[0] == "start" and progress.events[-1] == "finish"

    # Second request is served from the cache
    storage.prepare_package(PackageSpec.parse("@preview/demo:0.1.0"))
    assert len(session.urls) == 1


@pytest.mark.unit
def test_registry_404_is_package_not_found(storage_paths):
    """Test that a missing registry entry raises PackageError."""
    cache, local = storage_paths
    storage = PackageStorage(
        package_cache_path=cache, package_path=local, session=FakeSession(FakeResponse(status_code=404))
    )

    with pytest.raises(PackageError, match="package not found"):
        storage.prepare_package(PackageSpec.parse("@preview/nothing:1.0.0"))
    assert not (cache / "preview" / "nothing" / "1.0.0").exists()


@pytest.mark.unit
def test_network_failure_wrapped(storage_paths):
    """Test that request exceptions surface as PackageError."""
    cache, local = storage_paths
    session = FakeSession(error=requests.ConnectionError("offline"))
    storage = PackageStorage(package_cache_path=cache, package_path=local, session=session)

    with pytest.raises(PackageError, match="failed to download"):
        storage.prepare_package(PackageSpec.parse("@preview/demo:0.1.0"))


@pytest.mark.unit
def test_corrupt_archive_wrapped(storage_paths):
    """Test that an unreadable archive surfaces as PackageError."""
    cache, local = storage_paths
    storage = PackageStorage(
        package_cache_path=cache, package_path=local, session=FakeSession(FakeResponse(body=b"not gzip"))
    )

    with pytest.raises(PackageError, match="failed to extract"):
        storage.prepare_package(PackageSpec.parse("@preview/demo:0.1.0"))
