"""Shared fixtures: a world without system fonts and a context driven by the toy engine."""

from datetime import datetime, timezone

import pytest

from folio.contexts.session import CompilationContext, ContextOptions
from folio.contexts.world import Clock, CompilationWorld, FontBook, Fonts
from toy_engine import ToyCompiler, ToyRenderer, ToySerializer

FIXED_NOW = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


class RecordingResolver:
    """Package resolver backed by a local directory, recording every request."""

    def __init__(self, base):
        self.base = base
        self.requests = []

    def prepare_package(self, spec, progress=None):
        self.requests.append(spec)
        return self.base / spec.namespace / spec.name / spec.version


@pytest.fixture
def empty_fonts():
    return Fonts(book=FontBook(), slots=[])


@pytest.fixture
def project(tmp_path):
    """Project root with one importable file on disk."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "data.typ").write_text("#let title = From disk\n", encoding="utf-8")
    return root


@pytest.fixture
def world(project, empty_fonts):
    return CompilationWorld(root=project, fonts=empty_fonts, clock=Clock(fixed=FIXED_NOW))


@pytest.fixture
def compiler():
    return ToyCompiler()


@pytest.fixture
def serializer():
    return ToySerializer()


@pytest.fixture
def context(project, empty_fonts, compiler, serializer):
    return CompilationContext.create(
        ContextOptions(root=str(project), ignore_system_fonts=True),
        compiler=compiler,
        renderer=ToyRenderer(),
        serializer=serializer,
        fonts=empty_fonts,
        clock=Clock(fixed=FIXED_NOW),
    )


@pytest.fixture
def package_dir(tmp_path):
    """Local package tree with @local/greet:1.0.0 providing lib.typ."""
    base = tmp_path / "packages"
    lib = base / "local" / "greet" / "1.0.0"
    lib.mkdir(parents=True)
    (lib / "lib.typ").write_text("#let greeting = Hello from a package\n", encoding="utf-8")
    return base


@pytest.fixture
def resolver(package_dir):
    return RecordingResolver(package_dir)
