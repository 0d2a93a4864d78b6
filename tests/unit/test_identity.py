"""Unit tests for file identities and package specs."""

from pathlib import Path

import pytest

from folio.contexts.world import MAIN_ID, FileId, PackageSpec
from folio.contexts.world.identity import normalize_vpath


@pytest.mark.unit
@pytest.mark.parametrize(
    "path,expected",
    [
        ("data.typ", "data.typ"),
        ("/data.typ", "data.typ"),
        ("./a//b/../c.typ", "a/c.typ"),
        ("../../escape.typ", "escape.typ"),
        ("a\\b.typ", "a/b.typ"),
    ],
)
def test_normalize_vpath(path, expected):
    """Test that path spellings normalize to one rootless form."""
    assert normalize_vpath(path) == expected


@pytest.mark.unit
def test_file_id_equality_ignores_spelling():
    """Test that identities compare by normalized path."""
    assert FileId.new("/chapters/./one.typ") == FileId.new("chapters/one.typ")
    assert FileId.new("one.typ") != FileId.new_fake("one.typ")


@pytest.mark.unit
def test_join_is_relative_to_directory():
    """Test resolution of relative and absolute import paths."""
    chapter = FileId.new("chapters/one.typ")

    assert chapter.join("two.typ") == FileId.new("chapters/two.typ")
    assert chapter.join("../data.typ") == FileId.new("data.typ")
    assert chapter.join("/data.typ") == FileId.new("data.typ")
    assert MAIN_ID.join("data.typ") == FileId.new("data.typ")


@pytest.mark.unit
def test_join_stays_in_package():
    """Test that files joined from a package file keep the package."""
    spec = PackageSpec.parse("@preview/tablex:0.0.8")
    lib = FileId.new("lib.typ", spec)

    assert lib.join("src/util.typ").package == spec


@pytest.mark.unit
def test_resolve_against_root(tmp_path):
    """Test physical resolution and pseudo-file handling."""
    assert FileId.new("a/b.typ").resolve(tmp_path) == tmp_path / "a" / "b.typ"
    assert MAIN_ID.resolve(tmp_path) is None
    assert FileId.new("/").resolve(Path("root")) == Path("root")


@pytest.mark.unit
def test_package_spec_round_trip():
    """Test parsing and formatting package specs."""
    spec = PackageSpec.parse("@preview/cetz:0.2.1")

    assert (spec.namespace, spec.name, spec.version) == ("preview", "cetz", "0.2.1")
    assert str(spec) == "@preview/cetz:0.2.1"
    assert str(FileId.new("lib.typ", spec)) == "@preview/cetz:0.2.1/lib.typ"


@pytest.mark.unit
@pytest.mark.parametrize("text", ["preview/cetz:0.2.1", "@preview/cetz", "@preview/cetz:0.2"])
def test_package_spec_rejects_malformed(text):
    """Test that incomplete specs raise ValueError."""
    with pytest.raises(ValueError, match="Invalid package specification"):
        PackageSpec.parse(text)
