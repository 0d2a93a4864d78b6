"""Unit tests for CompilationWorld file resolution."""

from datetime import date

import pytest

from folio.contexts.world import AccessDenied, FileId, FileNotFound, PackageSpec


@pytest.mark.unit
def test_main_source_is_markup(world):
    """Test that the main pseudo-file serves the in-memory markup."""
    world.set_markup("= Hello")

    assert world.source(world.main).text == "= Hello"
    assert world.file(world.main) == b"= Hello"


@pytest.mark.unit
def test_set_markup_edits_main_source_in_place(world):
    """Test that the main Source object survives markup changes."""
    world.set_markup("one")
    source = world.source(world.main)
    world.set_markup("one two")

    assert world.source(world.main) is source
    assert source.revision == 2


@pytest.mark.unit
def test_set_markup_starts_new_generation(world):
    """Test that changing markup resets the cache generation."""
    generation = world.cache.generation
    world.set_markup("x")

    assert world.cache.generation == generation + 1


@pytest.mark.unit
def test_disk_file_read_through_cache(world):
    """Test that project files come from disk below the root."""
    id = FileId.new("data.typ")

    assert world.source(id).text == "#let title = From disk\n"
    assert id in world.cache


@pytest.mark.unit
def test_overlay_shadows_disk(world):
    """Test that a virtual file wins over the file on disk until cleared."""
    id = FileId.new("data.typ")
    world.overlay.set("data.typ", "#let title = Virtual\n")

    assert world.source(id).text == "#let title = Virtual\n"
    assert world.file(id) == b"#let title = Virtual\n"

    world.overlay.clear("data.typ")
    world.reset()
    assert world.source(id).text == "#let title = From disk\n"


@pytest.mark.unit
def test_virtual_source_reused_while_content_unchanged(world):
    """Test that an unchanged virtual file yields the same Source."""
    id = FileId.new("virtual.typ")
    world.overlay.set("virtual.typ", "a")
    first = world.source(id)

    assert world.source(id) is first
    world.overlay.append("virtual.typ", "b")
    assert world.source(id) is first
    assert first.text == "ab"


@pytest.mark.unit
def test_missing_file_raises(world):
    """Test that unknown project files raise FileNotFound."""
    with pytest.raises(FileNotFound):
        world.source(FileId.new("missing.typ"))


@pytest.mark.unit
def test_fake_ids_never_touch_disk(world):
    """Test that pseudo-files other than main are access denied."""
    with pytest.raises(AccessDenied):
        world.file(FileId.new_fake("other.typ"))


@pytest.mark.unit
def test_package_files_resolved_through_resolver(project, empty_fonts, resolver):
    """Test that package identities are resolved by the package resolver."""
    from folio.contexts.world import CompilationWorld

    world = CompilationWorld(root=project, fonts=empty_fonts, package_resolver=resolver)
    spec = PackageSpec.parse("@local/greet:1.0.0")

    source = world.source(FileId.new("lib.typ", spec))

    assert "Hello from a package" in source.text
    assert resolver.requests == [spec]


@pytest.mark.unit
def test_inputs_rebuild_library(world):
    """Test that inputs are exposed read-only through the library."""
    world.set_input("lang", "de")
    world.set_inputs({"draft": "true"})
    library = world.library()

    assert dict(library.inputs) == {"draft": "true"}
    assert "html" in library.features
    with pytest.raises(TypeError):
        library.inputs["x"] = "y"


@pytest.mark.unit
def test_today_uses_clock_snapshot(world):
    """Test that today() comes from the world's clock."""
    assert world.today(0) == date(2026, 3, 14)
    assert world.today(99) is None


@pytest.mark.unit
def test_font_lookup_out_of_range(world):
    """Test that unknown font indices return None."""
    assert world.font(0) is None
    assert world.font_families() == []


@pytest.mark.unit
def test_cleared_virtual_files_release_sources(world):
    """Test that clearing virtual files also drops their parsed sources."""
    for n in range(50):
        path = f"rows/{n}.typ"
        world.overlay.set(path, f"#let rows = ({n},)\n")
        world.source(FileId.new(path))
        assert world.clear_virtual_file(path)

    assert len(world.overlay) == 0
    assert world._virtual_sources == {}
    assert not world.clear_virtual_file("rows/0.typ")


@pytest.mark.unit
def test_source_read_after_overlay_clear_drops_virtual_source(world):
    """Test that a read falling through to disk forgets the old virtual source."""
    id = FileId.new("data.typ")
    world.overlay.set("data.typ", "#let title = Virtual\n")
    world.source(id)
    world.overlay.clear("data.typ")
    world.reset()

    assert world.source(id).text == "#let title = From disk\n"
    assert id not in world._virtual_sources
