"""Unit tests for diagnostic mapping and session errors."""

import pytest

from folio.contexts.session import (
    CompileError,
    Diagnostic,
    DiagnosticMapper,
    PreconditionError,
    Severity,
    SourceDiagnostic,
    SourceSpan,
    Span,
)
from folio.contexts.session.diagnostics import map_diagnostics_detached
from folio.contexts.world import FileId


@pytest.mark.unit
def test_span_resolved_to_one_based_position(world):
    """Test line/column resolution against the main source."""
    world.set_markup("first line\nsecond ]\n")
    diagnostic = SourceDiagnostic.error(SourceSpan(world.main, 18, 19), "unexpected closing bracket")

    mapped = DiagnosticMapper(world).map(diagnostic)

    assert mapped.severity == Severity.ERROR
    assert mapped.span == Span(start=18, end=19, line=2, column=8)


@pytest.mark.unit
def test_span_in_project_file(world):
    """Test that spans in other files resolve against that file's text."""
    id = FileId.new("data.typ")
    diagnostic = SourceDiagnostic.warning(SourceSpan(id, 5, 6), "check this")

    mapped = DiagnosticMapper(world).map(diagnostic)

    assert (mapped.span.line, mapped.span.column) == (1, 6)


@pytest.mark.unit
def test_unresolvable_file_keeps_range_only(world):
    """Test that a span into an unreadable file has no position."""
    diagnostic = SourceDiagnostic.error(SourceSpan(FileId.new("missing.typ"), 3, 4), "broken")

    mapped = DiagnosticMapper(world).map(diagnostic)

    assert mapped.span == Span(start=3, end=4)
    assert mapped.span.position is None


@pytest.mark.unit
def test_detached_span_maps_to_none(world):
    """Test that diagnostics without a range get no span."""
    mapped = DiagnosticMapper(world).map(SourceDiagnostic.error(SourceSpan(), "somewhere"))

    assert mapped.span is None


@pytest.mark.unit
def test_offset_past_end_has_no_position(world):
    """Test that out-of-range offsets are not clamped to a position."""
    world.set_markup("short")
    mapped = DiagnosticMapper(world).map(SourceDiagnostic.error(SourceSpan(world.main, 50, 51), "far"))

    assert mapped.span.line is None
    assert mapped.span.column is None


@pytest.mark.unit
def test_trace_and_hints_preserved_in_order(world):
    """Test that trace entries and hints keep their order."""
    world.set_markup("a\nb\nc")
    diagnostic = SourceDiagnostic(
        severity=Severity.ERROR,
        message="failed",
        span=SourceSpan(world.main, 4, 5),
        trace=((SourceSpan(world.main, 0, 1), "called here"), (SourceSpan(), "from somewhere")),
        hints=("first hint", "second hint"),
    )

    mapped = DiagnosticMapper(world).map(diagnostic)

    assert [item.message for item in mapped.trace] == ["called here", "from somewhere"]
    assert mapped.trace[0].span.line == 1
    assert mapped.trace[1].span is None
    assert mapped.hints == ("first hint", "second hint")


@pytest.mark.unit
def test_detached_mapping_never_resolves_positions():
    """Test the position-less mapping used after compilation."""
    diagnostic = SourceDiagnostic.error(SourceSpan(FileId.new("data.typ"), 2, 4), "cannot embed")

    [mapped] = map_diagnostics_detached([diagnostic])

    assert mapped.span == Span(start=2, end=4, line=None, column=None)


@pytest.mark.unit
def test_format_includes_position_and_hints():
    """Test the text rendering of a diagnostic."""
    diagnostic = Diagnostic(
        Severity.ERROR, "expected expression", Span(10, 10, line=2, column=9), hints=("add a value",)
    )

    assert diagnostic.format() == "error: expected expression (line 2, column 9)\n  hint: add a value"
    assert Diagnostic(Severity.WARNING, "w", Span(1, 2)).format() == "warning: w (bytes 1..2)"


@pytest.mark.unit
def test_diagnostics_are_immutable():
    """Test that mapped diagnostics are value objects."""
    diagnostic = Diagnostic.error("boom")

    with pytest.raises(AttributeError):
        diagnostic.message = "changed"


@pytest.mark.unit
def test_compile_error_message_lists_diagnostics():
    """Test the enhanced CompileError message."""
    error = CompileError([Diagnostic.error("one"), Diagnostic(Severity.WARNING, "two")])

    assert str(error).startswith("Compilation failed with 1 error(s)")
    assert "error: one" in str(error)
    assert [d.message for d in error.errors] == ["one"]
    assert [d.message for d in error.warnings] == ["two"]


@pytest.mark.unit
def test_simple_error_is_single_spanless_diagnostic():
    """Test precondition errors carry exactly one error diagnostic."""
    error = PreconditionError.simple("No compiled document. Call compile() first.")

    assert isinstance(error, CompileError)
    assert error.message == "No compiled document. Call compile() first."
    [diagnostic] = error.diagnostics
    assert diagnostic.severity == Severity.ERROR
    assert diagnostic.span is None
