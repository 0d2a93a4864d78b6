"""
Position-resolved diagnostics.

Compiler diagnostics carry spans as (file identity, byte range). The mapper
turns them into immutable value records whose spans also carry 1-based line
and column numbers, computed against the same Source text the compiler
parsed (taken from the world, never re-read from disk).

Positions that cannot be resolved stay None, so "unknown" is never confused
with line 1, column 1. The detached mapping keeps byte ranges but never
resolves positions; it is used once the per-compile world state is gone.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from folio.contexts.session.compiler import Severity, SourceDiagnostic, SourceSpan
from folio.contexts.world import CompilationWorld, FileError, FileId


@dataclass(frozen=True)
class Span:
    """
    Byte range inside a source, optionally resolved to a 1-based position.

    Attributes:
        start: First byte (inclusive)
        end: Last byte (exclusive)
        line: 1-based line of start, None when unknown
        column: 1-based column of start, None when unknown
    """

    start: int
    end: int
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def position(self) -> Optional[Tuple[int, int]]:
        if self.line is None or self.column is None:
            return None
        return self.line, self.column


@dataclass(frozen=True)
class TraceItem:
    """One step of a diagnostic's trace (e.g. "error occurred in this call")."""

    span: Optional[Span]
    message: str


@dataclass(frozen=True)
class Diagnostic:
    """
    A compiler message ready for display.

    Attributes:
        severity: Error or warning
        message: Human-readable description
        span: Where the problem is, None when unknown
        trace: Ordered (span, message) steps leading to the problem
        hints: Suggestions for fixing it
    """

    severity: Severity
    message: str
    span: Optional[Span] = None
    trace: Tuple[TraceItem, ...] = ()
    hints: Tuple[str, ...] = ()

    @classmethod
    def error(cls, message: str) -> "Diagnostic":
        """Span-less error diagnostic, used for session precondition failures."""
        return cls(Severity.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def format(self) -> str:
        """
        Render as text.

        Example:
            error: expected expression (line 2, column 15)
              hint: try adding a value after `=`
        """
        location = ""
        if self.span is not None and self.span.position is not None:
            location = f" (line {self.span.line}, column {self.span.column})"
        elif self.span is not None:
            location = f" (bytes {self.span.start}..{self.span.end})"

        lines = [f"{self.severity.value}: {self.message}{location}"]
        for item in self.trace:
            where = ""
            if item.span is not None and item.span.position is not None:
                where = f" (line {item.span.line}, column {item.span.column})"
            lines.append(f"  trace: {item.message}{where}")
        lines.extend(f"  hint: {hint}" for hint in self.hints)
        return "\n".join(lines)


class DiagnosticMapper:
    """
    Converts SourceDiagnostics into Diagnostics.

    Args:
        world: World whose sources resolve line/column; None for the detached
            (position-less) mapping
    """

    def __init__(self, world: Optional[CompilationWorld] = None):
        self.world = world

    def map(self, diagnostic: SourceDiagnostic) -> Diagnostic:
        return Diagnostic(
            severity=Severity(diagnostic.severity),
            message=str(diagnostic.message),
            span=self.span(diagnostic.span),
            trace=tuple(TraceItem(self.span(span), str(message)) for span, message in diagnostic.trace),
            hints=tuple(str(hint) for hint in diagnostic.hints),
        )

    def map_all(self, diagnostics: Iterable[SourceDiagnostic]) -> List[Diagnostic]:
        return [self.map(d) for d in diagnostics]

    def span(self, span: SourceSpan) -> Optional[Span]:
        byte_range = span.range
        if byte_range is None:
            return None
        start, end = byte_range
        line, column = self._line_column(span.id, start)
        return Span(start=start, end=end, line=line, column=column)

    def _line_column(self, id: Optional[FileId], offset: int) -> Tuple[Optional[int], Optional[int]]:
        if self.world is None or id is None:
            return None, None
        try:
            source = self.world.source(id)
        except FileError:
            return None, None

        line = source.byte_to_line(offset)
        column = source.byte_to_column(offset)
        return (
            line + 1 if line is not None else None,
            column + 1 if column is not None else None,
        )


def map_diagnostics(diagnostics: Iterable[SourceDiagnostic], world: CompilationWorld) -> List[Diagnostic]:
    """Map diagnostics, resolving positions through world."""
    return DiagnosticMapper(world).map_all(diagnostics)


def map_diagnostics_detached(diagnostics: Iterable[SourceDiagnostic]) -> List[Diagnostic]:
    """Map diagnostics keeping byte ranges only."""
    return DiagnosticMapper(None).map_all(diagnostics)
