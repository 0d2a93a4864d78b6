"""
Interfaces of the external collaborators driven by a compilation context.

The layout compiler, the page renderer and the document serializer are not
part of FOLIO. They are plugged in through the protocols below, and report
problems as SourceDiagnostics whose spans point into the world's files by
identity and byte range.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from folio.contexts.session.options import PdfStandard
from folio.contexts.world import CompilationWorld, FileId

PageRange = Tuple[int, int]


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class OutputTarget(str, Enum):
    """Document kinds a compiler can produce."""

    PAGED = "paged"
    HTML = "html"


@dataclass(frozen=True)
class SourceSpan:
    """
    Compiler-side location: a file identity plus a byte range, either possibly absent.

    Attributes:
        id: File the span points into
        start: First byte (inclusive)
        end: Last byte (exclusive)
    """

    id: Optional[FileId] = None
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def range(self) -> Optional[Tuple[int, int]]:
        if self.start is None or self.end is None:
            return None
        return self.start, self.end


DETACHED = SourceSpan()


@dataclass(frozen=True)
class SourceDiagnostic:
    """A diagnostic as reported by the compiler or serializer."""

    severity: Severity
    message: str
    span: SourceSpan = DETACHED
    trace: Tuple[Tuple[SourceSpan, str], ...] = ()
    hints: Tuple[str, ...] = ()

    @classmethod
    def error(cls, span: SourceSpan, message: str, hints: Sequence[str] = ()) -> "SourceDiagnostic":
        return cls(Severity.ERROR, message, span, hints=tuple(hints))

    @classmethod
    def warning(cls, span: SourceSpan, message: str, hints: Sequence[str] = ()) -> "SourceDiagnostic":
        return cls(Severity.WARNING, message, span, hints=tuple(hints))


class SourceDiagnosticError(Exception):
    """Raised by serializers when a document cannot be written out."""

    def __init__(self, diagnostics: Sequence[SourceDiagnostic]):
        self.diagnostics = list(diagnostics)
        messages = "; ".join(d.message for d in self.diagnostics[:3])
        super().__init__(messages or "serialization failed")


@dataclass
class CompileOutput:
    """
    Result of one compiler run.

    Attributes:
        document: The produced document, None on failure. Paged documents
            expose an ordered `pages` sequence.
        errors: Error diagnostics, in the order the compiler produced them
        warnings: Warning diagnostics, in the order the compiler produced them
    """

    document: Optional[Any] = None
    errors: List[SourceDiagnostic] = field(default_factory=list)
    warnings: List[SourceDiagnostic] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class SerializeOptions:
    """
    Validated PDF export settings passed to the serializer.

    Attributes:
        ident: Document identifier override
        standards: Compatible set of standards to conform to
        page_ranges: Inclusive 1-based page ranges to include, None for all
    """

    ident: Optional[str] = None
    standards: Tuple[PdfStandard, ...] = ()
    page_ranges: Optional[Tuple[PageRange, ...]] = None


class Compiler(Protocol):
    def compile(self, world: CompilationWorld, target: OutputTarget = OutputTarget.PAGED) -> CompileOutput: ...


class PageRenderer(Protocol):
    def render_svg(self, page: Any) -> str: ...


class DocumentSerializer(Protocol):
    def pdf(self, document: Any, options: SerializeOptions) -> bytes: ...

    def html(self, document: Any) -> str: ...
