"""
Session Context

Responsibilities:
- Runs the compiler against a world and stores the compiled document
- Guards render/export behind a compiled document (EMPTY/COMPILED states)
- Maps compiler diagnostics to line/column positions
- Parses page selectors and validates PDF export options
- Encodes host data as markup code for virtual files
- Dispatches session operations to CPU and I/O worker pools

Owns: CompilationContext and its single compiled document
Never: Reads files directly (always through the world)
"""

from folio.contexts.session.code import encode
from folio.contexts.session.compiler import (
    CompileOutput,
    Compiler,
    DocumentSerializer,
    OutputTarget,
    PageRenderer,
    SerializeOptions,
    Severity,
    SourceDiagnostic,
    SourceDiagnosticError,
    SourceSpan,
)
from folio.contexts.session.context import (
    CompilationContext,
    CompileResult,
    ContextState,
    create_context,
    list_system_font_families,
)
from folio.contexts.session.diagnostics import Diagnostic, DiagnosticMapper, Span, TraceItem
from folio.contexts.session.dispatch import SessionDispatcher
from folio.contexts.session.errors import CompileError, ExportError, PreconditionError
from folio.contexts.session.options import (
    ContextOptions,
    FontOptions,
    PdfOptions,
    PdfStandard,
    load_context_options,
)
from folio.contexts.session.page_ranges import PageRangeError, parse_page_ranges

__all__ = [
    "CompilationContext",
    "CompileError",
    "CompileOutput",
    "CompileResult",
    "Compiler",
    "ContextOptions",
    "ContextState",
    "Diagnostic",
    "DiagnosticMapper",
    "DocumentSerializer",
    "ExportError",
    "FontOptions",
    "OutputTarget",
    "PageRangeError",
    "PageRenderer",
    "PdfOptions",
    "PdfStandard",
    "PreconditionError",
    "SerializeOptions",
    "SessionDispatcher",
    "Severity",
    "SourceDiagnostic",
    "SourceDiagnosticError",
    "SourceSpan",
    "Span",
    "TraceItem",
    "create_context",
    "encode",
    "list_system_font_families",
    "load_context_options",
    "parse_page_ranges",
]
