"""
FOLIO - Fingerprinted, Overlaid, Lazily-Invalidated Output

An incremental compilation world for a Typst-style document compiler, plus the
session layer that turns one-shot compiles into a stateful
edit/compile/render/export loop.

Architecture:
- World Context: file identities, fingerprinted file cache, virtual file overlay,
  package resolution, font index, clock
- Session Context: compiled-document state machine, diagnostics, page ranges,
  data encoding, worker dispatch
"""

__version__ = "0.1.0"

from typing import List, Optional

from folio.contexts.session import (
    CompilationContext,
    CompileError,
    CompileResult,
    ContextOptions,
    ContextState,
    Diagnostic,
    ExportError,
    FontOptions,
    PdfOptions,
    PdfStandard,
    PreconditionError,
    SessionDispatcher,
    Severity,
    Span,
    TraceItem,
    create_context,
    encode,
    list_system_font_families,
)


def font_families(opts: Optional[FontOptions] = None) -> List[str]:
    """
    List all font families available to the compiler.

    Standalone operation that builds a throwaway font index. For the fonts
    loaded in a session, use CompilationContext.font_families().
    """
    if opts is None:
        opts = FontOptions()
    return list_system_font_families(opts)


__all__ = [
    "CompilationContext",
    "CompileError",
    "CompileResult",
    "ContextOptions",
    "ContextState",
    "Diagnostic",
    "ExportError",
    "FontOptions",
    "PdfOptions",
    "PdfStandard",
    "PreconditionError",
    "SessionDispatcher",
    "Severity",
    "Span",
    "TraceItem",
    "create_context",
    "encode",
    "font_families",
]
