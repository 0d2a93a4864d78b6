"""Exceptions raised by a compilation context, each carrying ordered diagnostics."""

from typing import List, Optional, Sequence

from folio.contexts.session.diagnostics import Diagnostic


class CompileError(Exception):
    """
    Exception raised when compilation (or a later session step) fails.

    Attributes:
        diagnostics: Diagnostics in the order they were produced
        message: Summary line
    """

    def __init__(self, diagnostics: Sequence[Diagnostic], message: Optional[str] = None):
        self.diagnostics: List[Diagnostic] = list(diagnostics)
        errors = [d for d in self.diagnostics if d.is_error]
        self.message = message or f"Compilation failed with {len(errors)} error(s)"

        # Build enhanced error message
        parts = [self.message]
        shown = self.diagnostics[:5]
        for diagnostic in shown:
            parts.append(diagnostic.format())
        if len(self.diagnostics) > len(shown):
            parts.append(f"... and {len(self.diagnostics) - len(shown)} more diagnostics")

        super().__init__("\n".join(parts))

    @classmethod
    def simple(cls, message: str) -> "CompileError":
        """Error carrying one span-less error diagnostic."""
        return cls([Diagnostic.error(message)], message=message)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]


class PreconditionError(CompileError):
    """No compiled document is stored, or a page index is out of range."""


class ExportError(CompileError):
    """Invalid export options, or the serializer rejected the document."""
