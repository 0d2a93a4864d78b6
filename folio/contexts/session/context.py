"""
Compilation context: a stateful edit/compile/render/export session.

A context owns one CompilationWorld and at most one compiled document. It is
either EMPTY (no document) or COMPILED:

    EMPTY --compile ok--> COMPILED
    COMPILED --compile fails / set_markup / set_virtual_file / clear_virtual_file--> EMPTY

render_svg and export_pdf read the stored document and fail with a
PreconditionError while the context is EMPTY. One reentrant lock covers the
world and the document, so operations on the same context run one at a time.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from folio.contexts.session.code import encode_records
from folio.contexts.session.compiler import (
    Compiler,
    DocumentSerializer,
    OutputTarget,
    PageRenderer,
    SerializeOptions,
    SourceDiagnosticError,
)
from folio.contexts.session.diagnostics import (
    Diagnostic,
    DiagnosticMapper,
    map_diagnostics,
    map_diagnostics_detached,
)
from folio.contexts.session.errors import CompileError, ExportError, PreconditionError
from folio.contexts.session.logger import (
    _log_debug,
    _log_info,
    log_compile_result,
    log_compile_start,
    log_export,
)
from folio.contexts.session.options import ContextOptions, FontOptions, PdfOptions, validate_standards
from folio.contexts.session.page_ranges import PageRangeError, parse_page_ranges
from folio.contexts.world import CompilationWorld, font_families
from folio.utils.settings import load_collaborator

NO_DOCUMENT = "No compiled document. Call compile() first."


class ContextState(str, Enum):
    EMPTY = "empty"
    COMPILED = "compiled"


@dataclass
class CompileResult:
    """
    Successful compile.

    Attributes:
        page_count: Number of pages in the stored document
        warnings: Warnings in compiler order, positions resolved
        elapsed: Seconds spent compiling
    """

    page_count: int
    warnings: List[Diagnostic] = field(default_factory=list)
    elapsed: float = 0.0


class CompilationContext:
    """
    Session wrapper around a CompilationWorld and its compiled document.

    Args:
        world: World the compiler reads from; owned by this context
        compiler: Layout compiler collaborator
        renderer: Page renderer; loaded from FOLIO_RENDERER on first render when None
        serializer: Document serializer; loaded from FOLIO_SERIALIZER on first export when None

    Example:
        ctx = CompilationContext.create(ContextOptions(root="templates"), compiler=compiler)
        ctx.set_markup("= Hello")
        result = ctx.compile()
        svg = ctx.render_svg(0)
        pdf = ctx.export_pdf(pages="1-3", pdf_standards=["a-2b"])
    """

    def __init__(
        self,
        world: CompilationWorld,
        compiler: Compiler,
        renderer: Optional[PageRenderer] = None,
        serializer: Optional[DocumentSerializer] = None,
    ):
        self.world = world
        self.compiler = compiler
        self._renderer = renderer
        self._serializer = serializer
        self._document: Optional[Any] = None
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        options: Optional[ContextOptions] = None,
        *,
        compiler: Optional[Compiler] = None,
        renderer: Optional[PageRenderer] = None,
        serializer: Optional[DocumentSerializer] = None,
        **world_kwargs,
    ) -> "CompilationContext":
        """
        Build a context and its world from options.

        Args:
            options: Root and font settings (default: from environment)
            compiler: Compiler collaborator (default: loaded from FOLIO_COMPILER)
            renderer: Renderer collaborator (default: loaded lazily)
            serializer: Serializer collaborator (default: loaded lazily)
            **world_kwargs: Passed to CompilationWorld (fonts, package_resolver, clock, ...)

        Raises:
            ValueError: If no compiler is given or configured
        """
        if options is None:
            options = ContextOptions.from_env()
        if compiler is None:
            compiler = load_collaborator("compiler")

        world = CompilationWorld(
            root=options.root,
            font_paths=options.font_paths,
            ignore_system_fonts=options.ignore_system_fonts,
            **world_kwargs,
        )
        _log_debug(f"Created context (root: {world.root}, {len(world.font_families())} font families)")
        return cls(world, compiler, renderer=renderer, serializer=serializer)

    # State

    @property
    def state(self) -> ContextState:
        return ContextState.COMPILED if self._document is not None else ContextState.EMPTY

    @property
    def has_document(self) -> bool:
        return self._document is not None

    @property
    def page_count(self) -> Optional[int]:
        """Pages in the stored document, None while EMPTY."""
        with self._lock:
            if self._document is None:
                return None
            return len(self._document.pages)

    @property
    def renderer(self) -> PageRenderer:
        if self._renderer is None:
            self._renderer = load_collaborator("renderer")
        return self._renderer

    @property
    def serializer(self) -> DocumentSerializer:
        if self._serializer is None:
            self._serializer = load_collaborator("serializer")
        return self._serializer

    # Mutation

    def set_markup(self, markup: str) -> None:
        """Replace the main markup. Drops the compiled document."""
        with self._lock:
            self.world.set_markup(markup)
            self._document = None

    def set_virtual_file(self, path: str, content: Union[str, bytes]) -> None:
        """Create or replace a virtual file. Drops the compiled document."""
        with self._lock:
            self.world.overlay.set(path, content)
            self._document = None

    def append_virtual_file(self, path: str, chunk: Union[str, bytes]) -> None:
        """
        Append to a virtual file, creating it when absent.

        Keeps the compiled document: appends are meant for progressive
        uploads that end in set_markup or compile.
        """
        with self._lock:
            self.world.overlay.append(path, chunk)

    def clear_virtual_file(self, path: str) -> None:
        """Remove a virtual file. Drops the compiled document."""
        with self._lock:
            self.world.clear_virtual_file(path)
            self._document = None

    def stream_virtual_file(
        self,
        path: str,
        records: Iterable[Any],
        variable_name: str = "data",
        context: Optional[dict] = None,
        batch_size: int = 100,
    ) -> None:
        """
        Write records into a virtual file as one markup array binding.

        The file reads `#let <variable_name> = (` followed by one encoded
        record per line and a closing `)`, so documents can
        `#import "<path>": <variable_name>`.

        Args:
            path: Virtual path to write
            records: Any iterable of encodable values, consumed lazily
            variable_name: Name bound in the file
            context: Encoder context (timezone, struct_keys)
            batch_size: Records encoded per append

        Raises:
            ValueError: If batch_size is not positive
            TypeError: If a record cannot be encoded
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        with self._lock:
            self.set_virtual_file(path, f"#let {variable_name} = (\n")
            batch: List[str] = []
            count = 0
            for line in encode_records(records, context):
                batch.append(line)
                count += 1
                if len(batch) >= batch_size:
                    self.append_virtual_file(path, "".join(batch))
                    batch = []
            if batch:
                self.append_virtual_file(path, "".join(batch))
            self.append_virtual_file(path, ")\n")
        _log_debug(f"Streamed {count} records into {path} as '{variable_name}'")

    def set_input(self, key: str, value: str) -> None:
        """Bind one sys.inputs key. Keeps the compiled document."""
        with self._lock:
            self.world.set_input(key, value)
            self._note_stale_inputs()

    def set_inputs(self, inputs: Mapping[str, str]) -> None:
        """Replace all sys.inputs bindings. Keeps the compiled document."""
        with self._lock:
            self.world.set_inputs(inputs)
            self._note_stale_inputs()

    # Compile, render, export

    def compile(self) -> CompileResult:
        """
        Compile the current markup into a paged document and store it.

        Returns:
            CompileResult with page count and position-resolved warnings

        Raises:
            CompileError: With the compiler's errors followed by its warnings,
                in the order produced. The stored document is dropped, also when
                the compiler itself raises.
        """
        with self._lock:
            self.world.reset()
            log_compile_start(OutputTarget.PAGED.value, self.world.root, self.world.cache.generation)

            self._document = None
            start = time.perf_counter()
            output = self.compiler.compile(self.world, OutputTarget.PAGED)
            elapsed = time.perf_counter() - start

            if output.succeeded:
                warnings = map_diagnostics(output.warnings, self.world)
                self._document = output.document
                page_count = len(output.document.pages)
                log_compile_result(True, page_count, warnings, elapsed)
                return CompileResult(page_count=page_count, warnings=warnings, elapsed=elapsed)

            diagnostics = map_diagnostics(list(output.errors) + list(output.warnings), self.world)
            log_compile_result(False, 0, diagnostics, elapsed)
            raise CompileError(diagnostics)

    def render_svg(self, page: int = 0) -> str:
        """
        Render one page of the stored document to SVG.

        Args:
            page: 0-based page index

        Raises:
            PreconditionError: If nothing is compiled or page is out of range
        """
        with self._lock:
            document = self._require_document()
            page_count = len(document.pages)
            if page < 0 or page >= page_count:
                raise PreconditionError.simple(
                    f"Page index {page} out of bounds (document has {page_count} pages)"
                )

            start = time.perf_counter()
            svg = self.renderer.render_svg(document.pages[page])
            log_export(f"page {page} as SVG", len(svg), time.perf_counter() - start)
            return svg

    def export_pdf(self, options: Optional[PdfOptions] = None, **kwargs) -> bytes:
        """
        Serialize the stored document to PDF.

        Args:
            options: PdfOptions; keyword arguments (pages, pdf_standards,
                document_id) build one when omitted; passing both is a TypeError

        Raises:
            PreconditionError: If nothing is compiled
            ExportError: On invalid standards, an invalid page selector, or
                serializer diagnostics (these carry no line/column)
        """
        if options is None:
            options = PdfOptions(**kwargs)
        elif kwargs:
            raise TypeError(f"export_pdf() takes options or keyword arguments, not both (got {sorted(kwargs)})")

        with self._lock:
            document = self._require_document()

            try:
                standards = validate_standards(options.pdf_standards)
            except ValueError as e:
                raise ExportError.simple(str(e)) from e

            page_ranges = None
            if options.pages is not None:
                try:
                    page_ranges = tuple(parse_page_ranges(options.pages, len(document.pages)))
                except PageRangeError as e:
                    raise ExportError.simple(str(e)) from e

            serialize_options = SerializeOptions(
                ident=options.document_id,
                standards=standards,
                page_ranges=page_ranges,
            )

            start = time.perf_counter()
            try:
                pdf = self.serializer.pdf(document, serialize_options)
            except SourceDiagnosticError as e:
                raise ExportError(map_diagnostics_detached(e.diagnostics), message="PDF export failed") from e
            log_export("PDF", len(pdf), time.perf_counter() - start)
            return pdf

    def export_html(self) -> str:
        """
        Compile the current markup for HTML output and serialize it.

        Runs its own compile and leaves the stored paged document untouched.

        Raises:
            CompileError: If compiling or serializing fails (positions resolved)
        """
        with self._lock:
            self.world.reset()
            log_compile_start(OutputTarget.HTML.value, self.world.root, self.world.cache.generation)

            start = time.perf_counter()
            output = self.compiler.compile(self.world, OutputTarget.HTML)
            mapper = DiagnosticMapper(self.world)
            if not output.succeeded:
                diagnostics = mapper.map_all(list(output.errors) + list(output.warnings))
                log_compile_result(False, 0, diagnostics, time.perf_counter() - start)
                raise CompileError(diagnostics)

            try:
                html = self.serializer.html(output.document)
            except SourceDiagnosticError as e:
                raise CompileError(mapper.map_all(e.diagnostics), message="HTML export failed") from e
            log_export("HTML", len(html.encode("utf-8")), time.perf_counter() - start)
            return html

    def font_families(self) -> List[str]:
        """Family names in this context's font index (no compile needed)."""
        with self._lock:
            return self.world.font_families()

    # Internals

    def _require_document(self) -> Any:
        if self._document is None:
            raise PreconditionError.simple(NO_DOCUMENT)
        return self._document

    def _note_stale_inputs(self) -> None:
        if self._document is not None:
            _log_debug("Inputs changed; the stored document still reflects the previous inputs until compile()")


def create_context(
    root: Union[str, Path] = ".",
    font_paths: Sequence[Union[str, Path]] = (),
    ignore_system_fonts: bool = False,
    **kwargs,
) -> CompilationContext:
    """
    Create a compilation context.

    Args:
        root: Project root for resolving file imports
        font_paths: Additional font directories
        ignore_system_fonts: Skip the platform font directories
        **kwargs: compiler, renderer, serializer, and CompilationWorld keywords

    Example:
        ctx = create_context("templates", compiler=MyCompiler())
    """
    options = ContextOptions(
        root=str(root),
        font_paths=[str(p) for p in font_paths],
        ignore_system_fonts=ignore_system_fonts,
    )
    return CompilationContext.create(options, **kwargs)


def list_system_font_families(options: Optional[FontOptions] = None) -> List[str]:
    """
    Family names from a throwaway font index.

    Font directories that do not exist are skipped.
    """
    if options is None:
        options = FontOptions()
    families = font_families(options.font_paths, options.ignore_system_fonts)
    _log_info(f"Found {len(families)} font families")
    return families
