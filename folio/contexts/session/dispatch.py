"""
Worker dispatch for session operations.

Compile, render and export are CPU-bound and go to the CPU pool. Context
creation (font discovery), standalone font listing and virtual-file mutation
are I/O-bound and go to the I/O pool. Every call returns a Future; a single
operation never fans out internally.

Usage:
    with SessionDispatcher() as dispatcher:
        ctx = dispatcher.create_context(options, compiler=compiler).result()
        dispatcher.set_virtual_file(ctx, "data.typ", "#let x = 1").result()
        dispatcher.compile(ctx).result()
        pdf = dispatcher.export_pdf(ctx, pages="1-2").result()
"""

import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Iterable, Optional, Union

from folio.contexts.session.context import CompilationContext, list_system_font_families
from folio.contexts.session.logger import _log_debug
from folio.contexts.session.options import ContextOptions, FontOptions, PdfOptions


def _default_cpu_workers() -> int:
    return os.cpu_count() or 1


class SessionDispatcher:
    """
    Two thread pools routing session operations by workload.

    Operations on one context still run one at a time (each context holds
    its own lock); different contexts proceed in parallel.

    Attributes:
        cpu_workers: Maximum concurrent compile/render/export calls
        io_workers: Maximum concurrent I/O-bound calls
    """

    def __init__(self, cpu_workers: Optional[int] = None, io_workers: int = 4):
        self.cpu_workers = cpu_workers or _default_cpu_workers()
        self.io_workers = io_workers
        self._cpu = ThreadPoolExecutor(max_workers=self.cpu_workers, thread_name_prefix="folio-cpu")
        self._io = ThreadPoolExecutor(max_workers=self.io_workers, thread_name_prefix="folio-io")
        _log_debug(f"Dispatcher started ({self.cpu_workers} CPU workers, {self.io_workers} I/O workers)")

    # CPU-bound

    def compile(self, ctx: CompilationContext) -> Future:
        return self._cpu.submit(ctx.compile)

    def render_svg(self, ctx: CompilationContext, page: int = 0) -> Future:
        return self._cpu.submit(ctx.render_svg, page)

    def export_pdf(self, ctx: CompilationContext, options: Optional[PdfOptions] = None, **kwargs) -> Future:
        return self._cpu.submit(ctx.export_pdf, options, **kwargs)

    def export_html(self, ctx: CompilationContext) -> Future:
        return self._cpu.submit(ctx.export_html)

    # I/O-bound

    def create_context(self, options: Optional[ContextOptions] = None, **kwargs) -> Future:
        return self._io.submit(CompilationContext.create, options, **kwargs)

    def font_families(self, options: Optional[FontOptions] = None) -> Future:
        return self._io.submit(list_system_font_families, options)

    def set_virtual_file(self, ctx: CompilationContext, path: str, content: Union[str, bytes]) -> Future:
        return self._io.submit(ctx.set_virtual_file, path, content)

    def append_virtual_file(self, ctx: CompilationContext, path: str, chunk: Union[str, bytes]) -> Future:
        return self._io.submit(ctx.append_virtual_file, path, chunk)

    def clear_virtual_file(self, ctx: CompilationContext, path: str) -> Future:
        return self._io.submit(ctx.clear_virtual_file, path)

    def stream_virtual_file(self, ctx: CompilationContext, path: str, records: Iterable[Any], **kwargs) -> Future:
        return self._io.submit(ctx.stream_virtual_file, path, records, **kwargs)

    # Lifecycle

    def shutdown(self, wait: bool = True) -> None:
        """Stop both pools, waiting for queued work by default."""
        self._cpu.shutdown(wait=wait)
        self._io.shutdown(wait=wait)

    def __enter__(self) -> "SessionDispatcher":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
