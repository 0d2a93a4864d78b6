"""
Integration tests for routing session operations to worker pools.
"""

import threading

import pytest

from folio.contexts.session import CompileError, ContextOptions, SessionDispatcher
from toy_engine import ToyCompiler, ToyRenderer, ToySerializer


@pytest.mark.integration
def test_full_loop_through_dispatcher(project, empty_fonts):
    """Test create/mutate/compile/render/export via futures."""
    with SessionDispatcher(cpu_workers=2, io_workers=2) as dispatcher:
        ctx = dispatcher.create_context(
            ContextOptions(root=str(project), ignore_system_fonts=True),
            compiler=ToyCompiler(),
            renderer=ToyRenderer(),
            serializer=ToySerializer(),
            fonts=empty_fonts,
        ).result()

        dispatcher.set_virtual_file(ctx, "data.typ", "#let title = Dispatched\n").result()
        ctx.set_markup('#import "data.typ": title\n#title\n#pagebreak()\nEnd\n')

        result = dispatcher.compile(ctx).result()
        svg = dispatcher.render_svg(ctx, 0).result()
        pdf = dispatcher.export_pdf(ctx, pages="2").result()
        html = dispatcher.export_html(ctx).result()

    assert result.page_count == 2
    assert "Dispatched" in svg
    assert b"page 2: End" in pdf
    assert "<p>Dispatched</p>" in html


@pytest.mark.integration
def test_errors_delivered_through_futures(context):
    """Test that session errors surface from Future.result()."""
    context.set_markup("]\n")

    with SessionDispatcher(cpu_workers=1) as dispatcher:
        future = dispatcher.compile(context)
        with pytest.raises(CompileError):
            future.result()


@pytest.mark.integration
def test_operations_on_one_context_serialize(context):
    """Test that concurrent compiles of one context never overlap."""
    active = []
    overlaps = []
    guard = threading.Lock()

    class SlowCompiler(ToyCompiler):
        def compile(self, world, target=None):
            with guard:
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
            try:
                return super().compile(world)
            finally:
                with guard:
                    active.pop()

    context.compiler = SlowCompiler()
    context.set_markup("Page\n")

    with SessionDispatcher(cpu_workers=4) as dispatcher:
        futures = [dispatcher.compile(context) for _ in range(8)]
        results = [f.result() for f in futures]

    assert overlaps == []
    assert all(r.page_count == 1 for r in results)


@pytest.mark.integration
def test_standalone_font_listing(tmp_path):
    """Test font listing on the I/O pool with nonexistent directories."""
    from folio.contexts.session import FontOptions

    with SessionDispatcher(cpu_workers=1, io_workers=1) as dispatcher:
        families = dispatcher.font_families(
            FontOptions(font_paths=[str(tmp_path / "missing")], ignore_system_fonts=True)
        ).result()

    assert families == []
