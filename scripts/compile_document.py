#!/usr/bin/env python3
"""
Document Compilation CLI

Compiles a markup file through a compilation context and writes SVG, PDF or
HTML output. The compiler, renderer and serializer are taken from
FOLIO_COMPILER, FOLIO_RENDERER and FOLIO_SERIALIZER (or --compiler etc.).

Commands:
    compile - Compile and report page count and diagnostics
    svg     - Render one page to SVG
    pdf     - Export to PDF (page selection, PDF/A standards)
    html    - Export to HTML
    fonts   - List available font families

Examples:\n

    compile_document.py compile report.typ                          # Check a document

    compile_document.py svg report.typ --page 2 -o page3.svg        # Third page as SVG

    compile_document.py pdf report.typ --pages 1-3,5 --standard a-2b

    compile_document.py html report.typ --input lang=de             # sys.inputs binding

    compile_document.py fonts --font-path assets/fonts --ignore-system-fonts
"""

from pathlib import Path
from typing import Dict, List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from folio.contexts.session import (
    CompilationContext,
    CompileError,
    ContextOptions,
    FontOptions,
    PdfOptions,
    list_system_font_families,
)
from folio.utils.logger import setup_logger
from folio.utils.settings import LOGS_PATH, load_collaborator
from folio.utils.timestamp import format_elapsed, now

load_dotenv()

app = typer.Typer(
    help="Compile markup documents to SVG, PDF or HTML",
    add_completion=False,
    invoke_without_command=True,
)


# Options shared by every command

RootOption = Annotated[
    Optional[Path],
    typer.Option("--root", "-r", help="Project root for imports (default: the document's directory)"),
]
FontPathOption = Annotated[
    Optional[List[Path]],
    typer.Option("--font-path", help="Additional font directory (repeatable)"),
]
IgnoreSystemFontsOption = Annotated[
    bool,
    typer.Option("--ignore-system-fonts", help="Only use fonts from --font-path"),
]
InputOption = Annotated[
    Optional[List[str]],
    typer.Option("--input", help="sys.inputs binding as key=value (repeatable)"),
]
CompilerOption = Annotated[
    Optional[str],
    typer.Option("--compiler", help="Compiler as module.path:attribute (default: FOLIO_COMPILER)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging and every diagnostic"),
]
DocumentArgument = Annotated[
    Path,
    typer.Argument(help="Markup file to compile", exists=True, dir_okay=False, readable=True),
]


@app.callback()
def main(
    ctx: typer.Context,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Write a DEBUG log under this directory"),
    ] = None,
    log: Annotated[bool, typer.Option("--log", help=f"Write a DEBUG log under {LOGS_PATH}")] = False,
):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()
    if log_dir is None and log:
        log_dir = LOGS_PATH
    ctx.obj = {"log_dir": log_dir}


def parse_inputs(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Turn ["key=value", ...] into a dict, rejecting entries without '='."""
    inputs = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--input")
        inputs[key] = value
    return inputs


def open_context(
    ctx: typer.Context,
    document: Path,
    root: Optional[Path],
    font_paths: Optional[List[Path]],
    ignore_system_fonts: bool,
    inputs: Optional[List[str]],
    compiler: Optional[str],
    verbose: bool,
    renderer: Optional[str] = None,
    serializer: Optional[str] = None,
) -> CompilationContext:
    """Configure logging, then build a context with the document as its markup."""
    log_dir = (ctx.obj or {}).get("log_dir")
    if log_dir is not None:
        log_dir = log_dir / f"{ctx.info_name}_{now()}"
    setup_logger(
        context_name="session",
        log_dir=log_dir,
        extra_provenance={"Document": document, "Compiler": compiler},
        console_level="DEBUG" if verbose else "WARNING",
    )

    bindings = parse_inputs(inputs)
    options = ContextOptions(
        root=str(root if root is not None else document.parent),
        font_paths=[str(p) for p in font_paths or []],
        ignore_system_fonts=ignore_system_fonts,
    )
    try:
        session = CompilationContext.create(
            options,
            compiler=load_collaborator("compiler", compiler),
            renderer=load_collaborator("renderer", renderer) if renderer else None,
            serializer=load_collaborator("serializer", serializer) if serializer else None,
        )
    except (ValueError, ImportError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    session.set_markup(document.read_text(encoding="utf-8"))
    if bindings:
        session.set_inputs(bindings)
    return session


def report_failure(error: CompileError, verbose: bool) -> None:
    """Print diagnostics of a failed step and exit with code 1."""
    limit = None if verbose else 10
    typer.secho(f"✗ {error.message}", fg=typer.colors.RED, bold=True, err=True)
    shown = error.diagnostics[:limit]
    for diagnostic in shown:
        color = typer.colors.RED if diagnostic.is_error else typer.colors.YELLOW
        typer.secho(f"  {diagnostic.format()}", fg=color, err=True)
    if len(error.diagnostics) > len(shown):
        typer.echo(f"  ... and {len(error.diagnostics) - len(shown)} more", err=True)
    raise typer.Exit(code=1)


def compile_or_exit(session: CompilationContext, verbose: bool):
    try:
        result = session.compile()
    except CompileError as e:
        report_failure(e, verbose)

    for warning in result.warnings:
        typer.secho(f"  {warning.format()}", fg=typer.colors.YELLOW, err=True)
    return result


def write_output(content, output: Optional[Path]) -> None:
    """Write to output, or print text / raw bytes to stdout."""
    if output is None:
        if isinstance(content, bytes):
            typer.get_binary_stream("stdout").write(content)
        else:
            typer.echo(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        output.write_bytes(content)
    else:
        output.write_text(content, encoding="utf-8")
    typer.echo(f"  Output: {output}", err=True)


@app.command("compile")
def compile_command(
    ctx: typer.Context,
    document: DocumentArgument,
    root: RootOption = None,
    font_path: FontPathOption = None,
    ignore_system_fonts: IgnoreSystemFontsOption = False,
    input: InputOption = None,
    compiler: CompilerOption = None,
    verbose: VerboseOption = False,
):
    """
    Compile a document and report the result.

    Examples:\n

        $ compile_document.py compile report.typ

        $ compile_document.py compile report.typ --root . --input draft=true
    """
    session = open_context(ctx, document, root, font_path, ignore_system_fonts, input, compiler, verbose)
    result = compile_or_exit(session, verbose)

    typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Pages: {result.page_count}")
    typer.echo(f"  Warnings: {len(result.warnings)}")
    typer.echo(f"  Time: {format_elapsed(result.elapsed)}")


@app.command("svg")
def svg_command(
    ctx: typer.Context,
    document: DocumentArgument,
    page: Annotated[int, typer.Option("--page", "-p", help="0-based page index", min=0)] = 0,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="SVG file (default: stdout)")] = None,
    renderer: Annotated[Optional[str], typer.Option("--renderer", help="Renderer as module.path:attribute")] = None,
    root: RootOption = None,
    font_path: FontPathOption = None,
    ignore_system_fonts: IgnoreSystemFontsOption = False,
    input: InputOption = None,
    compiler: CompilerOption = None,
    verbose: VerboseOption = False,
):
    """
    Render one page of a document to SVG.

    Examples:\n

        $ compile_document.py svg report.typ --page 0 -o cover.svg
    """
    session = open_context(
        ctx, document, root, font_path, ignore_system_fonts, input, compiler, verbose, renderer=renderer
    )
    compile_or_exit(session, verbose)

    try:
        svg = session.render_svg(page)
    except CompileError as e:
        report_failure(e, verbose)
    write_output(svg, output)


@app.command("pdf")
def pdf_command(
    ctx: typer.Context,
    document: DocumentArgument,
    pages: Annotated[Optional[str], typer.Option("--pages", help="Page selection like 1-3,5,7-9")] = None,
    standard: Annotated[
        Optional[List[str]],
        typer.Option("--standard", help="PDF standard: 1.7, a-2b or a-3b (repeatable)"),
    ] = None,
    document_id: Annotated[Optional[str], typer.Option("--document-id", help="Stable document identifier")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="PDF file (default: <document>.pdf)")] = None,
    serializer: Annotated[
        Optional[str], typer.Option("--serializer", help="Serializer as module.path:attribute")
    ] = None,
    root: RootOption = None,
    font_path: FontPathOption = None,
    ignore_system_fonts: IgnoreSystemFontsOption = False,
    input: InputOption = None,
    compiler: CompilerOption = None,
    verbose: VerboseOption = False,
):
    """
    Export a document to PDF.

    Examples:\n

        $ compile_document.py pdf report.typ                          # Writes report.pdf

        $ compile_document.py pdf report.typ --pages 2-4 -o excerpt.pdf

        $ compile_document.py pdf report.typ --standard a-2b --document-id report-2026
    """
    session = open_context(
        ctx, document, root, font_path, ignore_system_fonts, input, compiler, verbose, serializer=serializer
    )
    compile_or_exit(session, verbose)

    options = PdfOptions(pages=pages, pdf_standards=list(standard or []), document_id=document_id)
    try:
        pdf = session.export_pdf(options)
    except CompileError as e:
        report_failure(e, verbose)

    write_output(pdf, output or document.with_suffix(".pdf"))


@app.command("html")
def html_command(
    ctx: typer.Context,
    document: DocumentArgument,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="HTML file (default: stdout)")] = None,
    serializer: Annotated[
        Optional[str], typer.Option("--serializer", help="Serializer as module.path:attribute")
    ] = None,
    root: RootOption = None,
    font_path: FontPathOption = None,
    ignore_system_fonts: IgnoreSystemFontsOption = False,
    input: InputOption = None,
    compiler: CompilerOption = None,
    verbose: VerboseOption = False,
):
    """
    Export a document to HTML.

    Examples:\n

        $ compile_document.py html report.typ -o report.html
    """
    session = open_context(
        ctx, document, root, font_path, ignore_system_fonts, input, compiler, verbose, serializer=serializer
    )

    try:
        html = session.export_html()
    except CompileError as e:
        report_failure(e, verbose)
    write_output(html, output)


@app.command("fonts")
def fonts_command(
    font_path: FontPathOption = None,
    ignore_system_fonts: IgnoreSystemFontsOption = False,
):
    """
    List font families available to the compiler.

    Font directories that do not exist are skipped.

    Examples:\n

        $ compile_document.py fonts

        $ compile_document.py fonts --font-path assets/fonts --ignore-system-fonts
    """
    families = list_system_font_families(
        FontOptions(font_paths=[str(p) for p in font_path or []], ignore_system_fonts=ignore_system_fonts)
    )
    for family in families:
        typer.echo(family)
    typer.echo(f"\n{len(families)} families", err=True)


if __name__ == "__main__":
    app()
