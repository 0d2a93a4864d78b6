"""
The compilation world: everything the compiler may ask for.

A CompilationWorld answers the compiler's pull-style requests (library, font
book, main file, sources, raw files, fonts, today's date) from, in order of
precedence:

1. the in-memory main markup (main pseudo-file only),
2. the virtual file overlay,
3. the fingerprinted file cache, backed by the project root or a resolved
   package directory.
"""

import stat
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

from folio.contexts.world.clock import Clock
from folio.contexts.world.errors import AccessDenied, FileError, IsDirectory
from folio.contexts.world.file_cache import FileCache, decode_utf8
from folio.contexts.world.fonts import Font, FontBook, Fonts, FontSearcher
from folio.contexts.world.identity import MAIN_ID, FileId
from folio.contexts.world.logger import _log_debug
from folio.contexts.world.overlay import VirtualFileOverlay
from folio.contexts.world.packages import PackageResolver, PackageStorage, SilentProgress
from folio.contexts.world.source import Source

DEFAULT_FEATURES = frozenset({"html"})


@dataclass(frozen=True)
class Library:
    """
    Standard-library configuration handed to the compiler.

    Attributes:
        inputs: String-keyed values exposed to documents as sys.inputs
        features: Enabled optional compiler features
    """

    inputs: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    features: FrozenSet[str] = DEFAULT_FEATURES

    @classmethod
    def build(cls, inputs: Optional[Mapping[str, str]] = None, features=DEFAULT_FEATURES) -> "Library":
        return cls(inputs=MappingProxyType(dict(inputs or {})), features=frozenset(features))


def read_from_disk(path: Path) -> bytes:
    """
    Read a file, classifying failures.

    Raises:
        IsDirectory: If path is a directory
        FileError: Mapped from the underlying OSError
    """
    try:
        if stat.S_ISDIR(path.stat().st_mode):
            raise IsDirectory("failed to load file (is a directory)", path)
        return path.read_bytes()
    except OSError as e:
        raise FileError.from_os_error(e, path) from e


class CompilationWorld:
    """
    Session-long provider of sources, fonts and time for the compiler.

    Attributes:
        root: Project root that non-package paths resolve against
        main: Identity of the in-memory main file
        markup: Current main markup
        inputs: Current sys.inputs bindings
        cache: Fingerprinted file cache
        overlay: Virtual files shadowing the disk
        packages: Package resolver
        clock: Per-compile clock
    """

    def __init__(
        self,
        root: Union[str, Path] = ".",
        font_paths: Sequence[Union[str, Path]] = (),
        ignore_system_fonts: bool = False,
        *,
        fonts: Optional[Fonts] = None,
        embedded_fonts: Sequence[bytes] = (),
        package_resolver: Optional[PackageResolver] = None,
        clock: Optional[Clock] = None,
    ):
        self.root = Path(root)
        self.main = MAIN_ID
        self.markup = ""
        self.inputs: Dict[str, str] = {}
        self._library = Library.build()
        self._main_source = Source(MAIN_ID, "")
        self._virtual_sources: Dict[FileId, Tuple[bytes, Source]] = {}

        if fonts is None:
            searcher = FontSearcher(include_system_fonts=not ignore_system_fonts)
            fonts = searcher.search(font_paths, embedded=embedded_fonts)
        self._book = fonts.book
        self._fonts = fonts.slots

        self.cache = FileCache()
        self.overlay = VirtualFileOverlay()
        self.packages = package_resolver if package_resolver is not None else PackageStorage()
        self.clock = clock or Clock()

    # Provider interface consumed by the compiler

    def library(self) -> Library:
        return self._library

    def book(self) -> FontBook:
        return self._book

    def font(self, index: int) -> Optional[Font]:
        """Face at a book index, loading it on first use."""
        if 0 <= index < len(self._fonts):
            return self._fonts[index].get()
        return None

    def today(self, offset: Optional[int] = None) -> Optional[date]:
        """Today's date from the per-compile clock snapshot."""
        return self.clock.today(offset)

    def source(self, id: FileId) -> Source:
        """
        Parsed source for id.

        Raises:
            FileError: If the file cannot be read or is not UTF-8
        """
        if id == self.main:
            return self._main_source

        content = self.overlay.lookup(id)
        if content is not None:
            return self._virtual_source(id, content)
        self._virtual_sources.pop(id, None)

        return self.cache.source(id, lambda: self._read(id))

    def file(self, id: FileId) -> bytes:
        """
        Raw bytes for id.

        Raises:
            FileError: If the file cannot be read
        """
        if id == self.main:
            return self.markup.encode("utf-8")

        content = self.overlay.lookup(id)
        if content is not None:
            return content

        return self.cache.file(id, lambda: self._read(id))

    # Mutation

    def set_markup(self, markup: str) -> None:
        """Replace the main markup and start a new cache generation."""
        self.markup = markup
        self._main_source.replace(markup)
        self.reset()

    def set_input(self, key: str, value: str) -> None:
        self.inputs[key] = value
        self._rebuild_library()

    def set_inputs(self, inputs: Mapping[str, str]) -> None:
        self.inputs = dict(inputs)
        self._rebuild_library()

    def clear_virtual_file(self, path: str) -> bool:
        """Remove a virtual file and its parsed source. Returns whether it existed."""
        self._virtual_sources.pop(FileId.new(path), None)
        return self.overlay.clear(path)

    def reset(self) -> None:
        """Mark every cached file unaccessed and drop the clock snapshot."""
        self.cache.reset()
        self.clock.reset()

    def font_families(self) -> List[str]:
        return self._book.families()

    # Internals

    def _rebuild_library(self) -> None:
        self._library = Library.build(self.inputs, self._library.features)
        _log_debug(f"Library rebuilt with {len(self.inputs)} inputs")

    def _virtual_source(self, id: FileId, content: bytes) -> Source:
        cached = self._virtual_sources.get(id)
        if cached is not None and cached[0] == content:
            return cached[1]

        text = decode_utf8(content, id)
        if cached is not None:
            source = cached[1]
            source.replace(text)
        else:
            source = Source(id, text)
        self._virtual_sources[id] = (content, source)
        return source

    def _system_path(self, id: FileId) -> Path:
        root = self.root
        if id.package is not None:
            root = self.packages.prepare_package(id.package, SilentProgress())
        path = id.resolve(root)
        if path is None:
            raise AccessDenied("failed to load file (access denied)")
        return path

    def _read(self, id: FileId) -> bytes:
        return read_from_disk(self._system_path(id))
