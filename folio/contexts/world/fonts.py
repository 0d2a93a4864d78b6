"""
Font discovery and lazy font loading.

FontSearcher walks font directories once and produces a FontBook (the index
the compiler queries by family) plus one loader per face. Loaders are a closed
set chosen at index time: FileFontLoader reads a face from disk on first use,
EmbeddedFontLoader wraps bytes that are already in memory. Both load at most
once.
"""

import io
import os
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from PIL import ImageFont

from folio.contexts.world.logger import _log_warning, log_font_index

FONT_EXTENSIONS = {".ttf", ".otf", ".ttc", ".otc"}
COLLECTION_EXTENSIONS = {".ttc", ".otc"}
COLLECTION_MAGIC = b"ttcf"

# PIL needs a nominal size to open a face; it does not affect the names read
PROBE_SIZE = 12


def system_font_dirs() -> List[Path]:
    """Platform font directories searched when system fonts are included."""
    if sys.platform == "darwin":
        return [
            Path("/Library/Fonts"),
            Path("/Network/Library/Fonts"),
            Path("/System/Library/Fonts"),
            Path.home() / "Library" / "Fonts",
        ]
    if sys.platform == "win32":
        windir = Path(os.getenv("WINDIR", "C:\\Windows"))
        dirs = [windir / "Fonts"]
        local = os.getenv("LOCALAPPDATA")
        if local:
            dirs.append(Path(local) / "Microsoft" / "Windows" / "Fonts")
        return dirs
    data_home = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return [
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        data_home / "fonts",
        Path.home() / ".fonts",
    ]


@dataclass(frozen=True)
class FontInfo:
    """Names of one font face."""

    family: str
    style: str = "Regular"


@dataclass(frozen=True)
class Font:
    """A loaded face: the whole font file plus the face index inside it."""

    data: bytes
    index: int
    info: FontInfo


class FileFontLoader:
    """Loads a face from a font file on first request."""

    def __init__(self, path: Path, index: int, info: FontInfo):
        self.path = path
        self.index = index
        self.info = info
        self._lock = threading.Lock()
        self._loaded = False
        self._font: Optional[Font] = None

    def get(self) -> Optional[Font]:
        """The loaded face, or None if the file can no longer be read."""
        with self._lock:
            if not self._loaded:
                self._loaded = True
                try:
                    self._font = Font(self.path.read_bytes(), self.index, self.info)
                except OSError as e:
                    _log_warning(f"Failed to load font {self.path}#{self.index}: {e}")
        return self._font


class EmbeddedFontLoader:
    """Serves a face from bytes that are already in memory."""

    def __init__(self, data: bytes, index: int, info: FontInfo):
        self.index = index
        self.info = info
        self._font = Font(data, index, info)

    def get(self) -> Optional[Font]:
        return self._font


FontSlot = Union[FileFontLoader, EmbeddedFontLoader]


class FontBook:
    """Searchable index of the faces known to a world."""

    def __init__(self, infos: Iterable[FontInfo] = ()):
        self.infos: List[FontInfo] = list(infos)

    def __len__(self) -> int:
        return len(self.infos)

    def info(self, index: int) -> Optional[FontInfo]:
        if 0 <= index < len(self.infos):
            return self.infos[index]
        return None

    def families(self) -> List[str]:
        """Unique family names, sorted case-insensitively."""
        seen = {}
        for info in self.infos:
            seen.setdefault(info.family.lower(), info.family)
        return [seen[key] for key in sorted(seen)]

    def select_family(self, family: str) -> List[int]:
        """Indices of every face in family (case-insensitive)."""
        wanted = family.lower()
        return [i for i, info in enumerate(self.infos) if info.family.lower() == wanted]


@dataclass
class Fonts:
    """Result of a font search: the index and a loader per face, in the same order."""

    book: FontBook
    slots: List[FontSlot]


def read_faces(data: bytes, collection: bool = False) -> List[Tuple[int, FontInfo]]:
    """
    Read the family/style names of every face in font data.

    Args:
        data: Font file contents
        collection: Enumerate faces until one fails to open (TrueType/OpenType collections)

    Returns:
        (face index, FontInfo) pairs; empty when data is not a readable font
    """
    faces = []
    index = 0
    while True:
        try:
            face = ImageFont.truetype(io.BytesIO(data), size=PROBE_SIZE, index=index)
        except (OSError, ValueError):
            break
        family, style = face.getname()
        if family:
            faces.append((index, FontInfo(family, style or "Regular")))
        if not collection:
            break
        index += 1
    return faces


class FontSearcher:
    """
    Builds a Fonts index from directories, system fonts and embedded data.

    Attributes:
        include_system_fonts: Also search the platform font directories
    """

    def __init__(self, include_system_fonts: bool = True):
        self.include_system_fonts = include_system_fonts

    def search(
        self,
        font_paths: Sequence[Union[str, Path]] = (),
        embedded: Sequence[bytes] = (),
    ) -> Fonts:
        """
        Index every face found.

        Args:
            font_paths: Extra font directories; paths that are not directories are ignored
            embedded: In-memory font files

        Returns:
            Fonts with book and loaders aligned by index
        """
        dirs = [Path(p) for p in font_paths if Path(p).is_dir()]
        if self.include_system_fonts:
            dirs.extend(d for d in system_font_dirs() if d.is_dir())

        infos: List[FontInfo] = []
        slots: List[FontSlot] = []
        seen = set()

        for font_dir in dirs:
            for path in sorted(font_dir.rglob("*")):
                if path.suffix.lower() not in FONT_EXTENSIONS or not path.is_file():
                    continue
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                for index, info in self._faces_of_file(path):
                    infos.append(info)
                    slots.append(FileFontLoader(path, index, info))

        for data in embedded:
            for index, info in read_faces(data, collection=data.startswith(COLLECTION_MAGIC)):
                infos.append(info)
                slots.append(EmbeddedFontLoader(data, index, info))

        book = FontBook(infos)
        log_font_index(len(book.families()), len(slots), self.include_system_fonts)
        return Fonts(book=book, slots=slots)

    def _faces_of_file(self, path: Path) -> List[Tuple[int, FontInfo]]:
        try:
            data = path.read_bytes()
        except OSError as e:
            _log_warning(f"Skipping unreadable font {path}: {e}")
            return []
        collection = path.suffix.lower() in COLLECTION_EXTENSIONS or data.startswith(COLLECTION_MAGIC)
        return read_faces(data, collection=collection)


def font_families(font_paths: Sequence[Union[str, Path]] = (), ignore_system_fonts: bool = False) -> List[str]:
    """Family names from a throwaway font index."""
    fonts = FontSearcher(include_system_fonts=not ignore_system_fonts).search(font_paths)
    return fonts.book.families()
