"""
World Context

Responsibilities:
- Identifies files (main pseudo-file, project files, package files)
- Caches file sources and bytes across compiles with fingerprint revalidation
- Shadows the disk with in-memory virtual files
- Resolves packages to local directories
- Indexes fonts and loads them lazily
- Provides a per-compile snapshot of the current date

Owns: Everything the compiler may pull while compiling
Never: Runs the compiler or stores compiled documents
"""

from folio.contexts.world.clock import Clock
from folio.contexts.world.errors import (
    AccessDenied,
    FileError,
    FileNotFound,
    InvalidUtf8,
    IsDirectory,
    OtherIoError,
    PackageError,
)
from folio.contexts.world.file_cache import FileCache
from folio.contexts.world.fonts import FontBook, Fonts, FontSearcher, font_families
from folio.contexts.world.identity import MAIN_ID, FileId, PackageSpec
from folio.contexts.world.overlay import VirtualFileOverlay
from folio.contexts.world.packages import PackageResolver, PackageStorage
from folio.contexts.world.source import Source
from folio.contexts.world.world import CompilationWorld, Library

__all__ = [
    "AccessDenied",
    "Clock",
    "CompilationWorld",
    "FileCache",
    "FileError",
    "FileId",
    "FileNotFound",
    "FontBook",
    "FontSearcher",
    "Fonts",
    "InvalidUtf8",
    "IsDirectory",
    "Library",
    "MAIN_ID",
    "OtherIoError",
    "PackageError",
    "PackageResolver",
    "PackageSpec",
    "PackageStorage",
    "Source",
    "VirtualFileOverlay",
    "font_families",
]
