"""
File identities inside a compilation world.

A FileId is either the distinguished main pseudo-file (bound to in-memory
markup) or a project/package file addressed by a virtual, root-relative path.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

PACKAGE_SPEC_PATTERN = re.compile(
    r"^@(?P<namespace>[A-Za-z0-9_-]+)/(?P<name>[A-Za-z0-9_-]+):(?P<version>\d+\.\d+\.\d+)$"
)


@dataclass(frozen=True)
class PackageSpec:
    """
    Fully qualified package reference, written "@namespace/name:version".

    Attributes:
        namespace: Registry namespace (e.g. "preview")
        name: Package name
        version: Semantic version string "major.minor.patch"
    """

    namespace: str
    name: str
    version: str

    @classmethod
    def parse(cls, text: str) -> "PackageSpec":
        """
        Parse "@namespace/name:version".

        Raises:
            ValueError: If text is not a valid package specification
        """
        match = PACKAGE_SPEC_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid package specification: {text!r}")
        return cls(**match.groupdict())

    def __str__(self) -> str:
        return f"@{self.namespace}/{self.name}:{self.version}"


def normalize_vpath(path: str) -> str:
    """
    Normalize a virtual path to its rootless POSIX form.

    Leading slashes, "." components and empty components are dropped; ".."
    removes the previous component and never climbs above the root.

    Examples:
        normalize_vpath("/data/../data.typ")  # "data.typ"
        normalize_vpath("a\\b/./c.typ")        # "a/b/c.typ"
    """
    parts = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


@dataclass(frozen=True)
class FileId:
    """
    Identity of a file the compiler may request.

    Attributes:
        vpath: Normalized rootless virtual path
        package: Owning package, None for project files
        fake: True only for the in-memory main pseudo-file
    """

    vpath: str
    package: Optional[PackageSpec] = None
    fake: bool = False

    @classmethod
    def new(cls, path: str, package: Optional[PackageSpec] = None) -> "FileId":
        """Create a project (or package) file identity from any path spelling."""
        return cls(vpath=normalize_vpath(path), package=package)

    @classmethod
    def new_fake(cls, path: str) -> "FileId":
        """Create a pseudo-file identity that never resolves to disk."""
        return cls(vpath=normalize_vpath(path), fake=True)

    def join(self, path: str) -> "FileId":
        """Resolve path relative to this file, staying inside the same package."""
        if path.startswith("/"):
            return FileId.new(path, self.package)
        parent = self.vpath.rpartition("/")[0]
        return FileId.new(f"{parent}/{path}" if parent else path, self.package)

    def resolve(self, root: Path) -> Optional[Path]:
        """Physical location of this file below root, or None for pseudo-files."""
        if self.fake:
            return None
        return root.joinpath(*self.vpath.split("/")) if self.vpath else root

    def __str__(self) -> str:
        prefix = f"{self.package}/" if self.package else ""
        return f"{prefix}{self.vpath}"


MAIN_ID = FileId.new_fake("MARKUP.typ")
