"""In-memory files that shadow the project directory."""

from typing import Dict, Iterator, Optional, Union

from folio.contexts.world.identity import FileId, normalize_vpath


class VirtualFileOverlay:
    """
    Path -> bytes map consulted before the file cache and the disk.

    Paths are normalized like virtual paths, so "data.typ", "/data.typ" and
    "./data.typ" name the same entry. Only project files (no package) are
    shadowed.
    """

    def __init__(self):
        self._files: Dict[str, bytearray] = {}

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: str) -> bool:
        return normalize_vpath(path) in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._files))

    def set(self, path: str, content: Union[str, bytes]) -> None:
        """Create or fully replace a virtual file."""
        self._files[normalize_vpath(path)] = bytearray(_as_bytes(content))

    def append(self, path: str, chunk: Union[str, bytes]) -> None:
        """Append to a virtual file, creating it when absent."""
        self._files.setdefault(normalize_vpath(path), bytearray()).extend(_as_bytes(chunk))

    def clear(self, path: str) -> bool:
        """Remove a virtual file. Returns True if it existed."""
        return self._files.pop(normalize_vpath(path), None) is not None

    def get(self, path: str) -> Optional[bytes]:
        content = self._files.get(normalize_vpath(path))
        return bytes(content) if content is not None else None

    def lookup(self, id: FileId) -> Optional[bytes]:
        """Content shadowing id, or None when the file is not virtual."""
        if id.fake or id.package is not None:
            return None
        return self.get(id.vpath)


def _as_bytes(content: Union[str, bytes]) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else bytes(content)
