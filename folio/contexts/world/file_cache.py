"""
Fingerprinted per-file cache shared across the compiles of one world.

Every file identity owns a FileSlot with two CacheCells: one for the parsed
Source and one for the raw bytes. A cell remembers its last result (value or
FileError), the fingerprint of the bytes that produced it, and the generation
in which it was last accessed.

Revalidation policy:
- Within one generation, the first access re-reads the file and compares
  fingerprints; later accesses return the cached result without I/O.
- Unchanged fingerprint: the stored result is returned and the transform
  (decoding/parsing) is skipped.
- Changed fingerprint: the previous successful value is handed to the
  transform so it can be edited instead of rebuilt.

FileCache.reset() starts a new generation in O(1) by bumping a counter; cached
data is never discarded.
"""

import hashlib
import threading
from typing import Callable, Dict, Generic, Optional, TypeVar, Union

from folio.contexts.world.errors import FileError, InvalidUtf8
from folio.contexts.world.identity import FileId
from folio.contexts.world.logger import _log_trace, log_cache_reset
from folio.contexts.world.source import Source

T = TypeVar("T")

Loader = Callable[[], bytes]

UTF8_BOM = b"\xef\xbb\xbf"


def fingerprint(loaded: Union[bytes, FileError]) -> str:
    """Content hash of a read result: the raw bytes, or the error that replaced them."""
    digest = hashlib.blake2b(digest_size=16)
    if isinstance(loaded, FileError):
        digest.update(b"error:")
        digest.update(f"{type(loaded).__name__}:{loaded}".encode("utf-8"))
    else:
        digest.update(b"bytes:")
        digest.update(loaded)
    return digest.hexdigest()


def decode_utf8(data: bytes, id: Optional[FileId] = None) -> str:
    """
    Decode source bytes, dropping a leading byte-order mark.

    Raises:
        InvalidUtf8: If the remaining bytes are not valid UTF-8
    """
    if data.startswith(UTF8_BOM):
        data = data[len(UTF8_BOM) :]
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        where = f" ({id})" if id is not None else ""
        raise InvalidUtf8(f"file is not valid utf-8{where}") from e


class CacheCell(Generic[T]):
    """One cached transform of a file's bytes, keyed by (generation, fingerprint)."""

    def __init__(self):
        self._value: Optional[T] = None
        self._error: Optional[FileError] = None
        self._filled = False
        self._fingerprint: Optional[str] = None
        self._generation: Optional[int] = None

    @property
    def filled(self) -> bool:
        return self._filled

    @property
    def fingerprint(self) -> Optional[str]:
        return self._fingerprint

    def get_or_init(
        self,
        generation: int,
        load: Loader,
        transform: Callable[[bytes, Optional[T]], T],
    ) -> T:
        """
        Return the cached result for this generation, revalidating on first access.

        Args:
            generation: Current cache generation
            load: Reads the raw bytes; raises FileError on failure
            transform: Builds the value from new bytes and the previous
                successful value (None when there is none)

        Returns:
            The transformed value

        Raises:
            FileError: The cached or freshly produced failure
        """
        if self._generation == generation and self._filled:
            return self._cached()
        self._generation = generation

        try:
            loaded: Union[bytes, FileError] = load()
        except FileError as e:
            loaded = e

        current = fingerprint(loaded)
        if current == self._fingerprint and self._filled:
            _log_trace(f"fingerprint unchanged ({current[:8]})")
            return self._cached()
        self._fingerprint = current

        previous = self._value if self._filled and self._error is None else None
        self._value, self._error, self._filled = None, None, False

        try:
            if isinstance(loaded, FileError):
                raise loaded
            value = transform(loaded, previous)
        except FileError as e:
            self._error = e
            self._filled = True
            raise

        self._value = value
        self._filled = True
        return value

    def _cached(self) -> T:
        if self._error is not None:
            raise self._error.with_traceback(None)
        return self._value


class FileSlot:
    """Source and raw-bytes cells for a single file identity."""

    def __init__(self, id: FileId):
        self.id = id
        self.source_cell: CacheCell[Source] = CacheCell()
        self.file_cell: CacheCell[bytes] = CacheCell()

    def source(self, generation: int, load: Loader) -> Source:
        """Parsed source of this file, reusing the previous Source on change."""

        def transform(data: bytes, previous: Optional[Source]) -> Source:
            text = decode_utf8(data, self.id)
            if previous is not None:
                _log_trace(f"reparsing {self.id}")
                previous.replace(text)
                return previous
            _log_trace(f"parsing {self.id}")
            return Source(self.id, text)

        return self.source_cell.get_or_init(generation, load, transform)

    def file(self, generation: int, load: Loader) -> bytes:
        """Raw bytes of this file."""
        return self.file_cell.get_or_init(generation, load, lambda data, _previous: data)


class FileCache:
    """
    Identity -> FileSlot map guarded by one coarse lock.

    The lock is held only while a slot is located or created; loading and
    transforming happen outside it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[FileId, FileSlot] = {}
        self._generation = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def __contains__(self, id: FileId) -> bool:
        with self._lock:
            return id in self._slots

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        """Start a new generation: every slot becomes unaccessed, no data is dropped."""
        with self._lock:
            self._generation += 1
            generation, entries = self._generation, len(self._slots)
        log_cache_reset(generation, entries)

    def slot(self, id: FileId) -> FileSlot:
        """Locate or lazily create the slot for id."""
        with self._lock:
            slot = self._slots.get(id)
            if slot is None:
                slot = self._slots[id] = FileSlot(id)
            return slot

    def source(self, id: FileId, load: Loader) -> Source:
        return self.slot(id).source(self._generation, load)

    def file(self, id: FileId, load: Loader) -> bytes:
        return self.slot(id).file(self._generation, load)
