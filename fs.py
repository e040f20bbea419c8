import warnings
import weakref
from typing import Dict, Optional

import attr

from errors import InvalidArgument, NoOpTruncate, OutOfBounds, TruncatedRead

ROOT_NAME = "root"
LINE_BREAKS = ("\n", "\r")


@attr.s(auto_attribs=True)
class ContentBuffer:
    """Characters stored in one file, zero-indexed"""
    data: str = ""

    def __len__(self) -> int:
        return len(self.data)

    def __str__(self) -> str:
        return self.data

    @staticmethod
    def _check_text(text: str):
        # snapshot records are one per line
        if any(ch in text for ch in LINE_BREAKS):
            raise InvalidArgument("Content cannot contain line breaks")

    def append(self, text: str):
        self._check_text(text)
        self.data += text

    def write_at(self, pos: int, text: str):
        """Overwrite starting at pos; past the end the gap is padded with spaces"""
        if pos < 0:
            raise OutOfBounds("Write position cannot be negative")
        self._check_text(text)
        size = len(self.data)
        if pos <= size:
            self.data = self.data[:pos] + text + self.data[pos + len(text):]
        else:
            self.data += " " * (pos - size) + text

    def read(self) -> str:
        return self.data

    def read_from(self, start: int, size: int) -> str:
        if size < 0:
            raise InvalidArgument("Size cannot be negative")
        length = len(self.data)
        if start < 0 or start >= length:
            raise OutOfBounds("Start position out of bounds")
        if start + size > length:
            warnings.warn(
                "Requested size exceeds file content. Truncating read.",
                TruncatedRead,
                stacklevel=2,
            )
            size = length - start
        return self.data[start:start + size]

    def move_within(self, start: int, size: int, target: int):
        """Cut size characters at start and insert them at target.

        Both ranges are validated against the original length, but the
        insertion happens after the cut, so a target at or past the cut run
        lands size characters further right than it reads. A target past the
        end of the shortened buffer inserts at its end.
        """
        length = len(self.data)
        if start < 0 or size < 0 or start + size > length:
            raise OutOfBounds("Start position or size out of bounds")
        if target < 0 or target > length:
            raise OutOfBounds("Target position out of bounds")
        moving = self.data[start:start + size]
        rest = self.data[:start] + self.data[start + size:]
        self.data = rest[:target] + moving + rest[target:]

    def truncate(self, max_size: int):
        if max_size < 0:
            raise InvalidArgument("Size cannot be negative")
        if max_size >= len(self.data):
            warnings.warn(
                "Size exceeds current content. No truncation performed.",
                NoOpTruncate,
                stacklevel=2,
            )
            return
        self.data = self.data[:max_size]


@attr.s(auto_attribs=True)
class FileEntry:
    name: str
    content: ContentBuffer = attr.ib(factory=ContentBuffer)
    is_open: bool = False  # advisory only, never checked before mutation


@attr.s(auto_attribs=True)
class Directory:
    name: str
    files: Dict[str, FileEntry] = attr.ib(factory=dict)
    subdirectories: Dict[str, "Directory"] = attr.ib(factory=dict)
    # weak back-reference: the parent owns the child, not the other way round
    _parent: Optional["weakref.ReferenceType[Directory]"] = attr.ib(
        default=None, repr=False, eq=False
    )

    @property
    def parent(self) -> Optional["Directory"]:
        if self._parent is None:
            return None
        return self._parent()

    def add_subdirectory(self, name: str) -> "Directory":
        child = Directory(name, parent=weakref.ref(self))
        self.subdirectories[name] = child
        return child

    def add_file(self, name: str, content: str = "") -> FileEntry:
        entry = FileEntry(name, ContentBuffer(content))
        self.files[name] = entry
        return entry

    def is_empty(self) -> bool:
        return not self.files and not self.subdirectories
