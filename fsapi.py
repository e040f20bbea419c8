import logging
import warnings
from typing import Iterator, List, Optional

import attr

from errors import AlreadyAtRoot, AlreadyExists, AlreadyOpen, InvalidArgument, NotFound
from fs import ROOT_NAME, Directory, FileEntry
from snapshot import load_snapshot, save_snapshot

PARENT_DIR = ".."
PATH_SEPARATOR = "/"
ROOT_DISPLAY = "/"
RESERVED_DIR_NAMES = (ROOT_NAME, PARENT_DIR)

logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True)
class Listing:
    """Contents of one directory, each group in lexical order"""

    directories: List[str] = attr.ib(factory=list)
    files: List[str] = attr.ib(factory=list)

    @property
    def empty(self) -> bool:
        return not self.directories and not self.files


@attr.s(auto_attribs=True)
class MapEntry:
    depth: int
    name: str
    is_dir: bool


def _check_name(name: str, kind: str):
    if not name:
        raise InvalidArgument(f"{kind} name cannot be empty")
    if any(ch.isspace() for ch in name):
        raise InvalidArgument(f"{kind} name cannot contain whitespace")


class FileSystem:
    """In-memory directory tree with a current working directory"""

    def __init__(self, snapshot_path: Optional[str] = None):
        self.snapshot_path = snapshot_path
        self.root = Directory(ROOT_NAME)
        self.current = self.root
        self.path: List[str] = []
        self.loaded = False

        if snapshot_path is not None:
            self._load_filesystem()

    def _load_filesystem(self):
        """Replace the tree with the snapshot contents, if any"""
        self.loaded = self.load(self.snapshot_path)

    def _get_file(self, name: str) -> FileEntry:
        entry = self.current.files.get(name)
        if entry is None:
            raise NotFound(f"File not found: {name}")
        return entry

    # Navigation

    def mkdir(self, name: str) -> Directory:
        """Create a subdirectory of the current directory"""
        _check_name(name, "Directory")
        if name in RESERVED_DIR_NAMES:
            raise InvalidArgument(f"Cannot create a directory named '{name}'")
        if name in self.current.subdirectories:
            raise AlreadyExists(f"Directory already exists: {name}")
        logger.debug("mkdir %s in %s", name, self.display_path())
        return self.current.add_subdirectory(name)

    def chdir(self, name: str):
        if name == PARENT_DIR:
            parent = self.current.parent
            if parent is None:
                warnings.warn("Already at root directory.", AlreadyAtRoot, stacklevel=2)
                return
            self.current = parent
            self.path.pop()
            return

        target = self.current.subdirectories.get(name)
        if target is None:
            raise NotFound(f"Directory not found: {name}")
        self.current = target
        self.path.append(name)

    def readdir(self) -> Listing:
        return Listing(
            directories=sorted(self.current.subdirectories),
            files=sorted(self.current.files),
        )

    def display_path(self) -> str:
        if not self.path:
            return ROOT_DISPLAY
        return PATH_SEPARATOR + PATH_SEPARATOR.join(self.path)

    def walk(self) -> Iterator[MapEntry]:
        """Whole tree from the root: each subdirectory followed by its contents, then files"""
        stack = [(self.root, iter(sorted(self.root.subdirectories)), 0)]
        while stack:
            directory, names, depth = stack[-1]
            name = next(names, None)
            if name is not None:
                yield MapEntry(depth, name, True)
                child = directory.subdirectories[name]
                stack.append((child, iter(sorted(child.subdirectories)), depth + 1))
                continue
            for file_name in sorted(directory.files):
                yield MapEntry(depth, file_name, False)
            stack.pop()

    # File lifecycle

    def create_file(self, name: str) -> FileEntry:
        _check_name(name, "File")
        if name in self.current.files:
            raise AlreadyExists(f"File already exists: {name}")
        logger.debug("create %s in %s", name, self.display_path())
        return self.current.add_file(name)

    def delete_file(self, name: str):
        """Remove a file, open or not"""
        self._get_file(name)
        del self.current.files[name]
        logger.debug("delete %s in %s", name, self.display_path())

    def move_file(self, source: str, target: str):
        """Rename source to target, replacing any file already called target"""
        entry = self._get_file(source)
        _check_name(target, "File")
        if source == target:
            return
        del self.current.files[source]
        entry.name = target
        self.current.files[target] = entry
        logger.debug("move %s -> %s in %s", source, target, self.display_path())

    def open_file(self, name: str) -> FileEntry:
        """Mark a file open and return it; reopening warns but still succeeds"""
        entry = self._get_file(name)
        if entry.is_open:
            warnings.warn(f"File is already open: {name}", AlreadyOpen, stacklevel=2)
        else:
            entry.is_open = True
        return entry

    def close_file(self, name: str):
        self._get_file(name).is_open = False

    # Persistence

    def _snapshot_target(self, path: Optional[str]) -> str:
        target = path or self.snapshot_path
        if not target:
            raise InvalidArgument("No snapshot path configured")
        return target

    def save(self, path: Optional[str] = None):
        save_snapshot(self.root, self._snapshot_target(path))

    def load(self, path: Optional[str] = None) -> bool:
        """Replace the tree from a snapshot; False if none exists"""
        root = load_snapshot(self._snapshot_target(path))
        if root is None:
            return False
        self.root = root
        self.current = root
        self.path = []
        return True


# Global filesystem instance
_fs_instance = None


def init_filesystem(snapshot_path: Optional[str] = None) -> FileSystem:
    """Initialize filesystem"""
    global _fs_instance
    _fs_instance = FileSystem(snapshot_path)
    return _fs_instance


def get_filesystem() -> FileSystem:
    """Get current filesystem instance"""
    if _fs_instance is None:
        raise RuntimeError("Filesystem not initialized")
    return _fs_instance


# Convenience functions that mirror the API
def mkdir(name: str) -> Directory:
    return get_filesystem().mkdir(name)


def chdir(name: str):
    return get_filesystem().chdir(name)


def readdir() -> Listing:
    return get_filesystem().readdir()


def display_path() -> str:
    return get_filesystem().display_path()


def walk() -> Iterator[MapEntry]:
    return get_filesystem().walk()


def create_file(name: str) -> FileEntry:
    return get_filesystem().create_file(name)


def delete_file(name: str):
    return get_filesystem().delete_file(name)


def move_file(source: str, target: str):
    return get_filesystem().move_file(source, target)


def open_file(name: str) -> FileEntry:
    return get_filesystem().open_file(name)


def close_file(name: str):
    return get_filesystem().close_file(name)


def save(path: Optional[str] = None):
    return get_filesystem().save(path)


def load(path: Optional[str] = None) -> bool:
    return get_filesystem().load(path)
