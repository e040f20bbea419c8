"""
Line-oriented text snapshot of a directory tree.

Each line is one record:

    DIR <name>                 open a directory under the current one
    FILE <name> <content>      a file; content runs to the end of the line
    ENDDIR                     close the most recently opened directory

The root itself is never written; its files and subdirectories appear at the
top level. Traversal is pre-order and uses an explicit stack in both
directions, so tree depth is not bounded by the recursion limit.
"""

import logging
import os
from typing import IO, Iterable, Iterator, List, Optional

from errors import SnapshotError
from fs import ROOT_NAME, Directory, FileEntry

DIR = "DIR"
FILE = "FILE"
ENDDIR = "ENDDIR"

logger = logging.getLogger(__name__)


def _file_record(entry: FileEntry) -> str:
    return f"{FILE} {entry.name} {entry.content.read()}"


def _children(directory: Directory) -> List[Directory]:
    # reversed so that popping yields lexical order
    return [directory.subdirectories[name] for name in sorted(directory.subdirectories, reverse=True)]


def iter_records(root: Directory) -> Iterator[str]:
    """Yield snapshot records for everything below root"""
    for name in sorted(root.files):
        yield _file_record(root.files[name])

    stack: List[Optional[Directory]] = _children(root)
    while stack:
        directory = stack.pop()
        if directory is None:
            yield ENDDIR
            continue
        yield f"{DIR} {directory.name}"
        for name in sorted(directory.files):
            yield _file_record(directory.files[name])
        stack.append(None)  # closes this directory after its children
        stack.extend(_children(directory))


def dump(root: Directory, fp: IO[str]):
    for record in iter_records(root):
        fp.write(record + "\n")


def dumps(root: Directory) -> str:
    return "".join(record + "\n" for record in iter_records(root))


def parse(lines: Iterable[str]) -> Directory:
    """Rebuild a tree from snapshot lines and return its new root"""
    root = Directory(ROOT_NAME)
    stack = [root]

    for line_no, line in enumerate(lines, 1):
        line = line.rstrip("\n")
        if not line.strip():
            continue

        tag, _, rest = line.partition(" ")
        if tag == DIR:
            name = rest.strip()
            if not name:
                raise SnapshotError("DIR record without a name", line_no)
            stack.append(stack[-1].add_subdirectory(name))
        elif tag == FILE:
            name, _, content = rest.partition(" ")
            if not name:
                raise SnapshotError("FILE record without a name", line_no)
            stack[-1].add_file(name, content)
        elif tag == ENDDIR:
            if len(stack) == 1:
                raise SnapshotError("ENDDIR without matching DIR", line_no)
            stack.pop()
        else:
            raise SnapshotError(f"Unknown record type {tag!r}", line_no)

    if len(stack) > 1:
        logger.warning("Snapshot ended with %d unclosed director%s", len(stack) - 1,
                       "y" if len(stack) == 2 else "ies")
    return root


def load(fp: IO[str]) -> Directory:
    return parse(fp)


def loads(text: str) -> Directory:
    return parse(text.split("\n"))


def save_snapshot(root: Directory, path: str):
    """Write the whole tree to path; OSError from open propagates"""
    with open(path, "w", encoding="utf-8") as f:
        dump(root, f)
    logger.info("Snapshot saved to %s", path)


def load_snapshot(path: str) -> Optional[Directory]:
    """Read a tree from path, or None if there is no snapshot yet"""
    if not os.path.exists(path):
        logger.info("No snapshot at %s", path)
        return None
    with open(path, "r", encoding="utf-8") as f:
        root = load(f)
    logger.info("Snapshot loaded from %s", path)
    return root


def mkfs(path: str):
    """Create an empty snapshot file"""
    with open(path, "w", encoding="utf-8"):
        pass
