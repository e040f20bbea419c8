import logging
import os
import re
import sys
import warnings
from typing import List, Optional

from rich import print
from rich.logging import RichHandler
from rich.markup import escape

from errors import FSError, OutOfBounds
from fsapi import FileSystem, get_filesystem, init_filesystem
from suggest import suggest_command

DEFAULT_SNAPSHOT = "sample.dat"
LOG_LEVEL_ENV = "MEMFS_LOG_LEVEL"
OPERAND_RE = re.compile(r"\s*\S+")

commands = []


def command(name, usage, description):
    def decorator(func):
        commands.append({'name': name, 'usage': usage, 'func': func, 'description': description})
        return func
    return decorator


def find_command(name):
    return next((c for c in commands if c['name'] == name), None)


def format_help(index, cmd):
    return f"{index:02d}. {(cmd['name'] + ' ' + cmd['usage']).strip():<48} - {cmd['description']}"


def missing_operand(name):
    cmd = find_command(name)
    print(f"{name}: missing operand (usage: {escape((name + ' ' + cmd['usage']).strip())})")


def text_operand(raw, skip):
    """Text after `skip` operands; only the single separating space is dropped"""
    rest = raw
    for _ in range(skip):
        match = OPERAND_RE.match(rest)
        if match is None:
            return ""
        rest = rest[match.end():]
    return rest[1:] if rest[:1].isspace() else rest


def parse_int(name, value, what):
    try:
        return int(value)
    except ValueError:
        print(f"{name}: invalid {what}: {escape(value)}")
        return None


def configure_logging():
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def shutdown(fs: FileSystem):
    """Persist the tree; a failed save is reported but does not keep the shell alive"""
    try:
        fs.save()
    except OSError as e:
        print(f"[bold red]Failed to save: {escape(str(e))}[/bold red]")
        return
    print("File system saved. Exiting...")


def execute(line: str) -> bool:
    """Run one command line; False once the shell should stop"""
    # text operands run to the end of the line, trailing spaces included
    line = line.rstrip("\r\n").lstrip()
    if not line.strip():
        return True

    command_name = line.split(None, 1)[0]
    raw = line[len(command_name):]
    command_name = command_name.lower()
    if command_name == "quit":
        command_name = "exit"
    args = raw.split()

    cmd_entry = find_command(command_name)
    if cmd_entry is None:
        suggestion = suggest_command(command_name, [c['name'] for c in commands])
        if suggestion is None:
            print("Unknown command. No similar command found.")
        else:
            print(f"Did you mean: '{suggestion}'?")
        return True

    stop = False
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            stop = bool(cmd_entry['func'](args, raw))
        except FSError as e:
            print(f"[red]{command_name}: {escape(str(e))}[/red]")
    for warning in caught:
        print(f"[yellow]Warning: {escape(str(warning.message))}[/yellow]")
    return not stop


def main(argv: Optional[List[str]] = None):
    argv = sys.argv[1:] if argv is None else argv
    snapshot_path = argv[0] if argv else DEFAULT_SNAPSHOT
    configure_logging()

    try:
        fs = init_filesystem(snapshot_path)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error loading filesystem: {escape(str(e))}")
        return 1

    if fs.loaded:
        print(f"Filesystem loaded from {escape(snapshot_path)}")
    else:
        print("No save file found. Starting new filesystem.")
    handle_help([], "")

    while True:
        try:
            prompt = f"[bold cyan]{escape(fs.display_path())}[/bold cyan][bold white]>[/bold white] "
            print(prompt, end="")
            line = input()
            if not execute(line):
                break
        except (EOFError, KeyboardInterrupt):
            print()
            shutdown(fs)
            break
        except Exception as e:
            print(f"Error: {escape(str(e))}")
    return 0


@command('create', '<filename>', 'Create a new file in current directory')
def handle_create(args, raw):
    if not args:
        missing_operand('create')
        return
    get_filesystem().create_file(args[0])
    print(f"File created: {escape(args[0])}")


@command('delete', '<filename>', 'Delete a file from current directory')
def handle_delete(args, raw):
    if not args:
        missing_operand('delete')
        return
    get_filesystem().delete_file(args[0])
    print(f"File deleted: {escape(args[0])}")


@command('mkdir', '<dirname>', 'Create a new directory')
def handle_mkdir(args, raw):
    if not args:
        missing_operand('mkdir')
        return
    get_filesystem().mkdir(args[0])
    print(f"Directory created: {escape(args[0])}")


@command('chdir', '<dirname>', "Change to specified directory (use '..' to go up)")
def handle_chdir(args, raw):
    if not args:
        missing_operand('chdir')
        return
    get_filesystem().chdir(args[0])


@command('ls', '', 'List files and directories in the current directory')
def handle_ls(args, raw):
    fs = get_filesystem()
    listing = fs.readdir()
    if listing.empty:
        print("Directory is empty.")
        return
    print(f"Contents of directory '{escape(fs.current.name)}':")
    for name in listing.directories:
        print(f"  [bold blue]{escape(name)}/[/bold blue]")
    for name in listing.files:
        print(f"  {escape(name)}")


@command('move', '<source> <target>', 'Rename/move a file')
def handle_move(args, raw):
    if len(args) < 2:
        missing_operand('move')
        return
    get_filesystem().move_file(args[0], args[1])
    print(f"Moved file: {escape(args[0])} -> {escape(args[1])}")


@command('open', '<filename>', 'Open a file')
def handle_open(args, raw):
    if not args:
        missing_operand('open')
        return
    get_filesystem().open_file(args[0])


@command('close', '<filename>', 'Close an opened file')
def handle_close(args, raw):
    if not args:
        missing_operand('close')
        return
    get_filesystem().close_file(args[0])
    print("File closed.")


@command('write', '<filename> <text>', 'Write text at the end of file')
def handle_write(args, raw):
    if not args:
        missing_operand('write')
        return
    entry = get_filesystem().open_file(args[0])
    entry.content.append(text_operand(raw, 1))


@command('write_at', '<filename> <pos> <text>', 'Write text at specific position')
def handle_write_at(args, raw):
    if len(args) < 2:
        missing_operand('write_at')
        return
    pos = parse_int('write_at', args[1], "position")
    if pos is None:
        return
    if pos < 0:
        print("write_at: position cannot be negative")
        return
    entry = get_filesystem().open_file(args[0])
    entry.content.write_at(pos, text_operand(raw, 2))


@command('read', '<filename>', 'Read entire file content')
def handle_read(args, raw):
    if not args:
        missing_operand('read')
        return
    entry = get_filesystem().open_file(args[0])
    print(escape(entry.content.read()))


@command('read_from', '<filename> <start> <size>', 'Read part of file')
def handle_read_from(args, raw):
    if len(args) < 3:
        missing_operand('read_from')
        return
    start = parse_int('read_from', args[1], "start")
    size = parse_int('read_from', args[2], "size")
    if start is None or size is None:
        return
    entry = get_filesystem().open_file(args[0])
    try:
        data = entry.content.read_from(start, size)
    except OutOfBounds as e:
        print(f"[red]read_from: {escape(str(e))}[/red]")
        data = ""
    print(escape(data))


@command('move_within', '<filename> <start> <size> <target>', 'Move internal file data')
def handle_move_within(args, raw):
    if len(args) < 4:
        missing_operand('move_within')
        return
    start = parse_int('move_within', args[1], "start")
    size = parse_int('move_within', args[2], "size")
    target = parse_int('move_within', args[3], "target")
    if start is None or size is None or target is None:
        return
    entry = get_filesystem().open_file(args[0])
    entry.content.move_within(start, size, target)


@command('truncate', '<filename> <size>', 'Cut file size to specified length')
def handle_truncate(args, raw):
    if len(args) < 2:
        missing_operand('truncate')
        return
    size = parse_int('truncate', args[1], "size")
    if size is None:
        return
    entry = get_filesystem().open_file(args[0])
    entry.content.truncate(size)


@command('memory_map', '', 'Show the directory and file tree')
def handle_memory_map(args, raw):
    fs = get_filesystem()
    if fs.root.is_empty():
        print("Filesystem is empty.")
        return
    for entry in fs.walk():
        indent = "  " * entry.depth
        if entry.is_dir:
            print(f"{indent}[bold blue]{escape(entry.name)}/[/bold blue]")
        else:
            print(f"{indent}{escape(entry.name)}")


@command('help', '[command]', 'Show available commands')
def handle_help(args, raw):
    if args:
        for index, cmd in enumerate(commands, 1):
            if cmd['name'] == args[0]:
                print(escape(format_help(index, cmd)))
                return
        print("Unknown command. Use 'help' to see the list of available commands.")
        return
    print("Available commands:")
    for index, cmd in enumerate(commands, 1):
        print(escape(format_help(index, cmd)))


@command('exit', '', 'Save and exit the program')
def handle_exit(args, raw):
    shutdown(get_filesystem())
    return True


if __name__ == "__main__":
    sys.exit(main())
