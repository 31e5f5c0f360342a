#!/usr/bin/env python3
"""
logforge - fake log generator for common log formats
"""

import os
import sys
import gzip
import logging
import argparse
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

import log_formats

__version__ = "0.2.0"

logger = logging.getLogger(__name__)

console = Console(highlight=False, emoji=False)
err_console = Console(stderr=True, highlight=False, emoji=False)


# ══════════════════════════════════════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════════════════════════════════════

class LogForgeError(Exception):
    """Base class for everything that aborts a run."""

class ConfigError(LogForgeError):
    pass

class OpenError(LogForgeError):
    pass

class WriteError(LogForgeError):
    pass

class CloseError(LogForgeError):
    pass


# ══════════════════════════════════════════════════════════════════════════════
# Options
# ══════════════════════════════════════════════════════════════════════════════

LOG_TYPES = ("stdout", "log", "gz")


@dataclass(frozen=True)
class Options:
    format: str = "apache_common"
    output: str = "generated.log"
    type: str = "stdout"
    number: int = 1000
    bytes: int = 0
    sleep: float = 0.0
    split_by: int = 0
    overwrite: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.format not in log_formats.FORMATS:
            raise ConfigError(f"{self.format} is not a valid format")
        if self.type not in LOG_TYPES:
            raise ConfigError(f"{self.type} is not a valid log type")
        for name, value in (("lines", self.number), ("bytes", self.bytes),
                            ("sleep", self.sleep), ("split-by", self.split_by)):
            if value < 0:
                raise ConfigError(f"{name} can not be negative")

    @property
    def by_bytes(self) -> bool:
        return self.bytes > 0


# ══════════════════════════════════════════════════════════════════════════════
# Writers
# ══════════════════════════════════════════════════════════════════════════════

class Writer:
    """
    Exclusive owner of one output sink. Subclasses provide _write and
    _close; this class turns OS failures into WriteError / CloseError and
    refuses any use after close.
    """

    def __init__(self, name: str):
        self.name = name
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise WriteError(f"{self.name}: write to a closed writer")
        try:
            return self._write(data)
        except OSError as e:
            raise WriteError(f"{self.name}: {e.strerror or e}") from e

    def close(self):
        if self.closed:
            raise CloseError(f"{self.name}: writer is already closed")
        self.closed = True
        try:
            self._close()
        except OSError as e:
            raise CloseError(f"{self.name}: {e.strerror or e}") from e

    def _write(self, data: bytes) -> int:
        raise NotImplementedError

    def _close(self):
        raise NotImplementedError


class StreamWriter(Writer):
    """Console output. Closing only flushes; the stream itself stays open."""

    def __init__(self, stream=None):
        super().__init__("<stdout>")
        self._stream = stream if stream is not None else sys.stdout.buffer

    def _write(self, data: bytes) -> int:
        self._stream.write(data)
        return len(data)

    def _close(self):
        self._stream.flush()


def _check_target(path: str, overwrite: bool):
    if overwrite:
        return
    try:
        size = os.path.getsize(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise OpenError(f"{path}: {e.strerror or e}") from e
    if size > 0:
        raise OpenError(f"{path} already exists. Use --overwrite to replace it")


class FileWriter(Writer):
    """Plain log file, written in append mode."""

    def __init__(self, path: str, overwrite: bool = False):
        super().__init__(path)
        _check_target(path, overwrite)
        try:
            # overwrite truncates first; appends from then on either way
            self._file = open(path, "wb" if overwrite else "ab")
        except OSError as e:
            raise OpenError(f"{path}: {e.strerror or e}") from e

    def _write(self, data: bytes) -> int:
        return self._file.write(data)

    def _close(self):
        self._file.close()


class GzipWriter(Writer):
    """gzip-compressed log file. The path is always created fresh."""

    def __init__(self, path: str, overwrite: bool = False):
        super().__init__(path)
        _check_target(path, overwrite)
        try:
            self._file = open(path, "wb")
        except OSError as e:
            raise OpenError(f"{path}: {e.strerror or e}") from e
        try:
            self._gzip = gzip.GzipFile(fileobj=self._file, mode="wb")
        except OSError as e:
            self._file.close()
            raise OpenError(f"{path}: {e.strerror or e}") from e

    def _write(self, data: bytes) -> int:
        return self._gzip.write(data)

    def _close(self):
        # compressor first, so the trailer reaches the file before it closes
        try:
            self._gzip.close()
        finally:
            self._file.close()


WRITERS = {
    "log": FileWriter,
    "gz": GzipWriter,
}


def open_writer(kind: str, path: str, overwrite: bool = False, stream=None) -> Writer:
    if kind == "stdout":
        return StreamWriter(stream)
    if kind not in WRITERS:
        raise ConfigError(f"{kind} is not a valid log type")
    return WRITERS[kind](path, overwrite)


# ══════════════════════════════════════════════════════════════════════════════
# Split file naming
# ══════════════════════════════════════════════════════════════════════════════

def split_file_name(path: str, index: int) -> str:
    """
    generated.log, 2  ->  generated2.log
    archive.tar.gz, 3 ->  archive.tar3.gz
    noext, 5          ->  noext5
    """
    base = os.path.basename(path)
    dot = base.rfind(".")
    ext = base[dot:] if dot >= 0 else ""
    return path[:len(path) - len(ext)] + str(index) + ext


# ══════════════════════════════════════════════════════════════════════════════
# Generation
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class Stats:
    lines: int = 0
    bytes: int = 0
    files: list = field(default_factory=list)


def announce_file(name: str):
    console.print(f"{name} is created.", markup=False, soft_wrap=True)


def _close_quietly(writer: Writer):
    if writer.closed:
        return
    try:
        writer.close()
    except LogForgeError as e:
        logger.warning("could not close %s after failure: %s", writer.name, e)


def generate(options: Options,
             make_line: Optional[Callable[[str, timedelta], str]] = None,
             announce: Optional[Callable[[str], None]] = None,
             stream=None) -> Stats:
    """
    Write log lines for ``options`` until the line or byte target is met,
    rolling over to a new file whenever the running count passes
    split_by * split_count. Returns what was written.
    """
    make_line = make_line or log_formats.new_log
    announce = announce or announce_file

    to_file = options.type != "stdout"
    splitting = to_file and options.split_by > 0
    step = timedelta(milliseconds=int(options.sleep * 1000))

    stats = Stats()
    delta = timedelta(0)
    split_count = 1
    name = options.output

    logger.debug("generating %s as %s into %s", options.format, options.type,
                 name if to_file else "stdout")
    writer = open_writer(options.type, name, options.overwrite, stream)
    try:
        while (stats.bytes < options.bytes) if options.by_bytes else (stats.lines < options.number):
            data = make_line(options.format, delta).encode("utf-8")
            writer.write(data + b"\n")
            stats.lines += 1
            stats.bytes += len(data)

            written = stats.bytes if options.by_bytes else stats.lines
            if splitting and written > options.split_by * split_count:
                writer.close()
                stats.files.append(name)
                announce(name)

                name = split_file_name(options.output, split_count)
                logger.debug("rolling over to %s after %d %s", name, written,
                             "bytes" if options.by_bytes else "lines")
                writer = open_writer(options.type, name, options.overwrite)
                split_count += 1

            delta += step

        writer.close()
        if to_file:
            stats.files.append(name)
            announce(name)
    except BaseException:
        _close_quietly(writer)
        raise

    return stats


# ══════════════════════════════════════════════════════════════════════════════
# Entry point
# ══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    formats = "|".join(f'"{f}"' for f in log_formats.FORMATS)
    parser = argparse.ArgumentParser(
        prog="logforge",
        description="logforge is a fake log generator for common log formats",
    )
    defaults = Options()
    parser.add_argument("-f", "--format", default=defaults.format,
                        help=f"Choose log format. ({formats}) (default %(default)s)")
    parser.add_argument("-o", "--output", default=defaults.output,
                        help="Output filename. Path-like is allowed. (default %(default)s)")
    parser.add_argument("-t", "--type", default=defaults.type,
                        help='Log output type. ("stdout"|"log"|"gz") (default %(default)s)')
    parser.add_argument("-n", "--number", type=int, default=defaults.number,
                        help="Number of lines to generate. (default %(default)s)")
    parser.add_argument("-b", "--bytes", type=int, default=defaults.bytes,
                        help='Size of logs to generate (in bytes). "number" is ignored when "bytes" is set.')
    parser.add_argument("-s", "--sleep", type=float, default=defaults.sleep,
                        help="Interval between lines (in seconds). Only shifts timestamps, never actually sleeps.")
    parser.add_argument("-p", "--split-by", type=int, default=defaults.split_by,
                        help="Maximum number of lines, or size in bytes with --bytes, of each log file.")
    parser.add_argument("-w", "--overwrite", action="store_true",
                        help="[Warning] Overwrite the existing log files.")
    parser.add_argument("--log-level", type=str.upper, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Diagnostic logging level on stderr. (default %(default)s)")
    parser.add_argument("-v", "--version", action="version",
                        version=f"%(prog)s version {__version__}")
    return parser


def build_options(args: argparse.Namespace) -> Options:
    return Options(
        format=args.format,
        output=args.output,
        type=args.type,
        number=args.number,
        bytes=args.bytes,
        sleep=args.sleep,
        split_by=args.split_by,
        overwrite=args.overwrite,
    )


def parse_options(argv=None) -> Options:
    return build_options(build_parser().parse_args(argv))


_log_handler = RichHandler(console=err_console, show_path=False)
_log_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))


def setup_logging(level: str = "WARNING"):
    # safe to call again: the handler is installed once, the level always applies
    root = logging.getLogger()
    if _log_handler not in root.handlers:
        root.addHandler(_log_handler)
    root.setLevel(level)


def _fail(message: str):
    err_console.print(f"[red]logforge: {escape(message)}[/red]", soft_wrap=True)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        options = build_options(args)
    except ConfigError as e:
        _fail(str(e))
        return 2
    try:
        generate(options)
    except LogForgeError as e:
        _fail(str(e))
        return 1
    except KeyboardInterrupt:
        _fail("interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
