import gzip
import io
import logging
import zlib
from pathlib import Path

from histdb_import.lib.errors import StreamError

# multiline commands end with a backslash
CONTINUATION = "\\"


def open_history(path):
    """Open normal or gzipped history file as UTF-8 text.

    Invalid byte sequences are replaced, a leading BOM is kept as text and
    only "\\n" terminates a line.
    """
    logging.info(f"[+] Read history file {path}")
    try:
        if Path(path).suffix == ".gz":
            raw = gzip.open(path, "rb")
        else:
            raw = open(path, "rb")
    except OSError as e:
        raise StreamError(f"Unable to open history file {path}: {e}") from e
    return io.TextIOWrapper(raw, encoding="utf-8", errors="replace", newline="\n")


class EntryReader:
    """Reassemble logical history entries from physical lines.

    A line ending with a backslash continues on the next line: the backslash
    is dropped and a newline restored in its place. An empty line is an
    entry boundary and is returned as an empty entry.
    """

    def __init__(self, stream):
        self.stream = stream

    def _read_line(self):
        try:
            line = self.stream.readline()
        except (OSError, EOFError, zlib.error) as e:
            raise StreamError(f"Unable to read history: {e}") from e
        if not line:
            return None
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        return line

    def read_entry(self):
        """
        Returns (entry, more). more is False once the stream is exhausted;
        entry may still hold a final accumulation that must be processed.
        """
        entry = ""
        while True:
            line = self._read_line()
            if line is None:
                return entry, False
            entry += line
            if not entry:
                return entry, True
            if entry.endswith(CONTINUATION):
                entry = entry[:-1] + "\n"
                continue
            return entry, True

    def __iter__(self):
        """Yield non-empty logical entries in file order"""
        while True:
            entry, more = self.read_entry()
            if entry:
                yield entry
            if not more:
                return
