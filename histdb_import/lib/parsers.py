import logging
from dataclasses import dataclass

from histdb_import.lib.errors import FormatError
from histdb_import.lib.reader import EntryReader
from histdb_import.modules import mod_ignore


@dataclass(frozen=True)
class ParsedEntry:
    started: str
    duration: str
    cmd: str


@dataclass
class ImportStats:
    inserted: int = 0
    skipped: int = 0


def parse_entry(entry):
    """
    Parse ": <started>:<duration>;<cmd>" into a ParsedEntry.
    Only the first semicolon separates the header, the command keeps the rest.
    """
    data = entry.split(";", 1)
    if len(data) != 2:
        raise FormatError("Unable to parse entry", entry)
    info = data[0].split(":")
    if len(info) != 3:
        raise FormatError("Unable to parse timestamp", data[0])
    return ParsedEntry(
        started=info[1].strip(),
        duration=info[2].strip(),
        cmd=data[1],
    )


class HistoryParser:
    """Read, parse and filter history entries into an ImportTransaction"""

    def __init__(self, tx, config):
        self.tx = tx
        self.config = config

    def parse_stream(self, stream):
        stats = ImportStats()
        for entry in EntryReader(stream):
            parsed = parse_entry(entry)
            if mod_ignore.is_ignored(parsed, self.config.ignore):
                stats.skipped += 1
                continue
            logging.debug(f"[+] Inserting {parsed}")
            self.tx.insert_entry(parsed)
            stats.inserted += 1
        logging.info(f"[+] Parsed {stats.inserted} entries, skipped {stats.skipped}")
        return stats
