import argparse
import logging
import sys

import yaml

from histdb_import.lib.config import DEFAULT_IGNORE, ImportConfig, load_config
from histdb_import.lib.db import DB
from histdb_import.lib.errors import HistdbImportError
from histdb_import.lib.parsers import HistoryParser
from histdb_import.lib.reader import open_history


# -----------------------------
# Import
# -----------------------------

def import_history(config):
    """
    Import config.history into config.database in a single transaction.
    Any error rolls back every entry of the run and propagates.
    """
    with open_history(config.history) as stream:
        db = DB(config.database)
        try:
            db.check_unique_constraints()
            with db.transaction(config) as tx:
                stats = HistoryParser(tx, config).parse_stream(stream)
        finally:
            db.close()
    logging.info(f"[+] Imported {stats.inserted} entries into {config.database}")
    return stats


def build_config(args):
    config = ImportConfig.defaults()
    if args.config:
        config = config.updated(**load_config(args.config))
    return config.updated(
        database=args.database,
        history=args.history,
        ignore=args.ignore,
        host=args.host,
        home_dir=args.dir,
        session=args.session,
        exit_status=args.exit_status,
    )


# -----------------------------
# Main
# -----------------------------

def parse_args(argv=None):
    defaults = ImportConfig.defaults()
    parser = argparse.ArgumentParser(
        description="Import a zsh history file into a zsh-histdb SQLite database"
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "-d", "--database",
        help=f"location of database file (default: {defaults.database})",
    )

    parser.add_argument(
        "-H", "--history",
        help=f"location of history file (default: {defaults.history})",
    )

    parser.add_argument(
        "-i", "--ignore",
        help=f"comma separated commands to ignore during import (default: {DEFAULT_IGNORE})",
    )

    parser.add_argument(
        "--host",
        help=f"value for host column (default: {defaults.host})",
    )

    parser.add_argument(
        "--dir",
        help=f"value for dir column (default: {defaults.home_dir})",
    )

    parser.add_argument(
        "--session",
        help="value for session column (default: 0)",
    )

    parser.add_argument(
        "--exit-status",
        help="value for exit_status column (default: 0)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # -----------------------------
    # Logging
    # -----------------------------
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = build_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logging.error(f"[-] Invalid configuration: {e}")
        sys.exit(1)

    try:
        import_history(config)
    except HistdbImportError as e:
        logging.error(f"[-] Import failed: {e}")
        sys.exit(1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
