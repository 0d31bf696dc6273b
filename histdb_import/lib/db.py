import logging
import os
from contextlib import contextmanager

from sqlalchemy import (
    create_engine,
    event,
    inspect,
    insert,
    select,
    func,
    bindparam,
    literal_column,
    Column,
    Integer,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from histdb_import.lib.errors import StorageError

Base = declarative_base()


class Command(Base):
    __tablename__ = "commands"
    id = Column(Integer, primary_key=True)
    argv = Column(Text)

    __table_args__ = (
        UniqueConstraint("argv", sqlite_on_conflict="IGNORE"),
        {"sqlite_autoincrement": True},
    )


class Place(Base):
    __tablename__ = "places"
    id = Column(Integer, primary_key=True)
    host = Column(Text)
    dir = Column(Text)

    __table_args__ = (
        UniqueConstraint("host", "dir", sqlite_on_conflict="IGNORE"),
        {"sqlite_autoincrement": True},
    )


class History(Base):
    __tablename__ = "history"
    id = Column(Integer, primary_key=True)
    session = Column(Integer)
    command_id = Column(Integer, ForeignKey("commands.id"))
    place_id = Column(Integer, ForeignKey("places.id"))
    exit_status = Column(Integer)
    start_time = Column(Integer)
    duration = Column(Integer)

    __table_args__ = (
        {"sqlite_autoincrement": True},
    )


# Command and Place rows are resolved by value, so these must be unique
UNIQUE_KEYS = {
    Command.__tablename__: {"argv"},
    Place.__tablename__: {"host", "dir"},
}


def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    # let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside it
    dbapi_connection.isolation_level = None


def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


class DB:
    def __init__(self, db_file):
        self.db_file = db_file
        try:
            os.makedirs(os.path.dirname(os.path.abspath(db_file)), exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create database directory for {db_file}: {e}") from e
        self.engine = create_engine(f"sqlite:///{db_file}", echo=False, future=True)
        event.listen(self.engine, "connect", _disable_pysqlite_transactions)
        event.listen(self.engine, "begin", _emit_begin)
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Unable to create tables in {db_file}: {e}") from e
        self.Session = sessionmaker(bind=self.engine, future=True)

    def close(self):
        self.engine.dispose()

    def check_unique_constraints(self):
        """
        Raise StorageError unless commands.argv and places(host, dir) are
        enforced unique by a constraint or a unique index.
        """
        try:
            inspector = inspect(self.engine)
            for table, columns in UNIQUE_KEYS.items():
                candidates = [
                    c["column_names"] for c in inspector.get_unique_constraints(table)
                ]
                candidates += [
                    i["column_names"] for i in inspector.get_indexes(table) if i.get("unique")
                ]
                if not any(set(names) == columns for names in candidates):
                    raise StorageError(
                        f"Table {table} has no unique constraint on ({', '.join(sorted(columns))})"
                    )
        except SQLAlchemyError as e:
            raise StorageError(f"Unable to inspect {self.db_file}: {e}") from e

    def count_rows(self, model):
        session = self.Session()
        try:
            return session.scalar(select(func.count()).select_from(model))
        finally:
            session.close()

    @contextmanager
    def transaction(self, config):
        """
        Yield an ImportTransaction. Commits when the block finishes,
        rolls back on any error.
        """
        session = self.Session()
        try:
            tx = ImportTransaction(session, config)
            yield tx
            try:
                session.commit()
            except SQLAlchemyError as e:
                raise StorageError(f"Unable to commit import: {e}") from e
        except BaseException:
            logging.error("[-] Rolling back import")
            session.rollback()
            raise
        finally:
            session.close()


class ImportTransaction:
    """Insert parsed entries inside one session-wide transaction"""

    def __init__(self, session, config):
        self.session = session
        self.config = config

        commands = Command.__table__
        places = Place.__table__

        self.cmd_stmt = sqlite_insert(commands).on_conflict_do_nothing()
        self.place_stmt = sqlite_insert(places).on_conflict_do_nothing()
        # rowid also resolves tables that have no id column
        self.cmd_lookup = select(literal_column("rowid")).select_from(commands).where(
            commands.c.argv == bindparam("cmd")
        )
        self.place_lookup = select(literal_column("rowid")).select_from(places).where(
            places.c.host == bindparam("place_host"),
            places.c.dir == bindparam("place_dir"),
        )
        self.hist_stmt = insert(History.__table__)

    def insert_entry(self, entry):
        """
        Insert-or-ignore the command and the place, then append one history
        row linked to both. The writes for one entry share a SAVEPOINT.
        """
        host = self.config.host
        home_dir = self.config.home_dir
        try:
            with self.session.begin_nested():
                self.session.execute(self.cmd_stmt, {"argv": entry.cmd})
                self.session.execute(self.place_stmt, {"host": host, "dir": home_dir})
                # scalar_one() also fails if argv or (host, dir) is not unique
                command_id = self.session.execute(
                    self.cmd_lookup, {"cmd": entry.cmd}
                ).scalar_one()
                place_id = self.session.execute(
                    self.place_lookup, {"place_host": host, "place_dir": home_dir}
                ).scalar_one()
                self.session.execute(self.hist_stmt, {
                    "session": self.config.session,
                    "command_id": command_id,
                    "place_id": place_id,
                    "exit_status": self.config.exit_status,
                    "start_time": entry.started,
                    "duration": entry.duration,
                })
        except SQLAlchemyError as e:
            raise StorageError(f"Unable to insert {entry}: {e}") from e
