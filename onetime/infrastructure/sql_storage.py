"""
SQL Storage Implementation

Relational backend built on SQLAlchemy Core. Files and links live in two
tables under a configurable schema. Production runs on PostgreSQL through
psycopg2; SQLite is supported for tests.

Redemption is one guarded UPDATE. The affected-row count tells whether
this transaction performed the transition, so the database's own
isolation provides the at-most-once guarantee.
"""

import logging
from contextlib import contextmanager
from typing import Any, List, Mapping, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    LargeBinary,
    MetaData,
    Table,
    Text,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.schema import CreateSchema

from onetime.config.settings import PostgresSettings
from onetime.domain.entities import OnetimeFile, OnetimeLink, require_text
from onetime.domain.errors import (
    ConflictError,
    InvalidInputError,
    MalformedRecordError,
    NotFoundError,
    StorageUnavailableError,
)
from onetime.domain.storage import OnetimeStorage

logger = logging.getLogger(__name__)

FIELD_FILENAME = "filename"
FIELD_CONTENTS = "contents"
FIELD_CREATED_AT = "created_at"
FIELD_UPDATED_AT = "updated_at"

FIELD_TOKEN = "token"
FIELD_NOTE = "note"
FIELD_EXPIRES_AT = "expires_at"
FIELD_DOWNLOADED_AT = "downloaded_at"
FIELD_IP_ADDRESS = "ip_address"

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _column(row: Mapping[str, Any], name: str, required: bool = True) -> Any:
    value = row.get(name)
    if value is None and required:
        raise MalformedRecordError(f"Missing column {name}")
    return value


class SqlStorage(OnetimeStorage):
    """
    SQLAlchemy-based implementation of OnetimeStorage.

    Every operation borrows one pooled connection through a context
    manager, which returns it to the pool on success and on error.

    Args:
        engine: SQLAlchemy engine (its pool bounds concurrent connections)
        schema: Schema holding both tables, or None for the default schema
        files_table: Name of the files table
        links_table: Name of the links table
    """

    name = "postgres"

    def __init__(
        self,
        engine: Engine,
        schema: Optional[str] = None,
        files_table: str = "files",
        links_table: str = "links",
    ):
        self.engine = engine
        self.schema = schema
        self.metadata = MetaData(schema=schema)

        self.files = Table(
            files_table,
            self.metadata,
            Column(FIELD_FILENAME, Text, primary_key=True),
            Column(FIELD_CONTENTS, LargeBinary, nullable=False),
            Column(FIELD_CREATED_AT, BigInteger, nullable=False),
            Column(FIELD_UPDATED_AT, BigInteger, nullable=False),
        )
        self.links = Table(
            links_table,
            self.metadata,
            Column(FIELD_TOKEN, Text, primary_key=True),
            Column(FIELD_FILENAME, Text, nullable=False),
            Column(FIELD_NOTE, Text, nullable=True),
            Column(FIELD_CREATED_AT, BigInteger, nullable=False),
            Column(FIELD_EXPIRES_AT, BigInteger, nullable=True),
            Column(FIELD_DOWNLOADED_AT, BigInteger, nullable=True),
            Column(FIELD_IP_ADDRESS, Text, nullable=True),
        )

    @classmethod
    def from_settings(cls, settings: PostgresSettings) -> "SqlStorage":
        """
        Create storage with a bounded connection pool.

        Acquisition blocks for up to pool_timeout seconds once pool_size
        connections are checked out; no overflow connections are opened.
        """
        engine = create_engine(
            settings.sqlalchemy_url(),
            pool_size=settings.pool_size,
            max_overflow=0,
            pool_timeout=settings.pool_timeout,
            pool_pre_ping=True,
        )
        return cls(
            engine,
            schema=settings.schema,
            files_table=settings.files_table,
            links_table=settings.links_table,
        )

    @contextmanager
    def _translate_errors(self, operation: str, identifier: str = "", passthrough=()):
        """
        Turn SQLAlchemy exceptions into StorageUnavailableError with context.

        Exception types listed in passthrough are re-raised untouched for
        the caller to map.
        """
        target = f" for '{identifier}'" if identifier else ""
        try:
            yield
        except passthrough:
            raise
        except SQLAlchemyError as e:
            logger.error(f"SQL {operation} failed{target}: {e}")
            raise StorageUnavailableError(
                f"{operation} failed{target}: {e}", original_error=e
            ) from e
        except (TypeError, ValueError) as e:
            # Result processors choke on values of the wrong storage type
            raise MalformedRecordError(
                f"{operation} read a malformed row{target}: {e}", original_error=e
            ) from e

    def init_tables(self) -> bool:
        """Create the schema and both tables if they do not exist yet."""
        with self._translate_errors("Initialize tables"):
            with self.engine.begin() as conn:
                if self.schema and conn.dialect.name == "postgresql":
                    conn.execute(CreateSchema(self.schema, if_not_exists=True))
                self.metadata.create_all(conn)
        logger.info(
            f"SQL tables ready: {self.files.fullname}, {self.links.fullname}"
        )
        return True

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def add_file(self, file: OnetimeFile) -> bool:
        with self._translate_errors("Add file", file.filename):
            with self.engine.begin() as conn:
                dialect_insert = _UPSERT_DIALECTS.get(conn.dialect.name)
                if dialect_insert is None:
                    raise StorageUnavailableError(
                        f"Upsert is not supported on dialect {conn.dialect.name}"
                    )
                stmt = dialect_insert(self.files).values(
                    filename=file.filename,
                    contents=file.contents,
                    created_at=file.created_at,
                    updated_at=file.updated_at,
                )
                # created_at is deliberately absent: the first upload keeps it
                stmt = stmt.on_conflict_do_update(
                    index_elements=[self.files.c.filename],
                    set_={
                        FIELD_CONTENTS: stmt.excluded.contents,
                        FIELD_UPDATED_AT: stmt.excluded.updated_at,
                    },
                )
                conn.execute(stmt)
        return True

    def list_files(self) -> List[OnetimeFile]:
        with self._translate_errors("List files"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(self.files)).mappings().all()
        return [self._build_file(row) for row in rows]

    def get_file(self, filename: str) -> OnetimeFile:
        require_text("filename", filename)
        with self._translate_errors("Get file", filename):
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(self.files).where(self.files.c.filename == filename)
                ).mappings().first()
        if row is None:
            raise NotFoundError(f"File not found: '{filename}'")
        return self._build_file(row)

    def _build_file(self, row: Mapping[str, Any]) -> OnetimeFile:
        try:
            return OnetimeFile(
                filename=_column(row, FIELD_FILENAME),
                contents=_column(row, FIELD_CONTENTS),
                created_at=_column(row, FIELD_CREATED_AT),
                updated_at=_column(row, FIELD_UPDATED_AT),
            )
        except (MalformedRecordError, InvalidInputError) as e:
            raise MalformedRecordError(
                f"Malformed file row '{row.get(FIELD_FILENAME)}': {e}", original_error=e
            ) from e

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def add_link(self, link: OnetimeLink) -> bool:
        try:
            with self._translate_errors(
                "Add link", link.token, passthrough=(IntegrityError,)
            ):
                with self.engine.begin() as conn:
                    conn.execute(insert(self.links).values(**link.to_dict()))
        except IntegrityError as e:
            raise ConflictError(
                f"Link already exists: '{link.token}'", original_error=e
            ) from e
        return True

    def list_links(self) -> List[OnetimeLink]:
        with self._translate_errors("List links"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(self.links)).mappings().all()
        return [self._build_link(row) for row in rows]

    def get_link(self, token: str) -> OnetimeLink:
        require_text("token", token)
        with self._translate_errors("Get link", token):
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(self.links).where(self.links.c.token == token)
                ).mappings().first()
        if row is None:
            raise NotFoundError(f"Link not found: '{token}'")
        return self._build_link(row)

    def _build_link(self, row: Mapping[str, Any]) -> OnetimeLink:
        try:
            return OnetimeLink(
                token=_column(row, FIELD_TOKEN),
                filename=_column(row, FIELD_FILENAME),
                created_at=_column(row, FIELD_CREATED_AT),
                downloaded_at=_column(row, FIELD_DOWNLOADED_AT, required=False),
                ip_address=_column(row, FIELD_IP_ADDRESS, required=False),
                note=_column(row, FIELD_NOTE, required=False),
                expires_at=_column(row, FIELD_EXPIRES_AT, required=False),
            )
        except (MalformedRecordError, InvalidInputError) as e:
            raise MalformedRecordError(
                f"Malformed link row '{row.get(FIELD_TOKEN)}': {e}", original_error=e
            ) from e

    def mark_downloaded(
        self, link: OnetimeLink, ip_address: str, downloaded_at: int
    ) -> bool:
        require_text("ip_address", ip_address)
        token = link.token
        with self._translate_errors("Mark downloaded", token):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(self.links)
                    .where(
                        self.links.c.token == token,
                        self.links.c.downloaded_at.is_(None),
                    )
                    .values(downloaded_at=downloaded_at, ip_address=ip_address)
                )
                if result.rowcount == 1:
                    return False

                # Zero rows: either another transaction redeemed it first,
                # or the link is gone altogether
                existing = conn.execute(
                    select(self.links.c.token).where(self.links.c.token == token)
                ).first()

        if existing is None:
            raise NotFoundError(f"Link not found: '{token}'")
        logger.info(f"Link {token} was already downloaded")
        return True
