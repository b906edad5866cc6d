"""
SQLite-backed registry of managed skills.

The engine treats this purely as a durable record store: upsert, get, list
and delete, plus a small string settings table.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy import create_engine, delete, event, select, text
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from skillhub.registry.models import SCHEMA_VERSION, Base, SettingRow, SkillRow, SkillTargetRow
from skillhub.skills.models import SkillMetadata, SkillRecord, SkillTargetRecord
from skillhub.storage.paths import ensure_directory, get_db_path

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """The registry database cannot be used."""

    pass


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite enforces foreign keys per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _row_to_skill(row: SkillRow) -> SkillRecord:
    metadata = None
    if row.metadata_json:
        try:
            metadata = SkillMetadata.model_validate_json(row.metadata_json)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable metadata for skill {row.id}: {e}")
    return SkillRecord(
        id=row.id,
        name=row.name,
        source_type=row.source_type,
        source_ref=row.source_ref,
        source_revision=row.source_revision,
        central_path=row.central_path,
        content_hash=row.content_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_sync_at=row.last_sync_at,
        last_seen_at=row.last_seen_at,
        status=row.status,
        metadata=metadata,
    )


def _row_to_target(row: SkillTargetRow) -> SkillTargetRecord:
    return SkillTargetRecord(
        id=row.id,
        skill_id=row.skill_id,
        tool=row.tool,
        target_path=row.target_path,
        mode=row.mode,
        status=row.status,
        last_error=row.last_error,
        synced_at=row.synced_at,
    )


class SkillStore:
    """Registry of skills, skill targets and settings."""

    def __init__(self, db_path: Path | None = None, engine: Engine | None = None):
        """Initialize the store.

        Args:
            db_path: SQLite file (default: ~/.skillhub/skillhub.db).
            engine: Prebuilt engine, e.g. in-memory for tests.
        """
        if engine is None:
            self.db_path = Path(db_path) if db_path else get_db_path()
            ensure_directory(self.db_path.parent)
            engine = create_engine(f"sqlite:///{self.db_path}")
        else:
            self.db_path = None
        event.listen(engine, "connect", _enable_foreign_keys)
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._sessions() as session:
            with session.begin():
                yield session

    def ensure_schema(self) -> None:
        """Create tables and stamp the schema version.

        Raises:
            RegistryError: If the database was written by a newer version.
        """
        with self.engine.begin() as conn:
            user_version = conn.execute(text("PRAGMA user_version")).scalar() or 0
            if user_version > SCHEMA_VERSION:
                raise RegistryError(
                    f"database schema version {user_version} is newer than "
                    f"supported version {SCHEMA_VERSION}"
                )
            Base.metadata.create_all(conn)
            if user_version < SCHEMA_VERSION:
                conn.execute(text(f"PRAGMA user_version = {SCHEMA_VERSION}"))

    # -- settings ---------------------------------------------------------

    def get_setting(self, key: str) -> str | None:
        with self._session() as session:
            row = session.get(SettingRow, key)
            return row.value if row else None

    def set_setting(self, key: str, value: str) -> None:
        stmt = insert(SettingRow).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=["key"], set_={"value": value})
        with self._session() as session:
            session.execute(stmt)

    # -- skills -----------------------------------------------------------

    def upsert_skill(self, record: SkillRecord) -> None:
        values = {
            "id": record.id,
            "name": record.name,
            "source_type": record.source_type,
            "source_ref": record.source_ref,
            "source_revision": record.source_revision,
            "central_path": record.central_path,
            "content_hash": record.content_hash,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
            "last_sync_at": record.last_sync_at,
            "last_seen_at": record.last_seen_at,
            "status": record.status,
            "metadata_json": record.metadata.model_dump_json() if record.metadata else None,
        }
        stmt = insert(SkillRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={k: v for k, v in values.items() if k != "id"},
        )
        with self._session() as session:
            session.execute(stmt)

    def get_skill_by_id(self, skill_id: str) -> SkillRecord | None:
        with self._session() as session:
            row = session.get(SkillRow, skill_id)
            return _row_to_skill(row) if row else None

    def list_skills(self) -> list[SkillRecord]:
        """All skills, most recently updated first."""
        with self._session() as session:
            rows = session.scalars(select(SkillRow).order_by(SkillRow.updated_at.desc()))
            return [_row_to_skill(row) for row in rows]

    def delete_skill(self, skill_id: str) -> None:
        with self._session() as session:
            session.execute(delete(SkillRow).where(SkillRow.id == skill_id))

    # -- skill targets ----------------------------------------------------

    def upsert_skill_target(self, record: SkillTargetRecord) -> None:
        """Insert or update the single target row for (skill_id, tool)."""
        values = record.model_dump()
        stmt = insert(SkillTargetRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["skill_id", "tool"],
            set_={
                "target_path": record.target_path,
                "mode": record.mode,
                "status": record.status,
                "last_error": record.last_error,
                "synced_at": record.synced_at,
            },
        )
        with self._session() as session:
            session.execute(stmt)

    def list_skill_targets(self, skill_id: str) -> list[SkillTargetRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(SkillTargetRow)
                .where(SkillTargetRow.skill_id == skill_id)
                .order_by(SkillTargetRow.tool)
            )
            return [_row_to_target(row) for row in rows]

    def list_all_skill_target_paths(self) -> list[tuple[str, str]]:
        with self._session() as session:
            rows = session.execute(select(SkillTargetRow.tool, SkillTargetRow.target_path))
            return [(tool, path) for tool, path in rows]

    def get_skill_target(self, skill_id: str, tool: str) -> SkillTargetRecord | None:
        with self._session() as session:
            row = session.scalars(
                select(SkillTargetRow).where(
                    SkillTargetRow.skill_id == skill_id, SkillTargetRow.tool == tool
                )
            ).first()
            return _row_to_target(row) if row else None

    def delete_skill_target(self, skill_id: str, tool: str) -> None:
        with self._session() as session:
            session.execute(
                delete(SkillTargetRow).where(
                    SkillTargetRow.skill_id == skill_id, SkillTargetRow.tool == tool
                )
            )
