"""
Draft Storage Layer
===================

SQLite-based persistent storage for drafts: the text documents that
success handlers read from and write model responses into.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def get_storage_path() -> Path:
    """Get the storage directory path, creating it if needed."""
    storage_dir = Path.home() / ".ai_engine"
    storage_dir.mkdir(parents=True, exist_ok=True)
    return storage_dir


@dataclass
class Draft:
    """A text document with tags and template tags."""

    id: str
    content: str
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=lambda: [])
    template_tags: dict[str, str] = field(default_factory=lambda: {})
    storage: DraftStorage | None = field(default=None, repr=False, compare=False)

    @property
    def title(self) -> str:
        return self.content.split("\n", 1)[0]

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def set_template_tag(self, name: str, value: str) -> None:
        """Set a named value for later action steps to consume."""
        self.template_tags[name] = value

    def get_template_tag(self, name: str) -> str | None:
        return self.template_tags.get(name)

    def update(self) -> None:
        """Persist the draft to its storage."""
        if self.storage is None:
            raise RuntimeError(f"Draft {self.id} is not attached to a storage")
        self.storage.save(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "tags": self.tags,
            "template_tags": self.template_tags,
        }

    @classmethod
    def from_row(cls, row: tuple[Any, ...], storage: DraftStorage | None = None) -> Draft:
        """Create from database row."""
        return cls(
            id=str(row[0]),
            content=str(row[1]),
            created_at=datetime.fromisoformat(str(row[2])),
            updated_at=datetime.fromisoformat(str(row[3])),
            tags=json.loads(str(row[4])) if row[4] else [],
            template_tags=json.loads(str(row[5])) if row[5] else {},
            storage=storage,
        )


class DraftStorage:
    """SQLite-based draft storage."""

    def __init__(self, db_path: Path | None = None):
        """Initialize storage with optional custom database path."""
        if db_path is None:
            db_path = get_storage_path() / "drafts.db"
        self.db_path = db_path
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS drafts (
                    id TEXT PRIMARY KEY,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    tags TEXT,
                    template_tags TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_drafts_updated
                ON drafts(updated_at DESC)
            """)
            conn.commit()

    def create(self, content: str = "") -> Draft:
        """Create a new, unsaved draft attached to this storage."""
        now = datetime.now()
        return Draft(
            id=str(uuid.uuid4()),
            content=content,
            created_at=now,
            updated_at=now,
            storage=self,
        )

    def save(self, draft: Draft) -> None:
        """Insert or update a draft."""
        draft.updated_at = datetime.now()
        draft.storage = self
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO drafts (id, content, created_at, updated_at, tags, template_tags)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    content = excluded.content,
                    updated_at = excluded.updated_at,
                    tags = excluded.tags,
                    template_tags = excluded.template_tags
                """,
                (
                    draft.id,
                    draft.content,
                    draft.created_at.isoformat(),
                    draft.updated_at.isoformat(),
                    json.dumps(draft.tags),
                    json.dumps(draft.template_tags),
                ),
            )
            conn.commit()
        logger.debug(f"Saved draft {draft.id}")

    def get(self, draft_id: str) -> Draft | None:
        """Get a draft by ID."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT id, content, created_at, updated_at, tags, template_tags
                FROM drafts WHERE id = ?
                """,
                (draft_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return Draft.from_row(row, storage=self)

    def list_drafts(self, limit: int = 100) -> list[Draft]:
        """List drafts, most recently updated first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT id, content, created_at, updated_at, tags, template_tags
                FROM drafts
                ORDER BY updated_at DESC LIMIT ?
                """,
                (limit,),
            )
            return [Draft.from_row(row, storage=self) for row in cursor.fetchall()]

    def delete(self, draft_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM drafts WHERE id = ?", (draft_id,))
            conn.commit()
            return cursor.rowcount > 0


@dataclass
class DraftWorkspace:
    """The draft storage plus the draft an action is currently working on."""

    storage: DraftStorage
    current: Draft | None = None

    def create_draft(self) -> Draft:
        return self.storage.create()

    def load(self, draft_id: str) -> Draft:
        """Make a stored draft the current one."""
        draft = self.storage.get(draft_id)
        if draft is None:
            raise KeyError(f"No draft with id {draft_id}")
        self.current = draft
        return draft
