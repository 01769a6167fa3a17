"""Owner-scoped persistence for generated README documents."""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from readme_studio.errors import PersistenceError

UPDATABLE_FIELDS = ("project_name", "description", "markdown", "content")


@dataclass(frozen=True)
class DocumentDraft:
    """Document content supplied by a caller before it is stored."""

    title: str
    markdown: str
    project_name: str
    description: str = ""
    content: str | None = None


@dataclass(frozen=True)
class StoredDocument:
    """A persisted README document."""

    id: str
    owner_id: str
    title: str
    markdown: str
    project_name: str
    description: str
    content: str | None
    project_spec: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize without the stored specification."""
        return {
            "id": self.id,
            "title": self.title,
            "markdown": self.markdown,
            "projectName": self.project_name,
            "description": self.description,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class DocumentStore(Protocol):
    """Persistence collaborator used by document assembly and the API."""

    def save(
        self,
        owner_id: str,
        document: DocumentDraft,
        *,
        project_spec: dict[str, Any] | None = None,
    ) -> StoredDocument: ...

    def get(self, owner_id: str, document_id: str) -> StoredDocument | None: ...

    def list(self, owner_id: str) -> list[StoredDocument]: ...

    def update(
        self, owner_id: str, document_id: str, fields: Mapping[str, str]
    ) -> StoredDocument: ...

    def delete(self, owner_id: str, document_id: str) -> None: ...


class SQLiteDocumentStore:
    """Stores documents in a local SQLite database, one row per document."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._lock = threading.Lock()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(db_path, check_same_thread=False)
            self._init_schema()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"Unable to open document store: {exc}") from exc

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._connection.close()

    def save(
        self,
        owner_id: str,
        document: DocumentDraft,
        *,
        project_spec: dict[str, Any] | None = None,
    ) -> StoredDocument:
        """Insert a new document and return it."""
        if not owner_id.strip():
            raise ValueError("owner_id must be non-empty.")
        now = datetime.now(UTC)
        stored = StoredDocument(
            id=uuid4().hex,
            owner_id=owner_id,
            title=document.title,
            markdown=document.markdown,
            project_name=document.project_name,
            description=document.description,
            content=document.content,
            project_spec=project_spec,
            created_at=now,
            updated_at=now,
        )
        with self._transaction() as connection:
            connection.execute(
                """
                INSERT INTO documents (
                    id, owner_id, title, markdown, project_name, description,
                    content, project_spec, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.id,
                    owner_id,
                    stored.title,
                    stored.markdown,
                    stored.project_name,
                    stored.description,
                    stored.content,
                    json.dumps(project_spec, sort_keys=True) if project_spec is not None else None,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
        return stored

    def get(self, owner_id: str, document_id: str) -> StoredDocument | None:
        """Return one document owned by ``owner_id``, or None."""
        with self._transaction() as connection:
            row = connection.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE owner_id = ? AND id = ?",  # nosec B608
                (owner_id, document_id),
            ).fetchone()
        return _to_document(row) if row is not None else None

    def list(self, owner_id: str) -> list[StoredDocument]:
        """Return all documents for an owner, most recently updated first."""
        with self._transaction() as connection:
            rows = connection.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE owner_id = ? "  # nosec B608
                "ORDER BY updated_at DESC, rowid DESC",
                (owner_id,),
            ).fetchall()
        return [_to_document(row) for row in rows]

    def update(self, owner_id: str, document_id: str, fields: Mapping[str, str]) -> StoredDocument:
        """Apply a partial update and return the refreshed document."""
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported update fields: {', '.join(sorted(unknown))}.")
        if not fields:
            raise ValueError("No fields to update.")
        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [*fields.values(), datetime.now(UTC).isoformat(), owner_id, document_id]
        with self._transaction() as connection:
            cursor = connection.execute(
                f"UPDATE documents SET {assignments}, updated_at = ? "  # nosec B608
                "WHERE owner_id = ? AND id = ?",
                values,
            )
            if cursor.rowcount == 0:
                raise KeyError("document not found")
        document = self.get(owner_id, document_id)
        if document is None:
            raise KeyError("document not found")
        return document

    def delete(self, owner_id: str, document_id: str) -> None:
        """Delete a document; unknown ids raise KeyError."""
        with self._transaction() as connection:
            cursor = connection.execute(
                "DELETE FROM documents WHERE owner_id = ? AND id = ?",
                (owner_id, document_id),
            )
            if cursor.rowcount == 0:
                raise KeyError("document not found")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._connection:
                    yield self._connection
            except sqlite3.Error as exc:
                raise PersistenceError(f"Document store operation failed: {exc}") from exc

    def _init_schema(self) -> None:
        self._connection.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                markdown TEXT NOT NULL,
                project_name TEXT NOT NULL,
                description TEXT NOT NULL,
                content TEXT,
                project_spec TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents (owner_id, updated_at)"
        )
        self._connection.commit()


_COLUMNS = (
    "id, owner_id, title, markdown, project_name, description, "
    "content, project_spec, created_at, updated_at"
)


def _to_document(row: tuple[Any, ...]) -> StoredDocument:
    project_spec = json.loads(row[7]) if row[7] else None
    return StoredDocument(
        id=row[0],
        owner_id=row[1],
        title=row[2],
        markdown=row[3],
        project_name=row[4],
        description=row[5],
        content=row[6],
        project_spec=project_spec if isinstance(project_spec, dict) else None,
        created_at=datetime.fromisoformat(row[8]),
        updated_at=datetime.fromisoformat(row[9]),
    )
