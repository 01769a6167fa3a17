"""Tests for SQLite document persistence."""

from __future__ import annotations

from pathlib import Path

import pytest

from readme_studio.documents.store import DocumentDraft, SQLiteDocumentStore


def _draft(title: str = "Atlas") -> DocumentDraft:
    return DocumentDraft(title=title, markdown=f"# {title}", project_name=title)


def test_save_and_get_round_trip(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    saved = store.save("owner-1", _draft(), project_spec={"meta": {"projectName": "Atlas"}})
    loaded = store.get("owner-1", saved.id)
    assert loaded == saved
    assert loaded is not None
    assert loaded.project_spec == {"meta": {"projectName": "Atlas"}}
    assert "projectSpec" not in loaded.to_dict()
    store.close()


def test_documents_are_owner_scoped(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    saved = store.save("owner-1", _draft())
    assert store.get("owner-2", saved.id) is None
    assert store.list("owner-2") == []
    with pytest.raises(KeyError):
        store.delete("owner-2", saved.id)


def test_list_returns_most_recently_updated_first(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    first = store.save("owner", _draft("First"))
    second = store.save("owner", _draft("Second"))
    assert [doc.id for doc in store.list("owner")] == [second.id, first.id]

    store.update("owner", first.id, {"description": "touched"})
    assert store.list("owner")[0].id == first.id


def test_update_applies_partial_fields(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    saved = store.save("owner", _draft())
    updated = store.update("owner", saved.id, {"markdown": "# New", "project_name": "Atlas 2"})
    assert updated.markdown == "# New"
    assert updated.project_name == "Atlas 2"
    assert updated.title == "Atlas"
    assert updated.updated_at >= saved.updated_at


def test_update_rejects_unknown_or_empty_fields(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    saved = store.save("owner", _draft())
    with pytest.raises(ValueError, match="Unsupported"):
        store.update("owner", saved.id, {"owner_id": "thief"})
    with pytest.raises(ValueError, match="No fields"):
        store.update("owner", saved.id, {})
    with pytest.raises(KeyError):
        store.update("owner", "missing", {"markdown": "x"})


def test_delete_removes_document(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    saved = store.save("owner", _draft())
    store.delete("owner", saved.id)
    assert store.get("owner", saved.id) is None


def test_documents_survive_reopen(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "docs.sqlite"
    saved = SQLiteDocumentStore(path).save("owner", _draft())
    assert SQLiteDocumentStore(path).get("owner", saved.id) is not None


def test_save_requires_owner(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "docs.sqlite")
    with pytest.raises(ValueError, match="owner_id"):
        store.save("  ", _draft())
