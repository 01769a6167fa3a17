"""README document assembly, short-lived results and persistence."""

from readme_studio.documents.assembly import DocumentAssembler, GenerationOutcome, build_prompt
from readme_studio.documents.results import ResultCache, StoredResult
from readme_studio.documents.store import (
    DocumentDraft,
    DocumentStore,
    SQLiteDocumentStore,
    StoredDocument,
)

__all__ = [
    "DocumentAssembler",
    "DocumentDraft",
    "DocumentStore",
    "GenerationOutcome",
    "ResultCache",
    "SQLiteDocumentStore",
    "StoredDocument",
    "StoredResult",
    "build_prompt",
]
