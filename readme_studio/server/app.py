"""FastAPI application for README generation, integrity checks and test plans."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from readme_studio import __version__
from readme_studio.config import ServiceConfig
from readme_studio.documents.assembly import DocumentAssembler, StreamEvent
from readme_studio.documents.results import ResultCache
from readme_studio.documents.store import (
    DocumentDraft,
    DocumentStore,
    SQLiteDocumentStore,
    StoredDocument,
)
from readme_studio.engine.integrity import evaluate
from readme_studio.engine.tests_plan import derive
from readme_studio.errors import (
    AuthError,
    GenerationError,
    GenerationNotConfiguredError,
    PersistenceError,
    ValidationError,
)
from readme_studio.generation.base import GenerationOptions, TextGenerator
from readme_studio.generation.openai_provider import OpenAIGenerator
from readme_studio.identity.tokens import Identity, TokenVerifier, bearer_token
from readme_studio.server.models import (
    AckResponse,
    DocumentEnvelope,
    DocumentListEnvelope,
    DocumentModel,
    GenerateResponse,
    HealthResponse,
    InfoResponse,
    IntegrityResponse,
    MarkdownCreateRequest,
    MarkdownUpdateRequest,
    ResultResponse,
    SpecEnvelope,
    TestsPlanResponse,
)
from readme_studio.spec.boundary import validate_payload
from readme_studio.spec.models import Specification

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "POST /api/generate",
    "POST /api/generate/stream",
    "GET /api/result/:id",
    "POST /api/detect-conflicts",
    "POST /api/tests-plan",
    "POST /api/markdowns",
    "GET /api/markdowns",
    "GET /api/markdowns/:id",
    "PUT /api/markdowns/:id",
    "GET /api/markdowns/:id/spec",
    "DELETE /api/markdowns/:id",
]


class BackendState:
    """Holds shared collaborators for the API."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        generator: TextGenerator | None = None,
        store: DocumentStore | None = None,
        verifier: TokenVerifier | None = None,
    ) -> None:
        self.config = config
        self.results = ResultCache(ttl=timedelta(hours=config.result_ttl_hours))
        self.owns_store = store is None
        self.store = store if store is not None else SQLiteDocumentStore(config.database_path)
        self.verifier = verifier or TokenVerifier.from_home(config.home_dir)
        self.generator = generator or OpenAIGenerator(
            api_key=config.openai_api_key,
            request_timeout_seconds=config.generation_timeout_seconds,
        )
        self.assembler = DocumentAssembler(
            generator=self.generator,
            results=self.results,
            store=self.store,
            options=GenerationOptions(
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            ),
            timeout_seconds=config.generation_timeout_seconds,
        )

    def close(self) -> None:
        """Release the document store when this state created it."""
        if self.owns_store and isinstance(self.store, SQLiteDocumentStore):
            self.store.close()


def current_identity(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the bearer token on a request to a verified identity."""
    state: BackendState = request.app.state.backend
    try:
        return state.verifier.authenticate(bearer_token(authorization))
    except AuthError as exc:
        raise HTTPException(status_code=401, detail={"error": str(exc), "code": exc.code}) from exc


def create_app(
    config: ServiceConfig | None = None,
    *,
    generator: TextGenerator | None = None,
    store: DocumentStore | None = None,
    verifier: TokenVerifier | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    resolved = config or ServiceConfig.from_env()
    state = BackendState(resolved, generator=generator, store=store, verifier=verifier)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(state.results.run_sweeper(resolved.result_sweep_seconds))
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            state.close()

    app = FastAPI(title="readme-studio API", version=__version__, lifespan=lifespan)
    app.state.backend = state
    app.add_middleware(
        CORSMiddleware,
        allow_origins=resolved.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    def existing_document(document_id: str, identity: Identity) -> StoredDocument:
        try:
            document = state.store.get(identity.uid, document_id)
        except PersistenceError as exc:
            raise HTTPException(status_code=500, detail="Failed to get markdown") from exc
        if document is None:
            raise HTTPException(
                status_code=404,
                detail={"error": "Markdown document not found", "code": "NOT_FOUND"},
            )
        return document

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(UTC))

    @app.get("/api/info", response_model=InfoResponse)
    def info() -> InfoResponse:
        return InfoResponse(name="readme-studio", version=__version__, endpoints=ENDPOINTS)

    @app.post("/api/detect-conflicts", response_model=IntegrityResponse)
    def detect_conflicts(payload: Annotated[Any, Body()]) -> IntegrityResponse:
        spec = _parse_spec(payload)
        return IntegrityResponse.model_validate(evaluate(spec).to_dict())

    @app.post("/api/tests-plan", response_model=TestsPlanResponse)
    def tests_plan(payload: Annotated[Any, Body()]) -> TestsPlanResponse:
        spec = _parse_spec(payload)
        return TestsPlanResponse.model_validate(derive(spec).to_dict())

    @app.post("/api/generate", response_model=GenerateResponse, response_model_exclude_none=True)
    async def generate(
        payload: Annotated[Any, Body()],
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> GenerateResponse:
        spec = _validate(payload)
        try:
            outcome = await state.assembler.generate(spec, owner_id=identity.uid)
        except GenerationNotConfiguredError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except GenerationError as exc:
            logger.error("README generation failed for owner=%s: %s", identity.uid, exc)
            raise HTTPException(
                status_code=502, detail=f"Failed to generate README: {exc}"
            ) from exc
        return GenerateResponse.model_validate(outcome.to_dict())

    @app.post("/api/generate/stream")
    async def generate_stream(
        payload: Annotated[Any, Body()],
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> StreamingResponse:
        spec = _validate(payload)
        events = state.assembler.stream(spec, owner_id=identity.uid)

        async def event_generator() -> AsyncGenerator[str, None]:
            try:
                async for event in events:
                    yield _format_sse(event)
            except GenerationError as exc:
                logger.error("README stream failed for owner=%s: %s", identity.uid, exc)
                yield _format_sse_error(str(exc))

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    @app.get("/api/result/{result_id}", response_model=ResultResponse)
    def get_result(result_id: str) -> ResultResponse:
        logger.info("Result request id=%s cached=%s", result_id, len(state.results))
        result = state.results.get(result_id)
        if result is None:
            raise HTTPException(status_code=404, detail="Result not found")
        return ResultResponse.model_validate(result.to_dict())

    @app.post("/api/markdowns", response_model=DocumentEnvelope, status_code=201)
    def create_markdown(
        payload: MarkdownCreateRequest,
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> DocumentEnvelope:
        draft = DocumentDraft(
            title=payload.title,
            markdown=payload.markdown,
            project_name=payload.project_name or payload.title,
        )
        try:
            document = state.store.save(identity.uid, draft)
        except PersistenceError as exc:
            logger.error("Failed to save markdown for owner=%s: %s", identity.uid, exc)
            raise HTTPException(status_code=500, detail="Failed to save markdown") from exc
        return DocumentEnvelope(
            data=DocumentModel.model_validate(document.to_dict()),
            message="Markdown saved successfully",
        )

    @app.get("/api/markdowns", response_model=DocumentListEnvelope)
    def list_markdowns(
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> DocumentListEnvelope:
        try:
            documents = state.store.list(identity.uid)
        except PersistenceError as exc:
            raise HTTPException(status_code=500, detail="Failed to list markdowns") from exc
        data = [DocumentModel.model_validate(document.to_dict()) for document in documents]
        return DocumentListEnvelope(data=data, total=len(data))

    @app.get("/api/markdowns/{document_id}", response_model=DocumentEnvelope)
    def get_markdown(
        document_id: str,
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> DocumentEnvelope:
        document = existing_document(document_id, identity)
        return DocumentEnvelope(data=DocumentModel.model_validate(document.to_dict()))

    @app.put("/api/markdowns/{document_id}", response_model=DocumentEnvelope)
    def update_markdown(
        document_id: str,
        payload: MarkdownUpdateRequest,
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> DocumentEnvelope:
        existing_document(document_id, identity)
        changes = payload.changes()
        if not changes:
            raise HTTPException(
                status_code=400,
                detail={"error": "No fields to update", "code": "VALIDATION_ERROR"},
            )
        try:
            document = state.store.update(identity.uid, document_id, changes)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Markdown document not found") from exc
        except PersistenceError as exc:
            raise HTTPException(status_code=500, detail="Failed to update markdown") from exc
        return DocumentEnvelope(
            data=DocumentModel.model_validate(document.to_dict()),
            message="Markdown updated successfully",
        )

    @app.get("/api/markdowns/{document_id}/spec", response_model=SpecEnvelope)
    def get_markdown_spec(
        document_id: str,
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> SpecEnvelope:
        document = existing_document(document_id, identity)
        if document.project_spec is None:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "This markdown does not have a project specification.",
                    "code": "NO_SPEC",
                },
            )
        return SpecEnvelope(data=document.project_spec)

    @app.delete("/api/markdowns/{document_id}", response_model=AckResponse)
    def delete_markdown(
        document_id: str,
        identity: Annotated[Identity, Depends(current_identity)],
    ) -> AckResponse:
        existing_document(document_id, identity)
        try:
            state.store.delete(identity.uid, document_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Markdown document not found") from exc
        except PersistenceError as exc:
            raise HTTPException(status_code=500, detail="Failed to delete markdown") from exc
        return AckResponse(message="Markdown deleted successfully")

    return app


def _parse_spec(payload: Any) -> Specification:
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return Specification.from_dict(payload)


def _validate(payload: Any) -> Specification:
    try:
        return validate_payload(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid project specification", "problems": list(exc.problems)},
        ) from exc


def _format_sse(event: StreamEvent) -> str:
    if event.outcome is not None:
        payload = json.dumps(event.outcome.to_dict())
        return f"event: done\ndata: {payload}\n\n"
    return f"data: {json.dumps({'text': event.text})}\n\n"


def _format_sse_error(message: str) -> str:
    return f"event: error\ndata: {json.dumps({'error': message})}\n\n"
