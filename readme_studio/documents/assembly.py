"""Turn a specification into a README through the text generator.

Assembly is glue: it renders the specification as an instruction prompt,
awaits the generator under a deadline, keeps the result in the short-lived
result cache, and then tries to persist it for the owner. A persistence
failure never discards a README that was already generated; the outcome
carries a warning instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from readme_studio.documents.results import ResultCache
from readme_studio.documents.store import DocumentDraft, DocumentStore
from readme_studio.engine.integrity import IntegrityResult, evaluate
from readme_studio.errors import GenerationError, PersistenceError
from readme_studio.generation.base import GenerationOptions, TextGenerator
from readme_studio.spec.models import Specification

logger = logging.getLogger(__name__)

NOT_SAVED_WARNING = "README generated but not saved to database"


@dataclass(frozen=True)
class GenerationOutcome:
    """Everything produced by one README generation request."""

    result_id: str
    readme: str
    integrity: IntegrityResult
    document_id: str | None = None
    warning: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.result_id,
            "readme": self.readme,
            "integrity": self.integrity.to_dict(),
        }
        if self.document_id is not None:
            payload["docId"] = self.document_id
        if self.warning is not None:
            payload["warning"] = self.warning
        return payload


@dataclass(frozen=True)
class StreamEvent:
    """A chunk of streamed README text, or the final outcome."""

    text: str = ""
    outcome: GenerationOutcome | None = None


class DocumentAssembler:
    """Coordinates prompt building, generation, caching and persistence."""

    def __init__(
        self,
        *,
        generator: TextGenerator,
        results: ResultCache,
        store: DocumentStore | None = None,
        options: GenerationOptions | None = None,
        timeout_seconds: float = 120.0,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero.")
        self._generator = generator
        self._results = results
        self._store = store
        self._options = options or GenerationOptions(max_tokens=8000)
        self._timeout_seconds = timeout_seconds

    async def generate(
        self, spec: Specification, *, owner_id: str | None = None
    ) -> GenerationOutcome:
        """Generate, cache and persist a README for the specification."""
        integrity = evaluate(spec)
        prompt = build_prompt(spec, integrity)
        logger.info(
            "Generating README for project=%s owner=%s", spec.meta.project_name, owner_id
        )
        try:
            readme = await asyncio.wait_for(
                self._generator.generate(prompt, self._options),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as exc:
            raise GenerationError(
                f"README generation timed out after {self._timeout_seconds:.0f}s."
            ) from exc
        return await self._finish(spec, integrity, readme, owner_id)

    async def stream(
        self, spec: Specification, *, owner_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Yield README chunks as they arrive, then the final outcome.

        The deadline covers the whole stream, not each chunk.
        """
        integrity = evaluate(spec)
        prompt = build_prompt(spec, integrity)
        logger.info(
            "Streaming README for project=%s owner=%s", spec.meta.project_name, owner_id
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout_seconds
        chunks: list[str] = []
        iterator = aiter(self._generator.stream(prompt, self._options))
        while True:
            try:
                chunk = await asyncio.wait_for(anext(iterator), timeout=deadline - loop.time())
            except StopAsyncIteration:
                break
            except TimeoutError as exc:
                raise GenerationError(
                    f"README generation timed out after {self._timeout_seconds:.0f}s."
                ) from exc
            chunks.append(chunk)
            yield StreamEvent(text=chunk)
        readme = "".join(chunks)
        if not readme.strip():
            raise GenerationError("No content received from model.")
        yield StreamEvent(outcome=await self._finish(spec, integrity, readme, owner_id))

    async def _finish(
        self,
        spec: Specification,
        integrity: IntegrityResult,
        readme: str,
        owner_id: str | None,
    ) -> GenerationOutcome:
        cached = self._results.store(readme)
        if self._store is None or owner_id is None:
            return GenerationOutcome(result_id=cached.id, readme=readme, integrity=integrity)
        draft = DocumentDraft(
            title=spec.meta.project_name,
            markdown=readme,
            project_name=spec.meta.project_name,
            description=spec.meta.summary,
            content=readme,
        )
        try:
            saved = await asyncio.to_thread(
                self._store.save, owner_id, draft, project_spec=spec.to_dict()
            )
        except PersistenceError as exc:
            logger.warning(
                "Failed to persist README for owner=%s, returning result anyway: %s",
                owner_id,
                exc,
            )
            return GenerationOutcome(
                result_id=cached.id,
                readme=readme,
                integrity=integrity,
                warning=NOT_SAVED_WARNING,
            )
        logger.info("README saved as document=%s owner=%s", saved.id, owner_id)
        return GenerationOutcome(
            result_id=cached.id,
            readme=readme,
            integrity=integrity,
            document_id=saved.id,
        )


def build_prompt(spec: Specification, integrity: IntegrityResult | None = None) -> str:
    """Render the instruction prompt sent to the generator."""
    ci = spec.deployment.ci
    lines = [
        "You are a technical documentation expert. Generate a comprehensive, professional "
        "README.md based on the following project specification.",
        "",
        "PROJECT SPECIFICATION:",
        "=====================",
        "",
        f"PROJECT NAME: {spec.meta.project_name}",
        f"SUMMARY: {spec.meta.summary}",
        "",
        "STACK INFORMATION:",
        _format_stack(spec),
        "",
        "FEATURES:",
        _format_features(spec),
        "",
        "ENTITIES & DATA MODEL:",
        _format_entities(spec),
        "",
        "API CONFIGURATION:",
        _format_api(spec),
        "",
        "TESTS:",
        _format_tests(spec),
        "",
        f"DEPLOYMENT: {spec.deployment.platform}",
        f"CI/CD: {ci.provider if ci.enabled else 'Not configured'}",
    ]
    if integrity is not None and (integrity.conflicts or integrity.warnings):
        lines.extend(["", "KNOWN CONFIGURATION ISSUES:"])
        for issue in (*integrity.conflicts, *integrity.warnings):
            lines.append(f"  - [{issue.severity.value}] {issue.message}")
    lines.extend(["", "REQUIREMENTS:", _format_sections(spec), "", _GUIDELINES])
    return "\n".join(lines)


_GUIDELINES = """GUIDELINES:
- Use clear, professional language
- Use code blocks with proper syntax highlighting
- Use markdown tables where appropriate
- Be specific to this project's configuration
- Don't add fictional content; only use what's provided
- Mark suggested features with "Suggested:" prefix
- Include commands that can be copy-pasted
- Make it beginner-friendly but technically accurate
- Mention known configuration issues in the relevant section

Generate only the README content, no additional text."""


def _format_sections(spec: Specification) -> str:
    docs = spec.documentation
    sections = [
        "**Project Title** - Use the project name as the main title",
        "**Table of Contents** - Auto-generate based on sections",
        "**Overview** - Use the summary provided",
        "**Tech Stack** - List frontend, backend, and overall architecture",
        "**Features** - List all features in a clear format",
    ]
    if docs.include_install_guide:
        sections.append(
            "**Getting Started** - Prerequisites, installation steps, configuration "
            "(environment variables if needed), running the project"
        )
    if docs.include_architecture:
        sections.append("**Project Structure** - Describe the folder organization")
        sections.append("**Data Model** - Describe entities and relationships (if applicable)")
    if docs.include_api_docs:
        sections.append("**API Documentation** - List endpoints (if applicable)")
    if docs.include_tests:
        sections.append("**Testing** - Describe the testing strategy")
    sections.extend(
        [
            "**Deployment** - Explain deployment process",
            "**Contributing** - Basic contribution guidelines",
            "**License** - Default to MIT",
        ]
    )
    header = "Generate a README.md with the following sections in this exact order:"
    numbered = [f"{index}. {section}" for index, section in enumerate(sections, start=1)]
    return "\n".join([header, "", *numbered])


def _format_stack(spec: Specification) -> str:
    stack = spec.stack
    lines = [f"Project Type: {stack.type}", f"Architecture: {stack.architecture}"]
    layers = []
    if stack.type in ("frontend", "fullstack"):
        layers.append(("Frontend", stack.frontend))
    if stack.type in ("backend", "fullstack"):
        layers.append(("Backend", stack.backend))
    for label, layer in layers:
        lines.append(f"{label} Framework: {layer.framework or 'Not specified'}")
        lines.append(f"{label} Language: {layer.language or 'Not specified'}")
        if layer.libraries:
            lines.append(f"{label} Libraries: {', '.join(layer.libraries)}")
    return "\n".join(f"  {line}" for line in lines)


def _format_features(spec: Specification) -> str:
    if not spec.features:
        return "  No features specified."
    return "\n".join(f"  - {feature.name}: {feature.description}" for feature in spec.features)


def _format_entities(spec: Specification) -> str:
    if not spec.entities:
        return "  No entities specified."
    blocks = []
    for entity in spec.entities:
        lines = [f"  **{entity.name}**: {entity.description}", "Fields:"]
        for item in entity.fields:
            required = ", required" if item.required else ""
            lines.append(f"    - {item.name} ({item.type}{required})")
        if entity.relations:
            lines.append("Relations:")
            lines.extend(
                f"    - {relation.type} with {relation.target}" for relation in entity.relations
            )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _format_api(spec: Specification) -> str:
    api = spec.api
    if api.type == "none":
        return "  No API specified."
    lines = [f"API Type: {api.type}", f"Documentation: {api.documentation}"]
    if api.endpoints:
        lines.extend(["", "Endpoints:"])
        for endpoint in api.endpoints:
            methods = ",".join(sorted(endpoint.methods))
            lines.append(f"  - {methods} {endpoint.path} - {endpoint.description}")
    return "\n".join(lines)


def _format_tests(spec: Specification) -> str:
    tests = spec.tests
    kinds = [
        label
        for enabled, label in (
            (tests.unit, "Unit Tests"),
            (tests.integration, "Integration Tests"),
            (tests.e2e, "End-to-End Tests"),
            (tests.manual_checklists, "Manual Checklists"),
        )
        if enabled
    ]
    if not kinds:
        return "  No testing strategy specified."
    frameworks = ", ".join(tests.frameworks) or "no framework specified"
    return f"  {', '.join(kinds)} with {frameworks}"
