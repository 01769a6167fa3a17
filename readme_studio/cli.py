"""Command-line interface for readme-studio."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
import uvicorn
import yaml
from rich.console import Console
from rich.table import Table

from readme_studio.config import SUPPORTED_PROVIDERS, ServiceConfig, validate_choice
from readme_studio.documents.assembly import DocumentAssembler
from readme_studio.documents.results import ResultCache
from readme_studio.engine.integrity import evaluate
from readme_studio.engine.tests_plan import derive, summarize_plan
from readme_studio.errors import GenerationError, ValidationError
from readme_studio.generation.base import GenerationOptions, TextGenerator
from readme_studio.generation.mock_provider import MockGenerator
from readme_studio.generation.openai_provider import OpenAIGenerator
from readme_studio.identity.keys import init_keys, load_private_key
from readme_studio.identity.tokens import issue_token
from readme_studio.logging_utils import configure_logging
from readme_studio.spec.boundary import validate_payload
from readme_studio.spec.models import Specification, default_specification

app = typer.Typer(add_completion=False, no_args_is_help=True)
keys_app = typer.Typer(no_args_is_help=True)
token_app = typer.Typer(no_args_is_help=True)
console = Console()

app.add_typer(keys_app, name="keys")
app.add_typer(token_app, name="token")


def _load_payload(spec_file: Path) -> Any:
    """Read a JSON or YAML specification file."""
    if not spec_file.exists():
        raise typer.BadParameter(f"Specification file not found: {spec_file}")
    content = spec_file.read_text(encoding="utf-8")
    try:
        if spec_file.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(content)
        return json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Could not parse {spec_file}: {exc}") from exc


def _load_spec(spec_file: Path) -> Specification:
    payload = _load_payload(spec_file)
    if not isinstance(payload, dict):
        raise typer.BadParameter("Specification file must contain an object.")
    return Specification.from_dict(payload)


def _create_generator(
    provider: str,
    config: ServiceConfig,
    mock_readme_file: Path | None,
) -> TextGenerator:
    """Create a text generator from CLI options."""
    try:
        validate_choice(provider, "provider", SUPPORTED_PROVIDERS)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if provider == "mock":
        if mock_readme_file is None:
            raise typer.BadParameter("--mock-readme-file is required when provider=mock.")
        return MockGenerator([mock_readme_file.read_text(encoding="utf-8")])
    return OpenAIGenerator(
        api_key=config.openai_api_key,
        request_timeout_seconds=config.generation_timeout_seconds,
    )


@app.command()
def check(
    spec_file: Annotated[Path, typer.Argument(help="JSON or YAML project specification.")],
) -> None:
    """Report integrity issues; exits non-zero when conflicts exist."""
    spec = _load_spec(spec_file)
    result = evaluate(spec)
    issues = [*result.conflicts, *result.warnings, *result.suggestions]
    if not issues:
        console.print("No issues detected.")
        return
    table = Table(title=f"Integrity: {spec.meta.project_name or spec_file.name}")
    table.add_column("Severity")
    table.add_column("Code")
    table.add_column("Message")
    table.add_column("Suggestion")
    for issue in issues:
        table.add_row(issue.severity.value, issue.code, issue.message, issue.suggestion or "")
    console.print(table)
    if result.conflicts:
        raise typer.Exit(code=1)


@app.command("tests-plan")
def tests_plan(
    spec_file: Annotated[Path, typer.Argument(help="JSON or YAML project specification.")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the plan as JSON instead of a summary."),
    ] = False,
) -> None:
    """Derive recommended tests from a specification."""
    spec = _load_spec(spec_file)
    plan = derive(spec)
    if as_json:
        typer.echo(json.dumps(plan.to_dict(), indent=2))
        return
    typer.echo(summarize_plan(spec, plan))


@app.command()
def generate(
    spec_file: Annotated[Path, typer.Argument(help="JSON or YAML project specification.")],
    output: Annotated[
        Path,
        typer.Option(help="Where the generated README is written."),
    ] = Path("README.md"),
    provider: Annotated[
        str,
        typer.Option(help="Text generator to use: openai or mock."),
    ] = "openai",
    mock_readme_file: Annotated[
        Path | None,
        typer.Option(help="Markdown returned verbatim when provider=mock."),
    ] = None,
    verbose: Annotated[bool, typer.Option(help="Enable debug logging.")] = False,
) -> None:
    """Generate a README for a specification."""
    configure_logging(verbose=verbose)
    config = ServiceConfig.from_env()
    try:
        spec = validate_payload(_load_payload(spec_file))
    except ValidationError as exc:
        for problem in exc.problems:
            console.print(f"[red]- {problem}[/red]")
        raise typer.Exit(code=1) from exc
    assembler = DocumentAssembler(
        generator=_create_generator(provider, config, mock_readme_file),
        results=ResultCache(),
        options=GenerationOptions(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        ),
        timeout_seconds=config.generation_timeout_seconds,
    )
    try:
        outcome = asyncio.run(assembler.generate(spec))
    except GenerationError as exc:
        console.print(f"[red]Generation failed: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(outcome.readme, encoding="utf-8")
    issue_count = len(outcome.integrity.codes())
    console.print(f"README written to {output} ({issue_count} integrity issue(s)).")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(help="Where the starter specification is written."),
    ] = Path("project-spec.json"),
    force: Annotated[bool, typer.Option(help="Overwrite an existing file.")] = False,
) -> None:
    """Write the default specification as a starting point."""
    if output.exists() and not force:
        raise typer.BadParameter(f"{output} already exists; pass --force to overwrite.")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        json.dumps(default_specification().to_dict(), indent=2) + "\n", encoding="utf-8"
    )
    console.print(f"Specification written to {output}")


@keys_app.command("init")
def keys_init(
    home: Annotated[
        Path | None,
        typer.Option(help="Data directory override (defaults to README_STUDIO_HOME)."),
    ] = None,
    force: Annotated[bool, typer.Option(help="Replace an existing key pair.")] = False,
) -> None:
    """Initialize the Ed25519 key pair used for identity tokens."""
    paths = init_keys(home, force=force)
    console.print(f"Private key: {paths.private_key_path}")
    console.print(f"Public key: {paths.public_key_path}")


@token_app.command("issue")
def token_issue(
    uid: Annotated[str, typer.Option(help="User id carried by the token.")],
    email: Annotated[str | None, typer.Option(help="Optional email claim.")] = None,
    hours: Annotated[float, typer.Option(help="Token lifetime in hours.")] = 1.0,
    home: Annotated[
        Path | None,
        typer.Option(help="Data directory override (defaults to README_STUDIO_HOME)."),
    ] = None,
) -> None:
    """Mint a signed bearer token."""
    try:
        private_key = load_private_key(home)
        token = issue_token(private_key, uid=uid, email=email, expires_in_hours=hours)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(token)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Host interface; defaults to HOST.")] = None,
    port: Annotated[int | None, typer.Option(help="TCP port; defaults to PORT.")] = None,
    reload: Annotated[bool, typer.Option(help="Reload on code changes.")] = False,
) -> None:
    """Serve the HTTP API with uvicorn."""
    config = ServiceConfig.from_env()
    bind_host = host or config.host
    bind_port = port or config.port
    if bind_port <= 0 or bind_port > 65535:
        raise typer.BadParameter("port must be between 1 and 65535.")
    configure_logging(json_format=True)
    console.print(f"Serving readme-studio on http://{bind_host}:{bind_port}")
    uvicorn.run(
        "readme_studio.server.app:create_app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        factory=True,
    )


def main() -> None:
    """Run the readme-studio CLI."""
    app()


if __name__ == "__main__":
    main()
