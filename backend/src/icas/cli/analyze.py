"""CLI commands for running the analysis flows on local input.

Results are printed as JSON with the same camelCase keys the API uses.
"""

import asyncio
import base64
import json
import mimetypes
from pathlib import Path

import click
from pydantic import BaseModel

from ..flows import InvalidAnalysisRequest, analyze_document, classify_text_for_crimes
from ..flows.models import AnalysisRequest


def _echo_json(model: BaseModel) -> None:
    click.echo(json.dumps(model.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))


def file_to_data_uri(path: Path) -> str:
    """Encode a file as a base64 data URI, guessing its MIME type from the name."""
    mime_type, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


def _run_document(request: AnalysisRequest) -> None:
    try:
        result = asyncio.run(analyze_document(request))
    except InvalidAnalysisRequest as e:
        raise click.UsageError(str(e)) from e
    _echo_json(result)


@click.group()
def cli():
    """Run analysis flows from the command line."""
    pass


@cli.command("document")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", "file_name", help="File name to report (defaults to the file's name)")
def analyze_document_command(path: Path, file_name: str | None):
    """Analyze a document file (image, PDF or any other file type).

    Files the provider cannot read directly are analyzed from their name
    and MIME type only.
    """
    _run_document(
        AnalysisRequest(file_data_uri=file_to_data_uri(path), file_name=file_name or path.name)
    )


@cli.command("text")
@click.argument("text", required=False)
@click.option(
    "--file",
    "-f",
    "text_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the text from a UTF-8 file instead",
)
@click.option("--name", "file_name", help="File name to report")
def analyze_text_command(text: str | None, text_file: Path | None, file_name: str | None):
    """Analyze plain text through the full document pipeline."""
    if text_file is not None:
        text = text_file.read_text(encoding="utf-8")
        file_name = file_name or text_file.name
    if not text or not text.strip():
        raise click.UsageError("Provide TEXT or --file with non-empty content")

    _run_document(AnalysisRequest(text_content=text, file_name=file_name))


@cli.command("crimes")
@click.argument("text")
@click.option("--context", "-c", help="Context line passed to the classifier")
def classify_crimes_command(text: str, context: str | None):
    """Classify crimes described in TEXT."""
    result = asyncio.run(classify_text_for_crimes(text, context=context))
    _echo_json(result)
