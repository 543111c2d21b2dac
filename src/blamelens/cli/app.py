# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
import json
from pathlib import Path
from typing import List, Optional, Union
import logging

import typer

from ..config import Settings, load_settings
from ..domain.errors import BlameLensError, ConfigurationError, UpstreamFetchError
from ..domain.models import Document, ReferenceToken, ResolutionFailure, ResolvedAnnotation
from ..ports.blame import BlameServicePort
from ..ports.symbols import SymbolServicePort
from ..services import AnnotationService, ReportService

from ..adapters.blame.git_blame import GitBlameAdapter
from ..adapters.symbols.python_symbols import PythonSymbolAdapter

from ..logging_config import setup_logging

setup_logging()

app = typer.Typer(help="blamelens CLI - per-symbol blame annotations")

FORMATS: set[str] = {"text", "json", "ndjson", "csv"}

logger = logging.getLogger(__name__)


def _parse_fmt(fmt: str) -> str:
    value = (fmt or "text").strip().lower()
    if value not in FORMATS:
        raise typer.BadParameter(
            f"Unknown format: {fmt}. Valid options: {', '.join(sorted(FORMATS))}"
        )
    return value


def _settings(history: Optional[bool]) -> Settings:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise typer.BadParameter(str(e))
    return settings.override(include_history=history)


def _wire(
    settings: Settings,
    repo_path: str,
    blame: Optional[BlameServicePort] = None,
    symbols: Optional[SymbolServicePort] = None,
) -> AnnotationService:
    """
    Minimal composition root:
      GitBlameAdapter + PythonSymbolAdapter + AnnotationService
    """
    return AnnotationService(
        blame or GitBlameAdapter(settings),
        symbols or PythonSymbolAdapter(),
        repo_path=repo_path,
        include_history=settings.include_history,
    )


async def _annotate(
    file: Path, repo: Optional[Path], settings: Settings
) -> List[Union[ResolvedAnnotation, ResolutionFailure]]:
    git = GitBlameAdapter(settings)
    if repo is not None:
        repo_path = str(repo)
    else:
        try:
            repo_path = await git.find_repo_root(file)
        except UpstreamFetchError as e:
            # Still annotate; every blame placeholder will fail to resolve.
            logger.warning("No repository found for %s: %s", file, e)
            repo_path = ""
    service = _wire(settings, repo_path, blame=git)
    return await service.annotate(Document.from_path(file))


def _echo_text(results: List[Union[ResolvedAnnotation, ResolutionFailure]]) -> None:
    for r in results:
        if not isinstance(r, ResolvedAnnotation):
            continue
        line = r.placeholder.anchor.start.line + 1
        typer.echo(f"{line:>5}  {r.summary_text}")


@app.command()
def annotate(
    file: Path = typer.Option(
        ...,
        "--file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Source file to annotate",
    ),
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        help="Repository root. Omit to ask git.",
    ),
    fmt: str = typer.Option(
        "text",
        "--fmt",
        help="Output format: text, json, ndjson or csv.",
        case_sensitive=False,
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "--output",
        help="Write the report to this path. If a directory is provided, the file will be named "
        "'annotations.<fmt>' inside it. Text output always goes to stdout.",
        resolve_path=True,
    ),
    history: Optional[bool] = typer.Option(
        None,
        "--history/--no-history",
        help="Also emit a 'View History' annotation per declaration.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
):
    """
    Annotate each declaration of a file with its most recent author.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    fmt = _parse_fmt(fmt)
    settings = _settings(history)
    results = asyncio.run(_annotate(file, repo, settings))

    if fmt == "text":
        _echo_text(results)
        return

    # - no --out  -> ./annotations.<fmt>
    # - --out DIR -> DIR/annotations.<fmt>
    # - --out FILE -> FILE
    if out is None:
        target = Path(f"annotations.{fmt}")
    elif out.exists() and out.is_dir():
        target = out / f"annotations.{fmt}"
    else:
        target = out

    written = ReportService().write_annotations(results, target, fmt=fmt)
    typer.echo(f"Wrote {fmt} report to {written}")


@app.command("show-token")
def show_token(
    token: str = typer.Argument(..., help="A blamelens: reference token"),
    expand: bool = typer.Option(
        False, "--expand", help="Re-run blame and print the token's full revision grouping."
    ),
):
    """
    Decode a reference token and print what it points at.
    """
    try:
        ref = ReferenceToken.from_uri(token)
    except BlameLensError as e:
        raise typer.BadParameter(str(e))

    typer.echo(json.dumps(ref.to_dict(), indent=2, ensure_ascii=False))
    if not expand:
        return

    service = _wire(_settings(None), ref.repo_path)
    try:
        groups = asyncio.run(service.expand_token(ref))
    except BlameLensError as e:
        typer.echo(f"Cannot expand token: {e}", err=True)
        raise typer.Exit(code=1)
    for g in groups:
        marker = "*" if g.order_index == ref.order_index else " "
        lines = ", ".join(str(r.current_line_index + 1) for r in g.lines)
        typer.echo(
            f"{marker}{g.order_index:>3}  {g.revision_id[:8]}  "
            f"{g.most_recent_in_group.author}  lines {lines}"
        )
