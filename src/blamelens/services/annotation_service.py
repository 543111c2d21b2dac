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

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..domain.errors import BlameLensError, NoBlameDataError, UpstreamFetchError
from ..domain.models import (
    ELIGIBLE_KINDS,
    BlamePlaceholder,
    Document,
    HistoryPlaceholder,
    LineRecord,
    Location,
    Placeholder,
    Position,
    Range,
    ReferenceToken,
    ResolutionFailure,
    ResolvedAnnotation,
    RevisionGroup,
    Symbol,
)
from ..domain.relative_time import from_now
from ..ports.blame import BlameServicePort
from ..ports.symbols import SymbolServicePort
from .grouping import group_revisions, revision_order, single_line_group
from .shared_fetch import PendingLines, SharedFetchCache

logger = logging.getLogger(__name__)

SHOW_BLAME_HISTORY = "blamelens.showBlameHistory"
VIEW_FILE_HISTORY = "blamelens.viewFileHistory"


class AnnotationService:
    """
    Builds per-declaration blame annotations for a document.

      - `provide()` returns unresolved placeholders immediately; the file's
        blame fetch is started once and shared by all of them.
      - `resolve()` turns one placeholder into its summary and locations.
        Placeholders resolve independently; one failing leaves the rest alone.
    """

    def __init__(
        self,
        blame: BlameServicePort,
        symbols: Optional[SymbolServicePort] = None,
        *,
        repo_path: str = "",
        include_history: bool = False,
        cache: Optional[SharedFetchCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._blame = blame
        self._symbols = symbols
        self._repo_path = str(repo_path)
        self._include_history = bool(include_history)
        self._cache = cache if cache is not None else SharedFetchCache()
        self._clock = clock

    @property
    def cache(self) -> SharedFetchCache:
        return self._cache

    # --- provider -----------------------------------------------------------

    def _pending(self, document: Document) -> PendingLines:
        path = document.path
        return self._cache.acquire(path, lambda: self._blame.fetch_line_records(path))

    def provide(self, document: Document, symbols: Iterable[Symbol]) -> List[Placeholder]:
        """
        Return the placeholders for `document`, one per eligible symbol plus a
        whole-document fallback when nothing is anchored at line 0 column 0.

        Must be called with a running event loop; the blame fetch is started
        but not awaited.
        """
        pending = self._pending(document)
        try:
            return self._build(document, symbols, pending)
        finally:
            # Placeholders hold their own references from here on.
            pending.release()

    async def provide_for(self, document: Document) -> List[Placeholder]:
        """
        Fetch the outline from the symbol service and build placeholders.

        The blame fetch starts before the outline is awaited, so both sources
        load concurrently. A symbol service failure propagates.
        """
        if self._symbols is None:
            raise UpstreamFetchError("No symbol service configured")
        pending = self._pending(document)
        try:
            symbols = await self._symbols.fetch_symbols(document)
            return self._build(document, symbols, pending)
        finally:
            pending.release()

    def _build(
        self, document: Document, symbols: Iterable[Symbol], pending: PendingLines
    ) -> List[Placeholder]:
        # Every blame placeholder shares `pending`'s fetch, even if it has
        # finished by now.
        placeholders: List[Placeholder] = []
        try:
            self._collect(placeholders, document, symbols, pending)
        except BaseException:
            self.discard(placeholders)
            raise
        logger.debug("provide: %d placeholder(s) for %s", len(placeholders), document.path)
        return placeholders

    def _collect(
        self,
        placeholders: List[Placeholder],
        document: Document,
        symbols: Iterable[Symbol],
        pending: PendingLines,
    ) -> None:
        for sym in symbols:
            if sym.kind not in ELIGIBLE_KINDS:
                continue
            line = sym.range.start_line
            if not 0 <= line < document.line_count:
                logger.debug("Symbol %s starts outside %s; skipped", sym.name, document.path)
                continue
            indent = document.first_non_whitespace(line)
            end = len(document.line_at(line))
            self._append(
                placeholders,
                document,
                pending,
                blame_range=sym.range,
                anchor=Range.of(line, indent, line, end),
                history_anchor=Range.of(line, indent + 1, line, end),
            )

        if not any(
            isinstance(p, BlamePlaceholder) and p.anchor.start == Position(0, 0)
            for p in placeholders
        ):
            doc_range = document.full_range()
            self._append(
                placeholders,
                document,
                pending,
                blame_range=doc_range,
                anchor=Range.of(0, 0, 0, doc_range.start.character),
                history_anchor=Range.of(
                    0, doc_range.start.character + 1, doc_range.end.line, doc_range.end.character
                ),
            )

    def _append(
        self,
        placeholders: List[Placeholder],
        document: Document,
        pending: PendingLines,
        *,
        blame_range: Range,
        anchor: Range,
        history_anchor: Range,
    ) -> None:
        placeholders.append(
            BlamePlaceholder(
                file_path=document.path,
                repo_path=self._repo_path,
                range=blame_range,
                anchor=anchor,
                pending_lines=pending.share(),
            )
        )
        if self._include_history:
            placeholders.append(
                HistoryPlaceholder(
                    file_path=document.path,
                    repo_path=self._repo_path,
                    anchor=history_anchor,
                )
            )

    def discard(self, placeholders: Iterable[Placeholder]) -> None:
        """Release placeholders the caller will never resolve."""
        for p in placeholders:
            if isinstance(p, BlamePlaceholder):
                p.pending_lines.release()

    # --- resolver -----------------------------------------------------------

    async def resolve(self, placeholder: Placeholder) -> ResolvedAnnotation:
        """
        Resolve one placeholder.

        Raises:
            NoBlameDataError: the placeholder's range has no blamed lines.
            UpstreamFetchError: the blame service failed for this file.
        """
        if placeholder.kind == "blame":
            return await self._resolve_blame(placeholder)
        if placeholder.kind == "history":
            return ResolvedAnnotation(
                placeholder=placeholder,
                summary_text="View History",
                command=VIEW_FILE_HISTORY,
                arguments=(placeholder.file_path,),
            )
        raise TypeError(f"Unknown placeholder kind: {placeholder.kind!r}")

    async def _resolve_blame(self, placeholder: BlamePlaceholder) -> ResolvedAnnotation:
        try:
            all_lines = await placeholder.pending_lines.result()
        except BlameLensError:
            raise
        except Exception as e:
            raise UpstreamFetchError(
                f"Blame fetch failed for {placeholder.file_path}: {e}"
            ) from e
        finally:
            placeholder.pending_lines.release()

        lines = slice_lines(all_lines, placeholder.range)
        if not lines:
            raise NoBlameDataError(
                f"No blame lines for {placeholder.file_path} "
                f"lines {placeholder.range.start_line}-{placeholder.range.end_line}"
            )

        recent = most_recent(lines)
        groups = [single_line_group(lines[0])] if len(lines) == 1 else group_revisions(lines)
        locations = build_locations(placeholder, groups)

        return ResolvedAnnotation(
            placeholder=placeholder,
            summary_text=f"{recent.author}, {from_now(recent.timestamp, self._now())}",
            command=SHOW_BLAME_HISTORY,
            arguments=(placeholder.file_path, placeholder.anchor.start, locations),
            locations=locations,
            author=recent.author,
            when=recent.timestamp,
        )

    def _now(self) -> Optional[datetime]:
        return self._clock() if self._clock else None

    async def resolve_many(
        self, placeholders: Sequence[Placeholder]
    ) -> List[Union[ResolvedAnnotation, ResolutionFailure]]:
        """
        Resolve placeholders concurrently, in input order.

        Domain failures are returned as ResolutionFailure entries; anything
        else propagates.
        """

        async def one(p: Placeholder) -> Union[ResolvedAnnotation, ResolutionFailure]:
            try:
                return await self.resolve(p)
            except NoBlameDataError as e:
                logger.debug("resolve: %s", e)
                return ResolutionFailure(p, e)
            except BlameLensError as e:
                logger.warning("resolve: %s", e)
                return ResolutionFailure(p, e)

        return list(await asyncio.gather(*(one(p) for p in placeholders)))

    async def annotate(self, document: Document) -> List[Union[ResolvedAnnotation, ResolutionFailure]]:
        """provide_for() followed by resolve_many()."""
        placeholders = await self.provide_for(document)
        return await self.resolve_many(placeholders)

    async def expand_token(self, token: ReferenceToken) -> List[RevisionGroup]:
        """
        Rebuild the grouping a token was produced from.

        Raises:
            NoBlameDataError: the file's blame no longer covers the token's
                range or no longer yields the same revision ordering.
        """
        all_lines = await self._blame.fetch_line_records(token.file_path)
        lines = slice_lines(all_lines, token.range)
        if not lines:
            raise NoBlameDataError(f"No blame lines for {token.file_path} in {token.range}")
        if revision_order(lines) != token.revision_ids:
            raise NoBlameDataError(f"Blame for {token.file_path} changed since the token was built")
        return group_revisions(lines)


def slice_lines(all_lines: Sequence[LineRecord], blame_range: Range) -> Sequence[LineRecord]:
    """Lines `start_line..end_line` inclusive."""
    start = max(0, blame_range.start_line)
    return all_lines[start : blame_range.end_line + 1]


def most_recent(lines: Sequence[LineRecord]) -> LineRecord:
    """Newest line of the slice; the earliest one wins a tie."""
    best = lines[0]
    for rec in lines[1:]:
        if rec.timestamp > best.timestamp:
            best = rec
    return best


def build_locations(placeholder: BlamePlaceholder, groups: Sequence[RevisionGroup]) -> tuple[Location, ...]:
    revision_ids = tuple(g.revision_id for g in groups)
    locations: List[Location] = []
    for g in sorted(groups, key=lambda g: g.order_index):
        for rec in g.lines:
            token = ReferenceToken(
                repo_path=placeholder.repo_path,
                file_path=placeholder.file_path,
                order_index=g.order_index,
                range=placeholder.range,
                revision_ids=revision_ids,
                line=rec,
            )
            locations.append(Location(token, Position(rec.original_line_number, 0)))
    return tuple(locations)
