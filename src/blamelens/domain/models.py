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

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional, Sequence, Union
from urllib.parse import quote

from .errors import TokenDecodeError

if TYPE_CHECKING:
    from ..services.shared_fetch import PendingLines


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position inside a document."""
    line: int
    character: int = 0


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def of(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> Range:
        return cls(Position(start_line, start_char), Position(end_line, end_char))

    @property
    def start_line(self) -> int:
        return self.start.line

    @property
    def end_line(self) -> int:
        # Inclusive when used to slice blame lines.
        return self.end.line

    def to_list(self) -> list[int]:
        return [self.start.line, self.start.character, self.end.line, self.end.character]

    @classmethod
    def from_list(cls, values: Sequence[int]) -> Range:
        a, b, c, d = (int(v) for v in values)
        return cls.of(a, b, c, d)


@dataclass(frozen=True)
class Document:
    """
    The text of a file being annotated.

    An empty text still has one (empty) line, the same way an editor buffer does.
    Lines break on "\\n" only (with a trailing "\\r" dropped), which is how git
    numbers them; form feeds and other Unicode separators stay inside a line.
    """
    path: str
    lines: tuple[str, ...] = ("",)

    @classmethod
    def from_text(cls, path: Union[str, Path], text: str) -> Document:
        parts = text.split("\n")
        if text.endswith("\n"):
            parts.pop()
        lines = tuple(p[:-1] if p.endswith("\r") else p for p in parts) or ("",)
        return cls(str(path), lines)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Document:
        p = Path(path)
        return cls.from_text(p, p.read_text(encoding="utf-8", errors="replace"))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, line: int) -> str:
        return self.lines[line]

    def first_non_whitespace(self, line: int) -> int:
        text = self.lines[line]
        return len(text) - len(text.lstrip())

    def full_range(self) -> Range:
        """
        Whole-document range, clamped like an editor validating
        Range(0, inf, inf, inf): starts at the end of line 0, ends at the end
        of the last line.
        """
        last = self.line_count - 1
        return Range.of(0, len(self.lines[0]), last, len(self.lines[last]))


class SymbolKind(str, Enum):
    FILE = "file"
    MODULE = "module"
    NAMESPACE = "namespace"
    PACKAGE = "package"
    CLASS = "class"
    INTERFACE = "interface"
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    PROPERTY = "property"
    FIELD = "field"
    FUNCTION = "function"
    ENUM = "enum"
    VARIABLE = "variable"
    CONSTANT = "constant"
    OTHER = "other"


ELIGIBLE_KINDS = frozenset(
    {
        SymbolKind.PACKAGE,
        SymbolKind.MODULE,
        SymbolKind.CLASS,
        SymbolKind.INTERFACE,
        SymbolKind.CONSTRUCTOR,
        SymbolKind.METHOD,
        SymbolKind.PROPERTY,
        SymbolKind.FIELD,
        SymbolKind.FUNCTION,
        SymbolKind.ENUM,
    }
)


@dataclass(frozen=True)
class Symbol:
    """A structural declaration reported by the symbol service."""
    name: str
    kind: SymbolKind
    range: Range
    container: Optional[str] = None


@dataclass(frozen=True)
class LineRecord:
    """
    Blame metadata for one current line of a file.

    `original_line_number` is the line's zero-based number inside the revision
    that introduced it; `current_line_index` its position in the file today.
    """
    revision_id: str
    author: str
    timestamp: datetime
    original_line_number: int
    current_line_index: int
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision_id": self.revision_id,
            "author": self.author,
            "timestamp": self.timestamp.isoformat(),
            "original_line_number": self.original_line_number,
            "current_line_index": self.current_line_index,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineRecord:
        return cls(
            revision_id=str(data["revision_id"]),
            author=str(data["author"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            original_line_number=int(data["original_line_number"]),
            current_line_index=int(data["current_line_index"]),
            summary=str(data.get("summary") or ""),
        )


@dataclass(frozen=True)
class RevisionGroup:
    """Lines of one revision within a blamed range, ranked by recency."""
    revision_id: str
    order_index: int
    lines: tuple[LineRecord, ...]
    most_recent_in_group: LineRecord


TOKEN_SCHEME = "blamelens"


@dataclass(frozen=True)
class ReferenceToken:
    """
    Reconstructible pointer to one blamed line inside its revision group.

    Carries the blamed range and the canonical revision ordering of the whole
    slice, so a viewer can rebuild exactly the grouping that produced it.
    `to_uri()` / `from_uri()` round-trip losslessly.
    """
    repo_path: str
    file_path: str
    order_index: int
    range: Range
    revision_ids: tuple[str, ...]
    line: LineRecord

    @property
    def revision_id(self) -> str:
        return self.line.revision_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "repo_path": self.repo_path,
            "file_path": self.file_path,
            "order_index": self.order_index,
            "range": self.range.to_list(),
            "revision_ids": list(self.revision_ids),
            "line": self.line.to_dict(),
        }

    def to_uri(self) -> str:
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        encoded = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
        return f"{TOKEN_SCHEME}:{quote(self.file_path)}?{encoded}"

    @classmethod
    def from_uri(cls, uri: str) -> ReferenceToken:
        scheme, sep, rest = uri.partition(":")
        if scheme != TOKEN_SCHEME or not sep or "?" not in rest:
            raise TokenDecodeError(f"Not a {TOKEN_SCHEME} reference: {uri!r}")
        _path, _, encoded = rest.partition("?")
        try:
            data = json.loads(base64.urlsafe_b64decode(encoded.encode("ascii")))
            return cls(
                repo_path=str(data["repo_path"]),
                file_path=str(data["file_path"]),
                order_index=int(data["order_index"]),
                range=Range.from_list(data["range"]),
                revision_ids=tuple(str(r) for r in data["revision_ids"]),
                line=LineRecord.from_dict(data["line"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise TokenDecodeError(f"Malformed {TOKEN_SCHEME} reference: {e}") from e


@dataclass(frozen=True)
class Location:
    """A navigable reference: which token, and where inside that revision."""
    token: ReferenceToken
    position: Position


@dataclass(frozen=True, eq=False)
class BlamePlaceholder:
    file_path: str
    repo_path: str
    range: Range
    anchor: Range
    pending_lines: PendingLines = field(repr=False)
    kind: Literal["blame"] = "blame"


@dataclass(frozen=True, eq=False)
class HistoryPlaceholder:
    file_path: str
    repo_path: str
    anchor: Range
    kind: Literal["history"] = "history"


Placeholder = Union[BlamePlaceholder, HistoryPlaceholder]


@dataclass(frozen=True)
class ResolvedAnnotation:
    placeholder: Placeholder
    summary_text: str
    command: str
    arguments: tuple[Any, ...] = ()
    locations: tuple[Location, ...] = ()
    author: Optional[str] = None
    when: Optional[datetime] = None


@dataclass(frozen=True)
class ResolutionFailure:
    placeholder: Placeholder
    error: Exception
