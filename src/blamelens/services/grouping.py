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

from typing import Dict, List, Sequence

from ..domain.models import LineRecord, RevisionGroup


def _by_recency(lines: Sequence[LineRecord]) -> List[LineRecord]:
    # sorted() is stable: equal timestamps keep their slice order.
    return sorted(lines, key=lambda r: r.timestamp, reverse=True)


def _bucket(lines: Sequence[LineRecord]) -> Dict[str, List[LineRecord]]:
    buckets: Dict[str, List[LineRecord]] = {}
    for rec in _by_recency(lines):
        buckets.setdefault(rec.revision_id, []).append(rec)
    return buckets


def revision_order(lines: Sequence[LineRecord]) -> tuple[str, ...]:
    """
    Canonical revision ordering of a slice: distinct revision ids in the
    order first met while walking the slice from newest to oldest.
    """
    return tuple(_bucket(lines))


def group_revisions(lines: Sequence[LineRecord]) -> List[RevisionGroup]:
    """
    Group a blamed slice by revision, newest revision first.

    Groups get dense 1-based `order_index` values; members of each group are
    returned in physical (current line) order. Deterministic for a given
    input sequence.

    Raises:
        ValueError: if `lines` is empty.
    """
    if not lines:
        raise ValueError("group_revisions requires at least one line")

    groups: List[RevisionGroup] = []
    for i, (revision_id, members) in enumerate(_bucket(lines).items(), start=1):
        groups.append(
            RevisionGroup(
                revision_id=revision_id,
                order_index=i,
                lines=tuple(sorted(members, key=lambda r: r.current_line_index)),
                most_recent_in_group=members[0],
            )
        )
    return groups


def single_line_group(record: LineRecord) -> RevisionGroup:
    """The one-line case, built directly; same shape as group_revisions([record])[0]."""
    return RevisionGroup(
        revision_id=record.revision_id,
        order_index=1,
        lines=(record,),
        most_recent_in_group=record,
    )
