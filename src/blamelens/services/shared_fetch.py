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
from typing import Awaitable, Callable, Dict, Sequence

from ..domain.models import LineRecord

logger = logging.getLogger(__name__)

LineFetch = Callable[[], Awaitable[Sequence[LineRecord]]]


class _Entry:
    def __init__(self, task: asyncio.Task) -> None:
        self.task = task
        self.refs = 0


class PendingLines:
    """
    One dependent's handle on a shared, possibly still running, line fetch.

    Awaiting `result()` never cancels the fetch itself; cancelling the
    awaiting coroutine only abandons this dependent.
    """

    def __init__(self, cache: SharedFetchCache, key: str, task: asyncio.Task) -> None:
        self._cache = cache
        self._key = key
        self._task = task
        self._released = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def released(self) -> bool:
        return self._released

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> Sequence[LineRecord]:
        return await asyncio.shield(self._task)

    def share(self) -> PendingLines:
        """Another handle on this same fetch, holding its own reference."""
        if self._released:
            raise RuntimeError(f"Handle for {self._key} already released")
        return self._cache._share(self._key, self._task)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._cache._release(self._key, self._task)


class SharedFetchCache:
    """
    In-flight line fetches keyed by file path.

    `acquire` joins the fetch for a key while it is still running; otherwise
    it starts a new one, so finished results are never handed to a later
    caller. Each handle holds one reference; when the last is released the
    entry is dropped.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def acquire(self, key: str, fetch: LineFetch) -> PendingLines:
        """Join the running fetch for `key`, starting one if none is running. Needs a running loop."""
        entry = self._entries.get(key)
        if entry is None or entry.task.done():
            # Handles on a finished task keep it; their release no longer
            # matches the entry.
            task = asyncio.get_running_loop().create_task(fetch(), name=f"blame:{key}")
            task.add_done_callback(self._observe)
            entry = _Entry(task)
            self._entries[key] = entry
            logger.debug("SharedFetchCache: started fetch for %s", key)
        entry.refs += 1
        return PendingLines(self, key, entry.task)

    def _share(self, key: str, task: asyncio.Task) -> PendingLines:
        entry = self._entries.get(key)
        if entry is not None and entry.task is task:
            entry.refs += 1
        return PendingLines(self, key, task)

    def refs(self, key: str) -> int:
        entry = self._entries.get(key)
        return entry.refs if entry else 0

    def _release(self, key: str, task: asyncio.Task) -> None:
        entry = self._entries.get(key)
        # A newer fetch may already own the key.
        if entry is None or entry.task is not task:
            return
        entry.refs -= 1
        if entry.refs <= 0:
            del self._entries[key]
            if not task.done():
                # Nobody is left to read the result.
                task.cancel()
            logger.debug("SharedFetchCache: dropped fetch for %s", key)

    @staticmethod
    def _observe(task: asyncio.Task) -> None:
        # Retrieve the exception so an unawaited failure is not reported as lost;
        # waiters still receive it from result().
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Shared fetch %s failed: %s", task.get_name(), exc)
