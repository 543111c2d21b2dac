# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

from ...config import Settings
from ...domain.errors import UpstreamFetchError
from ...domain.models import LineRecord
from ...ports.blame import BlameServicePort

logger = logging.getLogger(__name__)


def _parse_tz(raw: str) -> timezone:
    # "+0130" / "-0800"
    raw = raw.strip()
    if len(raw) != 5 or raw[0] not in "+-" or not raw[1:].isdigit():
        return timezone.utc
    sign = -1 if raw[0] == "-" else 1
    offset = timedelta(hours=int(raw[1:3]), minutes=int(raw[3:5]))
    return timezone(sign * offset)


def _is_sha(value: str) -> bool:
    return len(value) >= 40 and all(c in "0123456789abcdef" for c in value)


def parse_line_porcelain(output: str) -> List[LineRecord]:
    """
    Parse `git blame --line-porcelain` output into LineRecords, ordered by
    current line. Porcelain line numbers are 1-based; records are 0-based.
    """
    records: List[LineRecord] = []
    header: Optional[dict] = None

    for line in output.split("\n"):
        line = line.rstrip("\r")
        if line.startswith("\t"):
            # Content line closes the current entry.
            if header is not None:
                ts = datetime.fromtimestamp(int(header.get("author-time", 0)), timezone.utc)
                ts = ts.astimezone(_parse_tz(header.get("author-tz", "+0000")))
                records.append(
                    LineRecord(
                        revision_id=header["sha"],
                        author=header.get("author", ""),
                        timestamp=ts,
                        original_line_number=header["orig"] - 1,
                        current_line_index=header["final"] - 1,
                        summary=header.get("summary", ""),
                    )
                )
            header = None
            continue

        if header is None:
            parts = line.split()
            if len(parts) >= 3 and _is_sha(parts[0]):
                header = {"sha": parts[0], "orig": int(parts[1]), "final": int(parts[2])}
            continue

        key, _, value = line.partition(" ")
        header[key] = value

    records.sort(key=lambda r: r.current_line_index)
    return records


class GitBlameAdapter(BlameServicePort):
    """Blame service backed by the git CLI."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or Settings()

    async def _run(self, cwd: Path, *args: str) -> str:
        cmd = [self._settings.git_executable, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise UpstreamFetchError(f"Cannot run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._settings.blame_timeout
            )
        except asyncio.TimeoutError as e:
            await self._kill(proc)
            raise UpstreamFetchError(
                f"{' '.join(cmd)} timed out after {self._settings.blame_timeout}s"
            ) from e
        except BaseException:
            # Cancelled: the child must not outlive the fetch.
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise UpstreamFetchError(f"{' '.join(cmd)} failed: {message}")
        return stdout.decode("utf-8", errors="replace")

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

    async def fetch_line_records(self, file_path: str) -> List[LineRecord]:
        p = Path(file_path)
        logger.debug("git blame %s", p)
        output = await self._run(p.parent, "blame", "--line-porcelain", "--", p.name)
        return parse_line_porcelain(output)

    async def find_repo_root(self, path: Union[str, Path]) -> str:
        """Top-level directory of the repository containing `path`."""
        p = Path(path)
        cwd = p if p.is_dir() else p.parent
        output = await self._run(cwd, "rev-parse", "--show-toplevel")
        return output.strip()
