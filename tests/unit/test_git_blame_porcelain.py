# tests/unit/test_git_blame_porcelain.py
import asyncio
import os
import sys
from datetime import timedelta

import pytest

from blamelens.adapters.blame.git_blame import GitBlameAdapter, parse_line_porcelain
from blamelens.config import Settings
from blamelens.domain.errors import UpstreamFetchError
from blamelens.domain.models import Document
from blamelens.services.annotation_service import AnnotationService

SHA_A = "a" * 40
SHA_B = "0123456789abcdef0123456789abcdef01234567"


def _entry(sha, orig, final, author, when, tz, summary, content, group=None):
    head = f"{sha} {orig} {final}" + (f" {group}" if group else "")
    return "\n".join(
        [
            head,
            f"author {author}",
            f"author-mail <{author.lower()}@example.com>",
            f"author-time {when}",
            f"author-tz {tz}",
            f"committer {author}",
            f"committer-time {when}",
            f"committer-tz {tz}",
            f"summary {summary}",
            "filename mod.py",
            f"\t{content}",
        ]
    )


PORCELAIN = "\n".join(
    [
        _entry(SHA_A, 1, 1, "Alice", 1700000000, "+0100", "Initial", "import os", group=2),
        _entry(SHA_A, 2, 2, "Alice", 1700000000, "+0100", "Initial", ""),
        _entry(SHA_B, 7, 3, "Bob Smith", 1710000000, "-0530", "Add helper", "def helper():", group=1),
    ]
) + "\n"


def test_parse_line_porcelain_records():
    records = parse_line_porcelain(PORCELAIN)

    assert [r.current_line_index for r in records] == [0, 1, 2]
    assert [r.revision_id for r in records] == [SHA_A, SHA_A, SHA_B]
    assert records[2].author == "Bob Smith"
    assert records[2].original_line_number == 6
    assert records[2].summary == "Add helper"
    assert records[2].timestamp.timestamp() == 1710000000
    assert records[2].timestamp.utcoffset() == -timedelta(hours=5, minutes=30)
    assert records[0].timestamp.utcoffset() == timedelta(hours=1)


def test_parse_ignores_content_that_looks_like_headers():
    # A content line is always tab-prefixed, so "author x" inside it is not a header.
    text = _entry(SHA_A, 1, 1, "Alice", 1700000000, "+0000", "s", "author mallory")
    records = parse_line_porcelain(text)
    assert len(records) == 1
    assert records[0].author == "Alice"


def test_parse_empty_output():
    assert parse_line_porcelain("") == []


def test_missing_git_binary_is_upstream_error(tmp_path):
    f = tmp_path / "x.py"
    f.write_text("x = 1\n")
    adapter = GitBlameAdapter(Settings(git_executable=str(tmp_path / "no-such-git")))
    with pytest.raises(UpstreamFetchError):
        asyncio.run(adapter.fetch_line_records(str(f)))


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


@pytest.mark.skipif(sys.platform == "win32" or not os.path.exists("/bin/sh"), reason="needs /bin/sh")
def test_discarding_placeholders_kills_running_blame(tmp_path):
    pidfile = tmp_path / "git.pid"
    fake_git = tmp_path / "fake-git"
    fake_git.write_text(f'#!/bin/sh\necho $$ > "{pidfile}"\nexec sleep 30\n')
    fake_git.chmod(0o755)
    src = tmp_path / "mod.py"
    src.write_text("x = 1\n")

    async def scenario():
        svc = AnnotationService(GitBlameAdapter(Settings(git_executable=str(fake_git))))
        placeholders = svc.provide(Document.from_path(src), [])
        for _ in range(100):
            if pidfile.exists() and pidfile.read_text().strip():
                break
            await asyncio.sleep(0.05)
        pid = int(pidfile.read_text())
        assert _alive(pid)

        svc.discard(placeholders)
        for _ in range(100):
            if not _alive(pid):
                break
            await asyncio.sleep(0.05)
        return pid

    pid = asyncio.run(scenario())
    assert not _alive(pid)


def test_parse_content_with_form_feed_keeps_one_record_per_line():
    text = "\n".join(
        [
            _entry(SHA_A, 1, 1, "Alice", 1700000000, "+0000", "s", "import os"),
            _entry(SHA_A, 2, 2, "Alice", 1700000000, "+0000", "s", "\x0c"),
            _entry(SHA_B, 3, 3, "Bob", 1710000000, "+0000", "t", "def f():\x85"),
        ]
    )
    records = parse_line_porcelain(text)
    assert [r.current_line_index for r in records] == [0, 1, 2]
    assert records[2].author == "Bob"
