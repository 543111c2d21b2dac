# tests/unit/test_reference_token.py
from datetime import datetime, timezone, timedelta

import pytest

from blamelens.domain.errors import TokenDecodeError
from blamelens.domain.models import LineRecord, Range, ReferenceToken


def _token() -> ReferenceToken:
    line = LineRecord(
        revision_id="3f2a" * 10,
        author="Ada Lovelace",
        timestamp=datetime(2023, 5, 4, 12, 30, tzinfo=timezone(timedelta(hours=2))),
        original_line_number=17,
        current_line_index=21,
        summary="Fix parser",
    )
    return ReferenceToken(
        repo_path="/work/repo",
        file_path="/work/repo/src/my file.py",
        order_index=2,
        range=Range.of(20, 4, 30, 0),
        revision_ids=("b" * 40, "3f2a" * 10),
        line=line,
    )


def test_token_uri_round_trip():
    token = _token()
    uri = token.to_uri()
    assert uri.startswith("blamelens:")
    decoded = ReferenceToken.from_uri(uri)
    assert decoded == token
    assert decoded.line.timestamp.utcoffset() == timedelta(hours=2)
    assert decoded.revision_id == token.line.revision_id


@pytest.mark.parametrize(
    "uri",
    [
        "file:///tmp/x.py",
        "blamelens:/tmp/x.py",
        "blamelens:/tmp/x.py?not-base64!!",
        "blamelens:/tmp/x.py?e30=",  # "{}"
    ],
)
def test_malformed_token_raises(uri: str):
    with pytest.raises(TokenDecodeError):
        ReferenceToken.from_uri(uri)
