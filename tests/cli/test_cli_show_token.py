# tests/cli/test_cli_show_token.py
import json
from datetime import datetime, timezone

from typer.testing import CliRunner

from blamelens.cli.app import app
from blamelens.domain.models import LineRecord, Range, ReferenceToken

runner = CliRunner()


def _token() -> ReferenceToken:
    line = LineRecord("c" * 40, "Carol", datetime(2022, 2, 2, tzinfo=timezone.utc), 4, 9)
    return ReferenceToken("/repo", "/repo/m.py", 1, Range.of(8, 0, 12, 0), ("c" * 40,), line)


def test_show_token_prints_fields():
    res = runner.invoke(app, ["show-token", _token().to_uri()])
    assert res.exit_code == 0, res.output
    data = json.loads(res.stdout)
    assert data["order_index"] == 1
    assert data["line"]["author"] == "Carol"
    assert data["range"] == [8, 0, 12, 0]


def test_show_token_rejects_garbage():
    res = runner.invoke(app, ["show-token", "not-a-token"])
    assert res.exit_code != 0


def test_annotate_rejects_unknown_format(tmp_path):
    f = tmp_path / "m.py"
    f.write_text("x = 1\n")
    res = runner.invoke(app, ["annotate", "--file", str(f), "--fmt", "xml"])
    assert res.exit_code != 0
