from typer.testing import CliRunner
from wordlinks.cli import app
from wordlinks.storage.json_store import JsonStorage

runner = CliRunner()


def test_stats_lists_recent_games(tmp_path):
    storage = JsonStorage(str(tmp_path))
    storage.create("2025-01-14", 12)
    storage.mark_completed("2025-01-14", 3, did_win=True)

    result = runner.invoke(app, ["stats", "--data-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Links Statistics" in result.output
    assert "January 14, 2025" in result.output


def test_reset_wipes_sessions(tmp_path):
    storage = JsonStorage(str(tmp_path))
    storage.create("2025-01-14", 12)

    result = runner.invoke(app, ["reset", "--data-dir", str(tmp_path), "--yes"])

    assert result.exit_code == 0
    assert storage.load_all() == []


def test_reset_asks_first(tmp_path):
    storage = JsonStorage(str(tmp_path))
    storage.create("2025-01-14", 12)

    result = runner.invoke(app, ["reset", "--data-dir", str(tmp_path)], input="n\n")

    assert result.exit_code != 0
    assert len(storage.load_all()) == 1
