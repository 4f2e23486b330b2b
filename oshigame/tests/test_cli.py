"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main


@pytest.fixture
def saved_game(tmp_path, capsys):
    """A finished bot game written to disk."""
    save = tmp_path / "game.json"
    code = main([
        "simulate", "Aoi", "Ren",
        "--policy", "first",
        "--seed", "5",
        "--rounds", "2",
        "--save", str(save),
        "--log-dir", str(tmp_path / "logs"),
    ])
    assert code == 0
    capsys.readouterr()
    return save


class TestSimulate:
    def test_prints_ranking(self, tmp_path, capsys):
        code = main(["simulate", "Aoi", "Ren", "Mio", "--seed", "9", "--rounds", "1"])
        out = capsys.readouterr().out

        assert code == 0
        assert "1 round(s)" in out
        assert "Winner(s):" in out
        assert "Mio" in out

    def test_writes_save_and_log(self, saved_game, tmp_path):
        data = json.loads(saved_game.read_text(encoding="utf-8"))
        assert data["current_phase"] == "game-end"

        logs = list((tmp_path / "logs").iterdir())
        assert len(logs) == 1
        assert logs[0].name == f"{data['session_id']}.jsonl"

    def test_rejects_bad_seating(self, capsys):
        code = main(["simulate", "A", "B", "C", "D", "E"])
        assert code == 1
        assert "Error" in capsys.readouterr().out


class TestValidate:
    def test_valid_save(self, saved_game, capsys):
        assert main(["validate", str(saved_game)]) == 0
        out = capsys.readouterr().out
        assert "OK" in out
        assert "session has ended" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().out

    def test_corrupt_file(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert main(["validate", str(path)]) == 1

    def test_repair(self, saved_game, capsys):
        data = json.loads(saved_game.read_text(encoding="utf-8"))
        data["active_player_index"] = 9
        saved_game.write_text(json.dumps(data), encoding="utf-8")

        assert main(["validate", str(saved_game)]) == 1
        assert "GAME_STATE_INCONSISTENCY" in capsys.readouterr().out

        assert main(["validate", str(saved_game), "--repair"]) == 0
        assert "Repaired" in capsys.readouterr().out

        assert main(["validate", str(saved_game)]) == 0
        assert json.loads(saved_game.read_text(encoding="utf-8"))["active_player_index"] == 1


class TestResults:
    def test_results(self, saved_game, capsys):
        assert main(["results", str(saved_game)]) == 0
        out = capsys.readouterr().out
        assert "game-end" in out
        assert "Aoi" in out
        assert "Ren" in out

    def test_mid_game_save_reports_configured_rounds(self, saved_game, capsys):
        data = json.loads(saved_game.read_text(encoding="utf-8"))
        data.update(current_round=1, current_phase="labor")
        saved_game.write_text(json.dumps(data), encoding="utf-8")

        assert main(["results", str(saved_game)]) == 0
        assert "Rounds: 8" in capsys.readouterr().out


class TestHistory:
    def test_simulate_records_history(self, tmp_path, capsys):
        history = tmp_path / "history.json"
        for seed in ("1", "2"):
            assert main(["simulate", "Aoi", "Ren", "--seed", seed, "--rounds", "1", "--history", str(history)]) == 0
        capsys.readouterr()

        assert main(["history", str(history)]) == 0
        out = capsys.readouterr().out
        assert "2 game(s)" in out
        assert out.count("completed") == 2
        assert "Aoi, Ren" in out

    def test_missing_history_file(self, tmp_path, capsys):
        assert main(["history", str(tmp_path / "none.json")]) == 1
        assert "not found" in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 1
