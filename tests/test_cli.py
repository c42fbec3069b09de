"""Tests for the command line interface."""

import json

import pytest
import soundfile as sf
from click.testing import CliRunner

from pyseamloop import __version__
from pyseamloop.analysis import find_loop_candidates
from pyseamloop.analysis.candidates import rank_candidates
from pyseamloop.audio import load_signal
from pyseamloop.cli import cli_main
from tests.conftest import generate_click_track


@pytest.fixture
def click_wav(tmp_path):
    path = tmp_path / "clicks.wav"
    sf.write(str(path), generate_click_track(bpm=120, duration_seconds=10), 22050)
    return path


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli_main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_analyze_json(runner, click_wav):
    result = runner.invoke(cli_main, ["analyze", "--path", str(click_wav), "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert set(data) == {"start", "end", "duration", "bars", "confidence", "bpm", "outcome"}
    assert data["outcome"] in ("precise", "ranked")
    assert 0.0 <= data["start"] < data["end"] <= 10.0


def test_analyze_panel(runner, click_wav):
    result = runner.invoke(cli_main, ["analyze", "--path", str(click_wav)])
    assert result.exit_code == 0, result.output
    assert "clicks.wav" in result.output


def test_candidates_json_top(runner, click_wav):
    result = runner.invoke(cli_main, ["candidates", "--path", str(click_wav), "--top", "3", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert 1 <= len(data) <= 3
    confidences = [c["confidence"] for c in data]
    assert confidences == sorted(confidences, reverse=True)


def test_candidates_follow_library_ranking(runner, click_wav):
    result = runner.invoke(cli_main, ["candidates", "--path", str(click_wav), "--top", "5", "--json"])
    assert result.exit_code == 0, result.output

    expected = rank_candidates(find_loop_candidates(load_signal(click_wav)))[:5]
    assert json.loads(result.output) == [c.to_dict() for c in expected]


def test_validate_json(runner, click_wav):
    result = runner.invoke(cli_main, ["validate", "--path", str(click_wav), "--start", "1", "--end", "3", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["error"] is None
    assert 0.0 <= data["score"] <= 1.0


def test_invalid_options_exit_with_error(runner, click_wav):
    result = runner.invoke(
        cli_main,
        ["analyze", "--path", str(click_wav), "--min-duration", "4", "--max-duration", "2"],
    )
    assert result.exit_code == 1


def test_missing_file_is_usage_error(runner, tmp_path):
    result = runner.invoke(cli_main, ["analyze", "--path", str(tmp_path / "missing.wav")])
    assert result.exit_code == 2


def test_unreadable_file_exits_with_error(runner, tmp_path):
    bad = tmp_path / "broken.wav"
    bad.write_bytes(b"definitely not audio")
    result = runner.invoke(cli_main, ["analyze", "--path", str(bad)])
    assert result.exit_code == 1
