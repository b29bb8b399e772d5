"""Tests for the duel CLI."""

import json

import pytest
from typer.testing import CliRunner

from duelarena.cli.app import app, run_simulation
from duelarena.battle.models import BattleEnded, BattleStarted, TurnResult
from duelarena.server_logging.event_log import EventLogger

runner = CliRunner()


@pytest.fixture
def registry_file(tmp_path, registry):
    path = tmp_path / "characters.json"
    path.write_text(
        json.dumps(
            {
                "characters": {
                    record.character_id: record.model_dump(exclude={"character_id"})
                    for record in registry.records()
                }
            }
        )
    )
    return path


@pytest.mark.asyncio
async def test_simulation_runs_to_a_winner(registry, tmp_path):
    log = EventLogger(tmp_path / "events.jsonl")
    session, recorder = await run_simulation(registry, "knight", "rogue", seed=7, event_log=log)

    assert not session.active
    assert 0 in (session.health_a, session.health_b)
    records = recorder.for_session(session.session_id)
    assert isinstance(records[0], BattleStarted)
    assert isinstance(records[-1], BattleEnded)
    assert all(isinstance(record, TurnResult) for record in records[1:-1])
    entries, _ = log.query(session_id=session.session_id)
    assert len(entries) == len(records)


@pytest.mark.asyncio
async def test_simulation_is_reproducible(registry):
    _, first = await run_simulation(registry, "knight", "rogue", seed=3)
    _, second = await run_simulation(registry, "knight", "rogue", seed=3)

    def _turns(recorder):
        return [(r.acting_character, r.action, r.damage_dealt) for r in recorder.records if isinstance(r, TurnResult)]

    assert _turns(first) == _turns(second)


def test_simulate_and_history(registry_file, tmp_path):
    log_path = tmp_path / "events.jsonl"
    result = runner.invoke(
        app,
        ["simulate", "knight", "rogue", "--registry", str(registry_file), "--seed", "11", "--log", str(log_path)],
    )
    assert result.exit_code == 0, result.output
    assert "defeats" in result.output

    entries, _ = EventLogger(log_path).query()
    session_id = entries[0]["session_id"]
    history = runner.invoke(app, ["history", session_id, "--log", str(log_path)])
    assert history.exit_code == 0, history.output
    assert "battle.ended" in history.output


def test_simulate_rejects_invalid_fighters(registry_file):
    result = runner.invoke(app, ["simulate", "knight", "knight", "--registry", str(registry_file), "--no-log"])
    assert result.exit_code == 1
    assert "cannot fight itself" in result.output


def test_history_for_unknown_session(tmp_path):
    result = runner.invoke(app, ["history", "nope", "--log", str(tmp_path / "events.jsonl")])
    assert result.exit_code == 1


def test_stats(registry_file):
    result = runner.invoke(app, ["stats", "duelist", "--registry", str(registry_file)])
    assert result.exit_code == 0, result.output
    assert "carol" in result.output
    assert "crit_chance" in result.output

    missing = runner.invoke(app, ["stats", "ghost", "--registry", str(registry_file)])
    assert missing.exit_code == 1


def test_missing_registry(tmp_path):
    result = runner.invoke(app, ["stats", "knight", "--registry", str(tmp_path / "none.json")])
    assert result.exit_code == 1
