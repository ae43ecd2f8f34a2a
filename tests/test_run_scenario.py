import json

import pytest

import run_scenario


@pytest.fixture
def scenario_file(tmp_path):
    config = {
        "name": "short_hop",
        "description": "One up call two floors above the lobby.",
        "building": {"num_floors": 5, "initial_floor": 0},
        "duration": 10,
        "events": [
            {"time": 0, "type": "call", "floor": 2, "direction": "up"},
            {"time": 1, "type": "request", "floor": 9},
            {"time": 1, "type": "teleport", "floor": 1},
        ],
    }
    path = tmp_path / "short_hop.json"
    path.write_text(json.dumps(config))
    return path


def test_build_simulation_defaults():
    simulation = run_scenario.build_simulation({})
    assert simulation.dispatcher.num_floors == 10
    assert simulation.dispatcher.current_floor == 0
    assert simulation.door_dwell_ticks == 1
    assert simulation.dispatcher.timing.move_units == 3.0


def test_build_simulation_rejects_bad_building():
    with pytest.raises(ValueError):
        run_scenario.build_simulation({"building": {"num_floors": 3, "initial_floor": 5}})


def test_main_writes_results(scenario_file, tmp_path, capsys):
    output = tmp_path / "out" / "results.json"
    run_scenario.main([str(scenario_file), "--output", str(output)])

    printed = capsys.readouterr().out
    assert "Scenario: short_hop" in printed
    assert f"Saved results to {output}" in printed

    results = json.loads(output.read_text())
    assert results["final_metrics"]["served_calls"] == 1
    assert results["final_metrics"]["served_requests"] == 0
    assert results["final_cabin"]["current_floor"] == 2
    assert results["final_cabin"]["doors_open"] is False
    assert len(results["trace"]) == 10
    assert [entry["current_floor"] for entry in results["trace"][:3]] == [1, 2, 2]
    assert results["trace"][2]["doors_open"] is True
