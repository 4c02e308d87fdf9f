"""Tests for the headless command-line runner."""

from dynasty.config import BalanceConfig, GameOverThresholds
from dynasty.interface.cli import main, run_simulation


class TestRunSimulation:

    def test_quiet_run_survives(self, config):
        state, results, orchestrator = run_simulation(5, seed=3, config=config)

        assert len(results) == 5
        assert orchestrator.verdict is None
        assert state.turn_number == 6

    def test_same_seed_same_outcome(self, config):
        first, first_results, _ = run_simulation(25, seed=11, config=config, pressure=4)
        second, second_results, _ = run_simulation(25, seed=11, config=config, pressure=4)

        assert len(first_results) == len(second_results)
        assert first.snapshot() == second.snapshot()

    def test_stops_at_verdict(self):
        config = BalanceConfig(thresholds=GameOverThresholds(
            revolution_stability=45,
            revolution_popular_support=50,
        ))

        state, results, orchestrator = run_simulation(10, seed=1, config=config, pressure=10)

        assert results[-1].game_over
        assert orchestrator.verdict.condition.value == "revolution_overthrow"
        assert len(results) < 10


class TestMain:

    def test_exit_code_survived(self):
        assert main(["--turns", "3", "--seed", "5", "--briefing"]) == 0

    def test_exit_code_verdict(self, tmp_path):
        path = tmp_path / "balance.yaml"
        path.write_text("thresholds:\n  nuclear_world_tension: 0\n", encoding="utf-8")

        assert main(["--turns", "3", "--config", str(path)]) == 1
