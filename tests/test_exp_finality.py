"""
Tests for the finality experiment wiring and CLI entry point.
"""

from config import load_config
from core.client import Web3ChainClient
from core.clock import SystemClock
from core.monitor import ConfirmationTracker
from core.network import ConnectionManager
from scenarios import exp_finality


def test_build_aggregator_wires_one_clock_and_config(dev_env):
    dev_env.update({"POLL_INTERVAL": "3", "INCLUSION_TIMEOUT": "45", "HEIGHT_RETRIES": "2"})
    config = load_config(dev_env)
    clock = SystemClock()

    aggregator = exp_finality.build_aggregator(
        config, "http://localhost:8545", connections=ConnectionManager(retries=0), clock=clock
    )

    runner = aggregator.runner
    assert isinstance(runner.client, Web3ChainClient)
    assert isinstance(runner.tracker, ConfirmationTracker)
    assert runner.clock is clock
    assert runner.tracker.clock is clock
    assert runner.client.clock is clock
    assert runner.tracker.poll_interval == 3.0
    assert runner.client.inclusion_timeout == 45.0
    assert runner.tracker.retry_policy.attempts == 2
    assert runner.client.injector.account.address == config.sender


def test_main_requires_endpoint(capsys):
    assert exp_finality.main([]) == 2
    assert "Usage" in capsys.readouterr().out


def test_main_reports_configuration_errors(monkeypatch, capsys):
    monkeypatch.setattr(exp_finality, "load_config", lambda: load_config({}))

    assert exp_finality.main(["http://localhost:8545"]) == 1
    assert "InvalidConfigurationError" in capsys.readouterr().out
