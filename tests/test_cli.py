"""Tests for the command-line interface."""
from click.testing import CliRunner

from esgchampions.__main__ import cli
from esgchampions.core.config.settings import ChampionsConfig


def test_create_admin(tmp_path):
    config_path = tmp_path / "champions.yaml"
    ChampionsConfig(db_path=str(tmp_path / "champions.db")).to_yaml(config_path)
    runner = CliRunner()
    args = ["create-admin", "-c", str(config_path), "--email", "Ops@Example.com", "--name", "Ops Lead"]

    result = runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Created admin #1: Ops Lead <ops@example.com>" in result.output

    result = runner.invoke(cli, args)
    assert result.exit_code == 1
    assert "Email already registered" in result.output

    result = runner.invoke(cli, ["status", "-c", str(config_path)])
    assert result.exit_code == 0, result.output
    assert "Champions: 1" in result.output
