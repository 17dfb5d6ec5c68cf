from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from oasproto import __version__
from oasproto.cli.app import app

runner = CliRunner()


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.integration
def test_check_command_exit_codes(sample_project: Path) -> None:
    source = sample_project / "openapi.yaml"
    output = sample_project / "rewritten.json"

    assert runner.invoke(app, ["check", str(source), "--json"]).exit_code == 1
    rewritten = runner.invoke(app, ["rewrite", str(source), "-p", str(sample_project), "-o", str(output), "--json"])
    assert rewritten.exit_code == 0
    assert output.exists()
    assert runner.invoke(app, ["check", str(output), "--json"]).exit_code == 0


def test_rewrite_command_rejects_unknown_format(sample_project: Path) -> None:
    result = runner.invoke(app, ["rewrite", str(sample_project / "openapi.yaml"), "--format", "toml"])

    assert result.exit_code == 2
