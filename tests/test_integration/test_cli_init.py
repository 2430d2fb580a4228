"""Integration tests for ``yardgen init``.

The written template must load back through the config module and drive
``yardgen run`` without changes.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from yardgen.app import app, register_commands
from yardgen.config import load_config
from yardgen.exceptions import ConfigError
from yardgen.models import YardgenConfig


@pytest.fixture
def yardgen_app() -> typer.Typer:
    register_commands()
    return app


class TestInitCommand:
    """Writing, refusing and printing the default template."""

    def test_writes_default_file(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(yardgen_app, ["--no-color", "init"])
        assert result.exit_code == 0, result.output
        path = isolated_config / "yardgen.yml"
        assert path.is_file()
        assert "Created yardgen.yml" in result.stderr
        assert result.stdout == ""
        assert "→ Document your code: yardgen run --dry --config yardgen.yml lib" in result.stderr

    def test_template_round_trips(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        cli_runner.invoke(yardgen_app, ["init"])
        config = load_config(isolated_config / "yardgen.yml")
        assert config.emit == YardgenConfig().emit
        assert config.filter.files.exclude == ["spec"]

    def test_refuses_existing_file(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        path = isolated_config / "yardgen.yml"
        path.write_text("emit:\n  header: false\n")
        result = cli_runner.invoke(yardgen_app, ["init"])
        assert isinstance(result.exception, ConfigError)
        assert "use --force to overwrite" in str(result.exception)
        assert path.read_text() == "emit:\n  header: false\n"

    def test_force_overwrites(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        path = isolated_config / "yardgen.yml"
        path.write_text("emit:\n  header: false\n")
        result = cli_runner.invoke(yardgen_app, ["init", "--force"])
        assert result.exit_code == 0, result.output
        assert load_config(path).emit.header is True

    def test_custom_location(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(yardgen_app, ["init", "--config", ".config/yardgen.yml"])
        assert result.exit_code == 0, result.output
        assert (isolated_config / ".config" / "yardgen.yml").is_file()

    def test_stdout(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(yardgen_app, ["init", "--stdout"])
        assert result.exit_code == 0, result.output
        assert "emit:" in result.stdout
        assert "signatures:" in result.stdout
        assert not (isolated_config / "yardgen.yml").exists()


class TestInitThenRun:
    """A fresh template drives a run."""

    def test_spec_directory_is_skipped(
        self, cli_runner: CliRunner, yardgen_app: typer.Typer, isolated_config: Path
    ) -> None:
        cli_runner.invoke(yardgen_app, ["init"])
        (isolated_config / "lib").mkdir()
        (isolated_config / "spec").mkdir()
        (isolated_config / "lib" / "a.rb").write_text("# Documented.\ndef a; end\n")
        (isolated_config / "spec" / "a_spec.rb").write_text("def helper; end\n")

        result = cli_runner.invoke(yardgen_app, ["run", "--dry", "lib", "spec"])
        assert result.exit_code == 0, result.output
        assert "yardgen: OK (1 files checked)" in result.stdout
