"""
Tests for CLI commands.

Uses typer's CliRunner against flow files written to a temporary directory.
"""

import textwrap

import pytest
import typer
from typer.testing import CliRunner

from databuilder.cli.main import app
from databuilder.cli.run import parse_data_option

runner = CliRunner()

BUILDERS = textwrap.dedent(
    """
    from databuilder import BuilderError


    def base_price(context):
        return context.value("sku_price") * context.value("quantity")


    def total(context):
        if context.value("base") > 1000:
            raise BuilderError("order too large", details={"limit": 1000})
        return context.value("base") + 5
    """
)

FLOW = textwrap.dedent(
    """
    name: pricing
    target: total
    looping: true
    layers:
      - - {name: base_price, consumes: [sku_price, quantity], produces: base, builder: "builders.py:base_price"}
      - - {name: add_shipping, consumes: [base], produces: total, builder: "builders.py:total"}
    """
)


@pytest.fixture
def project(tmp_path, restore_logger):
    (tmp_path / "builders.py").write_text(BUILDERS)
    (tmp_path / "pricing.yaml").write_text(FLOW)
    return tmp_path


class TestVersion:
    """Tests for --version flag."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "databuilder version 0.1.0" in result.output

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "databuilder version" in result.output


class TestHelp:
    """Tests for help output."""

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "layers" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "databuilder" in result.output.lower()

    def test_run_help(self):
        result = runner.invoke(app, ["run", "--help"])
        assert result.exit_code == 0
        assert "--data" in result.output


class TestParseDataOption:
    def test_values_parsed_as_yaml(self):
        assert parse_data_option("quantity=3").value == 3
        assert parse_data_option("flag=true").value is True
        assert parse_data_option("tags=[a, b]").value == ["a", "b"]
        assert parse_data_option("sku=ABC-1").value == "ABC-1"

    def test_empty_value_is_none(self):
        item = parse_data_option("marker=")

        assert item.name == "marker"
        assert item.value is None

    def test_unparseable_value_kept_as_string(self):
        assert parse_data_option("raw=[unclosed").value == "[unclosed"

    @pytest.mark.parametrize("option", ["no_equals", "=3", " =3"])
    def test_invalid(self, option):
        with pytest.raises(typer.BadParameter):
            parse_data_option(option)


class TestRun:
    """Tests for run command."""

    def test_run_produces_target(self, project):
        result = runner.invoke(
            app,
            ["run", str(project / "pricing.yaml"), "-D", "sku_price=10", "-D", "quantity=3", "-d", str(project)],
        )

        assert result.exit_code == 0, result.output
        assert "produced 2 item(s)" in result.output
        assert "add_shipping" in result.output
        assert "35" in result.output
        assert "was not produced" not in result.output

    def test_run_reports_missing_target(self, project):
        result = runner.invoke(app, ["run", str(project / "pricing.yaml"), "-D", "sku_price=10", "-d", str(project)])

        assert result.exit_code == 0, result.output
        assert "produced 0 item(s)" in result.output
        assert "Target 'total' was not produced" in result.output

    def test_summary_line_is_not_wrapped(self, project):
        long_name = "pricing_" + "x" * 70
        (project / "long.yaml").write_text(FLOW.replace("name: pricing", f"name: {long_name}"))

        result = runner.invoke(
            app,
            ["run", str(project / "long.yaml"), "-D", "sku_price=10", "-D", "quantity=3", "-d", str(project)],
        )

        assert result.exit_code == 0, result.output
        assert f"Flow '{long_name}' produced 2 item(s)" in [line.strip() for line in result.output.splitlines()]

    def test_builder_failure_exits_with_error(self, project):
        result = runner.invoke(
            app,
            ["run", str(project / "pricing.yaml"), "-D", "sku_price=500", "-D", "quantity=3", "-d", str(project)],
        )

        assert result.exit_code == 1
        assert "BUILDER_EXECUTION_ERROR" in result.output
        assert "'limit': 1000" in result.output

    def test_missing_flow_file(self, project):
        result = runner.invoke(app, ["run", str(project / "absent.yaml"), "-d", str(project)])

        assert result.exit_code == 1
        assert "Flow file not found" in result.output

    def test_uses_project_config(self, project):
        (project / "config.yaml").write_text(
            "executor:\n  log_executions: false\nlogging:\n  level: ERROR\n  console_type: plain\n"
        )

        result = runner.invoke(
            app,
            ["run", str(project / "pricing.yaml"), "-D", "sku_price=1", "-D", "quantity=1", "-d", str(project)],
        )

        assert result.exit_code == 0, result.output
        assert "produced 2 item(s)" in result.output

    def test_invalid_project_config(self, project):
        (project / "config.yaml").write_text("executor:\n  threads: 4\n")

        result = runner.invoke(app, ["run", str(project / "pricing.yaml"), "-d", str(project)])

        assert result.exit_code == 1
        assert "Unknown executor option" in result.output


class TestLayers:
    """Tests for layers command."""

    def test_layers_table(self, project):
        result = runner.invoke(app, ["layers", str(project / "pricing.yaml")])

        assert result.exit_code == 0, result.output
        assert "pricing" in result.output
        assert "target: total" in result.output
        assert "base_price" in result.output
        assert "add_shipping" in result.output

    def test_layers_missing_file(self, tmp_path):
        result = runner.invoke(app, ["layers", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1
        assert "Flow file not found" in result.output
