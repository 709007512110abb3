import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from swagger_attributes.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliGenerate:
    def test_generate_json(self, tmp_path):
        output = tmp_path / "docs" / "api.json"
        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--app", "sample_app:routes", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert f"Output file: {output}" in result.output
        assert "Format: JSON" in result.output
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["paths"]["/users/{id}"]["get"]["summary"] == "Show user"

    def test_generate_yaml_adjusts_extension(self, tmp_path):
        output = tmp_path / "api.json"
        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--app", "sample_app:routes", "-o", str(output), "--format", "YML"])

        assert result.exit_code == 0, result.output
        assert "Format: YML" in result.output
        assert not output.exists()
        document = yaml.safe_load((tmp_path / "api.yaml").read_text(encoding="utf-8"))
        assert document["openapi"] == "3.0.0"

    def test_generate_with_config(self, tmp_path):
        output = tmp_path / "api"
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", "--app", "sample_app:routes",
            "-o", str(output),
            "--config", str(FIXTURES / "config.yaml"),
        ])

        assert result.exit_code == 0, result.output
        assert "Format: YAML" in result.output
        document = yaml.safe_load((tmp_path / "api.yaml").read_text(encoding="utf-8"))
        assert document["info"]["title"] == "Sample API"
        assert document["servers"] == [{"url": "https://api.example.com", "description": "Production"}]

    def test_invalid_format_is_usage_error(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--app", "sample_app:routes", "--format", "xml"])
        assert result.exit_code == 2

    def test_unknown_app_fails(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--app", "sample_app:nothing_here", "-o", str(tmp_path / "api.json")])

        assert result.exit_code == 1
        assert "Error generating documentation" in result.output

    @patch("swagger_attributes.cli.SwaggerGenerator")
    def test_generation_error_fails(self, MockGen, tmp_path):
        mock_gen = MagicMock()
        mock_gen.generate.side_effect = OSError("disk full")
        MockGen.return_value = mock_gen

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--app", "sample_app:routes", "-o", str(tmp_path / "api.json")])

        assert result.exit_code == 1
        assert "Error generating documentation: disk full" in result.output


class TestCliUi:
    def test_writes_swagger_page(self, tmp_path):
        output = tmp_path / "site" / "index.html"
        runner = CliRunner()
        result = runner.invoke(main, ["ui", "--doc-url", "/api.json", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "SwaggerUIBundle" in output.read_text(encoding="utf-8")

    def test_viewer_from_config(self, tmp_path):
        output = tmp_path / "index.html"
        runner = CliRunner()
        result = runner.invoke(main, [
            "ui", "--doc-url", "/api.yaml", "-o", str(output), "--config", str(FIXTURES / "config.yaml"),
        ])

        assert result.exit_code == 0, result.output
        page = output.read_text(encoding="utf-8")
        assert "Redoc.init" in page
        assert "<title>Sample API</title>" in page

    def test_default_output_under_ui_route(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(main, ["ui", "--doc-url", "/api.json"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "api" / "documentation" / "index.html").is_file()

    def test_viewer_disabled_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SWAGGER_ENABLE_UI", "false")
        runner = CliRunner()
        result = runner.invoke(main, ["ui", "--doc-url", "/api.json", "-o", str(tmp_path / "index.html")])

        assert result.exit_code == 1
        assert "disabled" in result.output
        assert not (tmp_path / "index.html").exists()

    def test_disabled_viewer(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("enable_ui: false\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["ui", "--doc-url", "/api.json", "-o", str(tmp_path / "index.html"), "--config", str(config)])

        assert result.exit_code == 1
        assert "disabled" in result.output
        assert not (tmp_path / "index.html").exists()
