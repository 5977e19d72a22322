import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from api_doc_synth.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"
ROUTES = PROJECT / "routes.json"
CONFIG = PROJECT / "config.yaml"


class TestCliGenerate:
    def test_generate_writes_both_files(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(ROUTES), "-c", str(CONFIG), "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Found 7 routes" in result.output
        assert "Documented 3 paths from 6 routes." in result.output
        document = yaml.safe_load((tmp_path / "openapi.yml").read_text(encoding="utf-8"))
        assert document["info"]["title"] == "Demo API"
        assert json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8")) == document

    def test_generate_single_format(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(ROUTES), "-c", str(CONFIG), "-o", str(tmp_path), "--format", "json",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "openapi.json").exists()
        assert not (tmp_path / "openapi.yml").exists()

    def test_generate_no_routes(self, tmp_path):
        routes = tmp_path / "routes.json"
        routes.write_text('[{"pattern": "/internal/jobs", "methods": ["GET"]}]', encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(routes), "-c", str(CONFIG), "-o", str(tmp_path / "out")])

        assert result.exit_code != 0
        assert "No routes were processed." in result.output
        assert not (tmp_path / "out").exists()

    def test_invalid_route_table(self, tmp_path):
        routes = tmp_path / "routes.json"
        routes.write_text('"nothing here"', encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(routes), "-c", str(CONFIG)])

        assert result.exit_code != 0
        assert "Invalid route table" in result.output

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("preferredPutPatch: POST\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(ROUTES), "-c", str(config)])

        assert result.exit_code != 0
        assert "Invalid config" in result.output


class TestCliShow:
    def test_show_yaml(self):
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(ROUTES), "-c", str(CONFIG), "--env", "development"])

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(result.output)
        assert set(document["paths"]) == {"/api/users", "/api/users/{id}", "/health"}

    def test_show_json(self):
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(ROUTES), "-c", str(CONFIG), "--json", "--env", "development"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["openapi"] == "3.0.0"

    def test_show_production_reads_written_file(self, tmp_path):
        (tmp_path / "openapi.json").write_text('{"openapi": "3.0.0", "paths": {}, "x-cached": true}', encoding="utf-8")
        config = tmp_path / "config.yaml"
        config.write_text("path: .\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(ROUTES), "-c", str(config), "--json"], env={"APP_ENV": "production"})

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["x-cached"] is True

    def test_show_production_without_file(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("path: .\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(ROUTES), "-c", str(config), "--env", "production"])

        assert result.exit_code != 0


class TestCliSchemas:
    def test_lists_registry(self):
        runner = CliRunner()
        result = runner.invoke(main, ["schemas", "-c", str(CONFIG)])

        assert result.exit_code == 0, result.output
        assert "Found 11 schemas:" in result.output
        assert "  User: User (Model)" in result.output
        assert "  PostStatus: Publication state of a post" in result.output
