import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from apidesign.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("APIDESIGN_LOCALES", raising=False)
    monkeypatch.delenv("APIDESIGN_OUTPUT_DIR", raising=False)


class TestCliGen:
    def test_gen_default_and_localized(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", str(FIXTURES / "calc.yaml"),
            "-o", str(tmp_path),
            "--locales", "en,nl",
        ])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "openapi.json",
            "openapi.yaml",
            "openapi_nl.json",
            "openapi_nl.yaml",
        ]
        en = json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8"))
        nl = json.loads((tmp_path / "openapi_nl.json").read_text(encoding="utf-8"))
        assert en["info"]["title"] == "Calculator"
        assert nl["info"]["title"] == "Rekenmachine"
        assert en["paths"]["/add/{x}"]["get"]["operationId"] == "calc#add"
        assert en["paths"]["/add/{x}"]["get"]["security"] == [{"basic": []}]
        assert en["paths"]["/health"]["get"]["security"] == []

    def test_gen_single_format(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", str(FIXTURES / "calc.yaml"),
            "-o", str(tmp_path),
            "--locales", "en",
            "--format", "yaml",
        ])

        assert result.exit_code == 0, result.output
        assert [p.name for p in tmp_path.iterdir()] == ["openapi.yaml"]

    def test_gen_without_locales_fails(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", str(FIXTURES / "calc.yaml"),
            "-o", str(tmp_path / "out"),
        ])

        assert result.exit_code != 0
        assert "no locales configured" in result.output
        assert not (tmp_path / "out").exists()

    def test_gen_locales_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APIDESIGN_LOCALES", "nl")
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(FIXTURES / "calc.yaml"), "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        doc = json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8"))
        assert doc["info"]["title"] == "Rekenmachine"

    def test_gen_locales_from_config(self, tmp_path):
        config = tmp_path / "apidesign.yaml"
        config.write_text(f"locales: en,fr\noutput_dir: {tmp_path / 'gen'}\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["gen", str(FIXTURES / "calc.yaml"), "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "gen" / "openapi_fr.yaml").exists()

    def test_gen_conflicting_routes(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", str(FIXTURES / "conflict.yaml"),
            "-o", str(tmp_path / "out"),
            "--locales", "en",
        ])

        assert result.exit_code != 0
        assert "GET /same" in result.output
        assert not (tmp_path / "out" / "openapi.json").exists()

    def test_gen_without_http_services(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", str(FIXTURES / "no_http.yaml"),
            "-o", str(tmp_path / "out"),
            "--locales", "en",
        ])

        assert result.exit_code == 0
        assert "No HTTP services" in result.output
        assert not (tmp_path / "out").exists()

    def test_gen_from_module(self, tmp_path, monkeypatch):
        monkeypatch.syspath_prepend(str(FIXTURES))
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen", "calc_design:design",
            "-o", str(tmp_path),
            "--locales", "en",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "openapi.json").exists()


class TestCliCheck:
    def test_check_ok(self):
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(FIXTURES / "calc.yaml")])

        assert result.exit_code == 0
        assert "calc: 1 services, 2 routes, 1 security schemes" in result.output

    def test_check_reports_design_errors(self, monkeypatch):
        monkeypatch.syspath_prepend(str(FIXTURES))
        runner = CliRunner()
        result = runner.invoke(main, ["check", "calc_design:broken"])

        assert result.exit_code == 1
        assert "cannot redefine security scheme" in result.output
