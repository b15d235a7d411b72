"""Tests for the REST endpoints and the command line entry point."""

import json

import pytest
from fastapi.testclient import TestClient

from caniuse_compat import server
from caniuse_compat.server import create_app, main


@pytest.fixture
def api(tools):
    return TestClient(create_app(tools))


@pytest.fixture
def css_project(tmp_path):
    (tmp_path / "style.css").write_text(".a { display: flex; }\n.b { color: var(--x); }\n")
    return tmp_path


class TestEndpoints:
    def test_root_and_health(self, api):
        assert "scan" in api.get("/").json()["endpoints"]
        health = api.get("/health").json()
        assert health["status"] == "healthy"
        assert health["default_baseline"] == "chrome-37"

    def test_targets(self, api):
        body = api.get("/targets").json()
        assert body["default_baseline"] == "chrome-37"
        assert {t["id"] for t in body["targets"]} >= {"chrome-37", "ie-11"}

    def test_scan(self, api, css_project):
        response = api.post("/scan", json={"path": str(css_project), "targets": ["chrome-37"]})
        assert response.status_code == 200
        assert response.json()["compatibility"]["overall_score"] == 50

    def test_scan_missing_path(self, api, tmp_path):
        response = api.post("/scan", json={"path": str(tmp_path / "nope")})
        assert response.status_code == 400

    def test_check(self, api):
        response = api.post("/check", json={"features": ["css-grid"], "targets": ["chrome-57"]})
        assert response.json()["summary"]["overall_score"] == 100

    def test_feature(self, api):
        body = api.get("/features/css-grid", params={"target": "ie-10"}).json()
        assert body["kind"] == "polyfill-required"
        assert body["supported"] is False

    def test_alternatives(self, api):
        body = api.get("/alternatives/css-grid").json()
        assert body["needs_alternatives"] is True

    def test_fixes_requires_features(self, api):
        response = api.post("/fixes", json={"features": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "No features specified for fixes"

    def test_configs(self, api):
        body = api.post("/configs", json={"config_type": "babel", "target": "ie-11"}).json()
        assert body["browser_info"] == {"browser": "ie", "version": "11"}

    def test_config_mutation(self, api):
        response = api.post("/config", json={"action": "add_polyfill", "polyfill": "css-grid"})
        assert response.json()["success"] is True
        feature = api.get("/features/css-grid").json()
        assert feature["kind"] == "polyfilled"

    def test_config_usage_error(self, api):
        response = api.post("/config", json={"action": "set_baseline"})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["action"] == "set_baseline"
        assert "baseline" in detail["message"]
        assert "suggestion" in detail


class TestCli:
    @pytest.fixture(autouse=True)
    def use_test_tools(self, monkeypatch, tools):
        monkeypatch.setattr(server.logging, "basicConfig", lambda **kwargs: None)
        monkeypatch.setattr(server, "CompatibilityTools", lambda project: tools)

    def test_targets(self, capsys):
        assert main(["targets"]) == 0
        assert json.loads(capsys.readouterr().out)["default_baseline"] == "chrome-37"

    def test_check(self, capsys):
        assert main(["check", "flexbox", "--target", "ie-11"]) == 0
        assert json.loads(capsys.readouterr().out)["summary"]["overall_score"] == 100

    def test_scan_passes_threshold(self, css_project, capsys):
        assert main(["scan", str(css_project), "--min-score", "50"]) == 0
        assert "PASSED" in capsys.readouterr().err

    def test_scan_fails_threshold(self, css_project, capsys):
        assert main(["scan", str(css_project), "--min-score", "60"]) == 1
        assert "FAILED" in capsys.readouterr().err

    def test_config_action(self, tools, capsys):
        assert main(["config", "add_polyfill", "--polyfill", "css-grid"]) == 0
        assert json.loads(capsys.readouterr().out)["current_polyfills"] == ["css-grid"]
        assert tools.config.is_polyfilled("css-grid")

    def test_config_usage_error_envelope(self, capsys):
        assert main(["config", "set_override", "--feature", "flexbox"]) == 2
        envelope = json.loads(capsys.readouterr().out)
        assert envelope["error"] is True
        assert envelope["action"] == "set_override"
        assert "override" in envelope["message"]

    def test_scan_missing_path(self, tmp_path):
        assert main(["scan", str(tmp_path / "nope")]) == 2
