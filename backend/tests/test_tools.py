"""Tests for the tool handlers exposed over REST and the CLI."""

import asyncio

import pytest

from caniuse_compat.errors import ConfigUsageError

STYLESHEET = ".a { display: flex; }\n.b { color: var(--x); }\n"


class TestScanProject:
    def test_completed(self, tools, tmp_path):
        (tmp_path / "style.css").write_text(STYLESHEET)
        report = asyncio.run(tools.scan_project(str(tmp_path), targets=["chrome-37", "ie-11"]))

        assert report["status"] == "completed"
        assert report["project"]["css_files"] == 1
        assert report["project"]["features_detected"] == 2
        assert report["compatibility"]["targets"] == ["chrome-37", "ie-11"]
        assert report["compatibility"]["common_unsupported"] == ["css-variables"]
        assert report["compatibility"]["overall_score"] == 25
        assert report["detailed_results"]["target_results"]["ie-11"]["supported"] == 1
        assert report["recommendations"][0]["type"] == "critical"

    def test_no_features(self, tools, tmp_path):
        report = asyncio.run(tools.scan_project(str(tmp_path)))
        assert report["status"] == "no-features-detected"
        assert report["compatibility"]["overall_score"] == 100
        assert report["suggestions"]


class TestCheckCompatibility:
    def test_named_features(self, tools):
        result = asyncio.run(tools.check_compatibility(["flexbox", "css-grid"], targets=["chrome-37"]))

        assert result["status"] == "completed"
        assert result["summary"]["by_target"]["chrome-37"]["score"] == 50
        assert result["compatibility"]["chrome-37"]["details"][1]["kind"] == "none"
        assert result["recommendations"] == ["Use get_fixes with features: css-grid"]

    def test_features_from_files_are_merged(self, tools, tmp_path):
        path = tmp_path / "style.css"
        path.write_text(STYLESHEET)
        result = asyncio.run(tools.check_compatibility(["flexbox"], files=[str(path)], targets=["ie-11"]))
        assert result["features"] == ["flexbox", "css-variables"]

    def test_nothing_to_check(self, tools):
        result = asyncio.run(tools.check_compatibility())
        assert result["status"] == "no-features"
        assert any(t["id"] == "chrome-37" for t in result["available_targets"])


class TestSingleFeature:
    def test_check_feature_support(self, tools):
        result = asyncio.run(tools.check_feature_support("css-grid", "ie-11"))
        assert result["target"] == "ie-11"
        assert result["supported"] is True
        assert result["kind"] == "partial"
        assert result["provenance"] == "caniuse-data"

    def test_malformed_baseline_still_resolves(self, tools, write_config):
        write_config({"defaultBaseline": ["chrome-57"]})
        result = asyncio.run(tools.check_feature_support("flexbox"))
        assert result["target"] == "chrome-37"
        assert result["supported"] is True
        assert tools.generate_configs("babel")["browser_info"] == {"browser": "chrome", "version": "37"}

    def test_alternatives_for_unsupported(self, tools):
        result = asyncio.run(tools.suggest_alternatives("css-variables"))
        assert result["needs_alternatives"] is True
        assert "Sass variables" in result["alternatives"]
        assert "chrome 37" in result["message"]

    def test_generic_alternatives(self, tools):
        result = asyncio.run(tools.suggest_alternatives("promises", "ie-11"))
        assert result["alternatives"][0] == "Consider using a polyfill"

    def test_no_alternatives_when_supported(self, tools):
        result = asyncio.run(tools.suggest_alternatives("flexbox", "chrome-37"))
        assert result["needs_alternatives"] is False
        assert "alternatives" not in result


class TestRemediation:
    def test_get_fixes(self, tools):
        result = tools.get_fixes(["css-grid", "promises"], priority="critical")
        assert result["summary"]["total"] == 2
        assert result["quick_start"]

    def test_generate_all_configs(self, tools):
        result = tools.generate_configs()
        assert result["target"] == "chrome-37"
        assert result["browser_info"] == {"browser": "chrome", "version": "37"}
        assert [step["step"] for step in result["installation"]] == [
            "Install Babel dependencies",
            "Install PostCSS dependencies",
        ]

    def test_generate_single_config(self, tools):
        assert len(tools.generate_configs("postcss", "ie-11")["installation"]) == 1
        assert tools.generate_configs("ci")["installation"] == []


class TestManageConfig:
    def test_view(self, tools):
        result = tools.manage_config("view")
        assert result["current_config"]["defaultBaseline"] == "chrome-37"
        assert "ie-11" in result["available_targets"]

    def test_set_baseline_changes_default_target(self, tools):
        tools.manage_config("set_baseline", baseline="ie-11")
        result = asyncio.run(tools.check_feature_support("css-variables"))
        assert result["target"] == "ie-11"

    def test_polyfill_round_trip(self, tools):
        added = tools.manage_config("add_polyfill", polyfill="css-grid")
        assert added["current_polyfills"] == ["css-grid"]
        removed = tools.manage_config("remove_polyfill", polyfill="css-grid")
        assert removed["current_polyfills"] == []

    def test_set_override(self, tools):
        tools.manage_config("set_override", feature="flexbox", override="unsupported")
        result = asyncio.run(tools.check_feature_support("flexbox", "chrome-37"))
        assert result["supported"] is False
        assert result["provenance"] == "config-override"

    def test_invalid_override_value(self, tools):
        with pytest.raises(ConfigUsageError, match="override must be one of"):
            tools.manage_config("set_override", feature="flexbox", override="maybe")

    def test_add_target(self, tools):
        result = tools.manage_config("add_target", target_name="kiosk", browser="chrome", version="49")
        assert result["browser_config"] == {"browser": "chrome", "version": "49"}
        assert "kiosk" in tools.manage_config("view")["available_targets"]

    def test_missing_parameters(self, tools):
        with pytest.raises(ConfigUsageError) as exc_info:
            tools.manage_config("add_target", target_name="kiosk", browser="chrome")
        assert exc_info.value.action == "add_target"
        assert "version" in str(exc_info.value)

    def test_unknown_action(self, tools):
        with pytest.raises(ConfigUsageError, match="Unknown config action"):
            tools.manage_config("explode")

    def test_create_template_and_reset(self, tools, tmp_path):
        result = tools.manage_config("create_template")
        assert result["config_file"] == str(tmp_path / ".caniuse-config.json")

        reset = tools.manage_config("reset")
        assert reset["new_config"]["polyfills"] == []
        assert reset["new_config"]["$schema"]
