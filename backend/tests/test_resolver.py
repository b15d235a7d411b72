"""Tests for the support decision precedence: override, polyfill, data."""

import asyncio

import pytest

from caniuse_compat.config import ConfigResolver
from caniuse_compat.models import Provenance, SupportKind
from caniuse_compat.resolver import FeatureSupportResolver, support_status


@pytest.fixture
def resolver(config, client):
    return FeatureSupportResolver(config, client)


def resolve(resolver, feature, browser, version):
    return asyncio.run(resolver.resolve(feature, browser, version))


class TestSupportStatus:
    @pytest.mark.parametrize("code, supported, kind", [
        ("y", True, SupportKind.FULL),
        ("y x", True, SupportKind.FULL),
        ("a x #2", True, SupportKind.PARTIAL),
        ("n", False, SupportKind.NONE),
        ("d #1", False, SupportKind.DISABLED),
        ("p", False, SupportKind.POLYFILL_REQUIRED),
        ("u", False, SupportKind.UNKNOWN),
        ("z", False, SupportKind.UNKNOWN),
        ("", False, SupportKind.UNKNOWN),
        (None, False, SupportKind.UNKNOWN),
    ])
    def test_first_token_decides(self, code, supported, kind):
        status = support_status(code)
        assert status.supported is supported
        assert status.kind == kind


class TestResolve:
    def test_caniuse_data(self, resolver):
        decision = resolve(resolver, "flexbox", "chrome", "37")
        assert decision.supported
        assert decision.kind == SupportKind.FULL
        assert decision.provenance == Provenance.CANIUSE_DATA
        assert decision.raw_value == "y"

    def test_partial_with_notes_counts_as_supported(self, resolver):
        decision = resolve(resolver, "css-grid", "ie", "11")
        assert decision.supported
        assert decision.kind == SupportKind.PARTIAL
        assert decision.raw_value == "a x #2"

    def test_absent_browser_is_no_support(self, resolver):
        decision = resolve(resolver, "promises", "safari", "12")
        assert not decision.supported
        assert decision.kind == SupportKind.NONE
        assert decision.raw_value is None

    def test_closest_version_used_when_no_fallback_hits(self, tmp_path, client, write_config):
        write_config({"browserFallbacks": {"chrome": []}})
        resolver = FeatureSupportResolver(ConfigResolver(str(tmp_path), environ={}), client)

        decision = resolve(resolver, "css-grid", "chrome", "60")
        assert decision.supported
        assert decision.raw_value == "y"

    def test_default_fallback_applies_before_closest(self, resolver):
        """chrome 60 is absent and the default chrome fallback is 37"""
        decision = resolve(resolver, "css-grid", "chrome", "60")
        assert not decision.supported
        assert decision.raw_value == "n"

    def test_override_beats_data(self, resolver, config):
        config.set_override("flexbox", "unsupported")
        decision = resolve(resolver, "flexbox", "chrome", "37")
        assert not decision.supported
        assert decision.kind == SupportKind.OVERRIDE_DISABLED
        assert decision.provenance == Provenance.CONFIG_OVERRIDE

    def test_override_skips_fetch(self, resolver, config, fake_fetch):
        config.set_override("not-in-caniuse", "supported")
        decision = resolve(resolver, "not-in-caniuse", "ie", "11")
        assert decision.supported
        assert decision.kind == SupportKind.OVERRIDE
        assert fake_fetch.calls == []

    def test_override_beats_polyfill(self, resolver, config):
        config.add_polyfill("css-variables")
        config.set_override("css-variables", "unsupported")
        decision = resolve(resolver, "css-variables", "ie", "11")
        assert not decision.supported
        assert decision.provenance == Provenance.CONFIG_OVERRIDE

    def test_polyfill_upgrades_unsupported(self, resolver, config):
        config.add_polyfill("css-grid")
        decision = resolve(resolver, "css-grid", "chrome", "37")

        assert decision.supported
        assert decision.kind == SupportKind.POLYFILLED
        assert decision.provenance == Provenance.POLYFILL
        assert decision.raw_value == "n"
        assert decision.original_support.supported is False
        assert decision.original_support.kind == SupportKind.NONE

    def test_polyfill_leaves_supported_alone(self, resolver, config):
        config.add_polyfill("flexbox")
        decision = resolve(resolver, "flexbox", "chrome", "37")
        assert decision.provenance == Provenance.CANIUSE_DATA
        assert decision.original_support is None

    def test_fetch_failure_becomes_error_decision(self, resolver, caplog):
        decision = resolve(resolver, "no-such-feature", "chrome", "37")
        assert decision.is_error
        assert not decision.supported
        assert decision.provenance == Provenance.ERROR
        assert "no-such-feature" in decision.description
        assert "Could not resolve no-such-feature" in caplog.text


class TestResolveForTarget:
    def test_target_token(self, resolver):
        decision = asyncio.run(resolver.resolve_for_target("css-variables", "chrome-49"))
        assert (decision.browser, decision.version) == ("chrome", "49")
        assert decision.supported

    def test_missing_target_uses_default_baseline(self, resolver):
        decision = asyncio.run(resolver.resolve_for_target("css-variables", None))
        assert (decision.browser, decision.version) == ("chrome", "37")
        assert not decision.supported
