"""
Feature Support Resolver

Combines config overrides, polyfills and caniuse support data into a single
SupportDecision per (feature, browser, version).
"""

import logging
from types import MappingProxyType
from typing import Optional

from .config import ConfigResolver
from .matrix import CanIUseClient, get_version_support_code
from .models import Provenance, SupportDecision, SupportKind, SupportStatus

logger = logging.getLogger(__name__)


SUPPORT_CODES = MappingProxyType({
    "y": SupportStatus(True, SupportKind.FULL, "Full support"),
    "a": SupportStatus(True, SupportKind.PARTIAL, "Partial support"),
    "n": SupportStatus(False, SupportKind.NONE, "No support"),
    "d": SupportStatus(False, SupportKind.DISABLED, "Disabled by default"),
    "p": SupportStatus(False, SupportKind.POLYFILL_REQUIRED, "Requires polyfill"),
    "u": SupportStatus(False, SupportKind.UNKNOWN, "Support unknown"),
})
UNKNOWN_STATUS = SupportStatus(False, SupportKind.UNKNOWN, "Unknown support status")

# absent data counts as no support
ABSENT_CODE = "n"


def support_status(code: Optional[str]) -> SupportStatus:
    """Map a caniuse cell ("y", "a x #2", ...) to a SupportStatus"""
    if not code or not code.strip():
        return UNKNOWN_STATUS
    return SUPPORT_CODES.get(code.split()[0], UNKNOWN_STATUS)


class FeatureSupportResolver:
    def __init__(self, config: ConfigResolver, client: CanIUseClient):
        self.config = config
        self.client = client

    async def resolve(self, feature: str, browser: str, version: str) -> SupportDecision:
        """Decide support for one feature; errors come back as decisions.

        Precedence: config override, then polyfill upgrade of an
        unsupported raw status, then the raw caniuse status.
        """
        try:
            override = self.config.get_override(feature)
            if override:
                forced = override == "supported"
                return SupportDecision(
                    feature=feature,
                    browser=browser,
                    version=version,
                    supported=forced,
                    kind=SupportKind.OVERRIDE if forced else SupportKind.OVERRIDE_DISABLED,
                    description=(
                        "Forced supported by configuration" if forced
                        else "Forced unsupported by configuration"
                    ),
                    provenance=Provenance.CONFIG_OVERRIDE,
                )

            matrix = await self.client.get_support_matrix(feature)
            raw_value = get_version_support_code(
                matrix, browser, version, self.config.get_fallback_versions(browser)
            )
            status = support_status(raw_value or ABSENT_CODE)

            if not status.supported and self.config.is_polyfilled(feature):
                return SupportDecision(
                    feature=feature,
                    browser=browser,
                    version=version,
                    supported=True,
                    kind=SupportKind.POLYFILLED,
                    description="Supported via polyfill",
                    provenance=Provenance.POLYFILL,
                    raw_value=raw_value,
                    original_support=status,
                )

            return SupportDecision(
                feature=feature,
                browser=browser,
                version=version,
                supported=status.supported,
                kind=status.kind,
                description=status.description,
                provenance=Provenance.CANIUSE_DATA,
                raw_value=raw_value,
            )

        except Exception as e:
            logger.warning("Could not resolve %s for %s %s: %s", feature, browser, version, e)
            return SupportDecision(
                feature=feature,
                browser=browser,
                version=version,
                supported=False,
                kind=SupportKind.ERROR,
                description=f"Error checking support: {e}",
                provenance=Provenance.ERROR,
            )

    async def resolve_for_target(self, feature: str, target: Optional[str]) -> SupportDecision:
        resolved = self.config.resolve_target(target)
        return await self.resolve(feature, resolved.browser, resolved.version)
