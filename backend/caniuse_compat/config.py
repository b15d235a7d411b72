"""
Configuration Resolver

Merges built-in defaults, the persisted project file and environment
variables into one effective configuration, and resolves target tokens
such as "chrome-57" into browser/version pairs.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .lookups import TARGET_DESCRIPTIONS
from .models import BrowserVersion

logger = logging.getLogger(__name__)


CONFIG_FILENAME = ".caniuse-config.json"

ENV_DEFAULT_BASELINE = "CANIUSE_DEFAULT_BASELINE"
ENV_POLYFILLS = "CANIUSE_POLYFILLS"
ENV_OVERRIDES = "CANIUSE_OVERRIDES"

DEFAULT_BASELINE = "chrome-37"
FINAL_FALLBACK_TARGET = BrowserVersion("chrome", "37")

BUILT_IN_TARGETS = MappingProxyType({
    "chrome-37": BrowserVersion("chrome", "37"),
    "chrome-latest": BrowserVersion("chrome", "latest"),
    "firefox-esr": BrowserVersion("firefox", "78"),
    "safari-12": BrowserVersion("safari", "12"),
    "ie-11": BrowserVersion("ie", "11"),
    "edge-legacy": BrowserVersion("edge", "18"),
})

OVERRIDE_VALUES = ("supported", "unsupported")

TARGET_PATTERN = re.compile(r"^([a-z_]+)-(.+)$")

# Persisted document keys and how each one merges across layers
SCALAR_FIELDS = ("defaultBaseline",)
LIST_FIELDS = ("polyfills",)
MAP_FIELDS = ("customTargets", "overrides", "browserFallbacks")


def default_document() -> Dict[str, Any]:
    return {
        "defaultBaseline": DEFAULT_BASELINE,
        "customTargets": {},
        "polyfills": [],
        "overrides": {},
        "browserFallbacks": {
            "chrome": ["37"],
            "firefox": ["78"],
            "safari": ["12"],
            "ie": ["11"],
            "edge": ["18"],
        },
    }


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge config documents, lowest precedence first.

    Per-field strategy:
      - scalars (defaultBaseline): replaced by the last layer that sets them
        to a non-empty string
      - lists (polyfills): ordered union, duplicates dropped
      - maps (customTargets, overrides, browserFallbacks): key-wise update,
        later layers win per key; a browserFallbacks entry is replaced whole
      - unknown keys: carried through, later layers win
    """
    merged: Dict[str, Any] = {"defaultBaseline": None}
    for name in LIST_FIELDS:
        merged[name] = []
    for name in MAP_FIELDS:
        merged[name] = {}

    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if key in SCALAR_FIELDS:
                if isinstance(value, str) and value:
                    merged[key] = value
                elif value not in (None, ""):
                    logger.warning("Ignoring non-string value for %s: %r", key, value)
            elif key in LIST_FIELDS:
                for item in _as_list(value):
                    if item not in merged[key]:
                        merged[key].append(item)
            elif key in MAP_FIELDS:
                if isinstance(value, Mapping):
                    merged[key].update(value)
                elif value is not None:
                    logger.warning("Ignoring non-object value for %s", key)
            else:
                merged[key] = value

    return merged


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass
class EffectiveConfig:
    default_baseline: str
    custom_targets: Dict[str, BrowserVersion] = field(default_factory=dict)
    polyfills: List[str] = field(default_factory=list)
    overrides: Dict[str, str] = field(default_factory=dict)
    browser_fallbacks: Dict[str, List[str]] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "EffectiveConfig":
        custom_targets = {}
        for name, spec in (doc.get("customTargets") or {}).items():
            target = _parse_target_spec(spec)
            if target is None:
                logger.warning("Ignoring malformed custom target %r: %r", name, spec)
                continue
            custom_targets[name] = target

        fallbacks = {
            browser: [str(v) for v in _as_list(versions)]
            for browser, versions in (doc.get("browserFallbacks") or {}).items()
        }

        known = set(SCALAR_FIELDS + LIST_FIELDS + MAP_FIELDS)
        return cls(
            default_baseline=doc.get("defaultBaseline") or DEFAULT_BASELINE,
            custom_targets=custom_targets,
            polyfills=[str(p) for p in doc.get("polyfills") or []],
            overrides={str(k): v for k, v in (doc.get("overrides") or {}).items()},
            browser_fallbacks=fallbacks,
            extras={k: v for k, v in doc.items() if k not in known},
        )

    def to_document(self) -> Dict[str, Any]:
        doc = dict(self.extras)
        doc.update({
            "defaultBaseline": self.default_baseline,
            "customTargets": {
                name: {"browser": t.browser, "version": t.version}
                for name, t in self.custom_targets.items()
            },
            "polyfills": list(self.polyfills),
            "overrides": dict(self.overrides),
            "browserFallbacks": {b: list(v) for b, v in self.browser_fallbacks.items()},
        })
        return doc


def _parse_target_spec(spec: Any) -> Optional[BrowserVersion]:
    if isinstance(spec, BrowserVersion):
        return spec
    if not isinstance(spec, Mapping):
        return None
    browser = spec.get("browser")
    version = spec.get("version")
    if not browser or version is None:
        return None
    return BrowserVersion(str(browser), str(version))


class ConfigResolver:
    """Loads and caches the effective configuration for one project"""

    def __init__(self, project_path: str = ".", environ: Optional[Mapping[str, str]] = None):
        self.project_path = Path(project_path)
        self.environ = environ
        self._config: Optional[EffectiveConfig] = None

    @property
    def config_path(self) -> Path:
        return self.project_path / CONFIG_FILENAME

    def load(self) -> EffectiveConfig:
        """Return the effective config, loading it on first access"""
        if self._config is not None:
            return self._config

        merged = merge_layers(default_document(), self._load_file(), self._load_environment())
        self._config = EffectiveConfig.from_document(merged)
        return self._config

    def invalidate(self):
        self._config = None

    def _load_file(self) -> Dict[str, Any]:
        path = self.config_path
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not load config from %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Could not load config from %s: top-level value is not an object", path)
            return {}
        return data

    def _load_environment(self) -> Dict[str, Any]:
        env = self.environ if self.environ is not None else os.environ
        env_config: Dict[str, Any] = {}

        baseline = env.get(ENV_DEFAULT_BASELINE)
        if baseline:
            env_config["defaultBaseline"] = baseline

        polyfills = env.get(ENV_POLYFILLS)
        if polyfills:
            try:
                env_config["polyfills"] = _as_list(json.loads(polyfills))
            except ValueError:
                env_config["polyfills"] = [p.strip() for p in polyfills.split(",") if p.strip()]

        overrides = env.get(ENV_OVERRIDES)
        if overrides:
            try:
                parsed = json.loads(overrides)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                env_config["overrides"] = parsed
            else:
                logger.warning("Invalid %s environment variable format", ENV_OVERRIDES)

        return env_config

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_browser_targets(self) -> Dict[str, BrowserVersion]:
        targets = dict(BUILT_IN_TARGETS)
        targets.update(self.load().custom_targets)
        return targets

    def describe_targets(self) -> List[Dict[str, str]]:
        return [
            {
                "id": name,
                "browser": target.browser,
                "version": target.version,
                "description": TARGET_DESCRIPTIONS.get(name, name),
            }
            for name, target in self.get_browser_targets().items()
        ]

    def resolve_target(self, token: Optional[str]) -> BrowserVersion:
        """Resolve a target token; never fails.

        Order: known target, "<browser>-<version>" pattern, the default
        baseline, then chrome 37.
        """
        targets = self.get_browser_targets()

        resolved = self._match_target(token, targets)
        if resolved is not None:
            return resolved

        baseline = self._match_target(self.load().default_baseline, targets)
        if baseline is not None:
            logger.debug("Unrecognised target %r, using default baseline", token)
            return baseline

        return FINAL_FALLBACK_TARGET

    @staticmethod
    def _match_target(token: Optional[str], targets: Mapping[str, BrowserVersion]) -> Optional[BrowserVersion]:
        if not token or not isinstance(token, str):
            return None
        if token in targets:
            return targets[token]
        match = TARGET_PATTERN.match(token)
        if match:
            return BrowserVersion(match.group(1), match.group(2))
        return None

    def get_fallback_versions(self, browser: str) -> List[str]:
        return list(self.load().browser_fallbacks.get(browser, []))

    def is_polyfilled(self, feature: str) -> bool:
        return feature in self.load().polyfills

    def get_override(self, feature: str) -> Optional[str]:
        return self.load().overrides.get(feature) or None

    # ------------------------------------------------------------------
    # Mutation (single writer; callers serialise)
    # ------------------------------------------------------------------

    def mutate(self, patch: Mapping[str, Any]) -> EffectiveConfig:
        """Persist the current config with `patch` applied, then reload"""
        doc = self.load().to_document()
        doc.update(patch)

        self.project_path.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        logger.info("Updated config at %s", self.config_path)

        self.invalidate()
        return self.load()

    def add_polyfill(self, feature: str) -> EffectiveConfig:
        polyfills = list(self.load().polyfills)
        if feature in polyfills:
            return self.load()
        polyfills.append(feature)
        return self.mutate({"polyfills": polyfills})

    def remove_polyfill(self, feature: str) -> EffectiveConfig:
        polyfills = list(self.load().polyfills)
        if feature not in polyfills:
            return self.load()
        polyfills.remove(feature)
        return self.mutate({"polyfills": polyfills})

    def set_override(self, feature: str, status: str) -> EffectiveConfig:
        overrides = dict(self.load().overrides)
        overrides[feature] = status
        return self.mutate({"overrides": overrides})

    def add_target(self, name: str, browser: str, version: str) -> EffectiveConfig:
        custom = self.load().to_document()["customTargets"]
        custom[name] = {"browser": browser, "version": str(version)}
        return self.mutate({"customTargets": custom})

    def reset(self) -> EffectiveConfig:
        return self.mutate({
            "defaultBaseline": DEFAULT_BASELINE,
            "customTargets": {},
            "polyfills": [],
            "overrides": {},
        })

    def create_template(self) -> Path:
        """Write an example config file and return its path"""
        template = {
            "$schema": "https://json-schema.org/draft-07/schema#",
            "$comment": "CanIUse compatibility configuration",
            "defaultBaseline": DEFAULT_BASELINE,
            "customTargets": {
                "chrome-57": {"browser": "chrome", "version": "57"},
                "chrome-60": {"browser": "chrome", "version": "60"},
            },
            "polyfills": ["css-grid", "flexbox", "promises"],
            "overrides": {"css-variables": "supported"},
            "browserFallbacks": {
                "chrome": ["37", "40", "45"],
                "firefox": ["78", "68"],
                "safari": ["12", "11"],
                "ie": ["11"],
                "edge": ["18", "16"],
            },
        }
        self.project_path.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(template, indent=2), encoding="utf-8")
        self.invalidate()
        return self.config_path
