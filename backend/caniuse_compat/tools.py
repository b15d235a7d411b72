"""
Tool handlers: scan a project, check features, suggest alternatives, get
fixes, generate build configs and view/mutate configuration.

Each handler is a thin adapter over the core components and returns plain
JSON-ready data.
"""

import logging
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .aggregator import CompatibilityAggregator
from .config import OVERRIDE_VALUES, ConfigResolver
from .errors import ConfigUsageError
from .fixes import FixGenerator
from .lookups import ALTERNATIVES, GENERIC_ALTERNATIVES
from .matrix import CanIUseClient, SupportMatrixCache
from .resolver import FeatureSupportResolver
from .scanner import DEFAULT_EXCLUDE_DIRS, DEFAULT_MAX_DEPTH, FeatureDetector

logger = logging.getLogger(__name__)


CONFIG_ACTIONS = (
    "view",
    "set_baseline",
    "add_polyfill",
    "remove_polyfill",
    "set_override",
    "add_target",
    "create_template",
    "reset",
)


def jsonable(value: Any) -> Any:
    """Convert dataclasses, enums and paths into plain JSON data"""
    if is_dataclass(value) and not isinstance(value, type):
        return jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [jsonable(v) for v in value]
    return value


def _require(action: str, **params):
    missing = [name for name, value in params.items() if not value]
    if missing:
        raise ConfigUsageError(
            action, f"{', '.join(missing)} parameter(s) required for {action} action"
        )


class CompatibilityTools:
    """Wires the components together for one project"""

    def __init__(
        self,
        project_path: str = ".",
        config: Optional[ConfigResolver] = None,
        client: Optional[CanIUseClient] = None,
        detector: Optional[FeatureDetector] = None,
    ):
        self.config = config or ConfigResolver(project_path)
        self.client = client or CanIUseClient(SupportMatrixCache())
        self.detector = detector or FeatureDetector()
        self.resolver = FeatureSupportResolver(self.config, self.client)
        self.aggregator = CompatibilityAggregator(self.config, self.resolver, self.detector)
        self.fix_generator = FixGenerator()

    # ------------------------------------------------------------------
    # Compatibility checks
    # ------------------------------------------------------------------

    async def scan_project(
        self,
        project_path: str = ".",
        targets: Optional[Sequence[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        exclude_dirs: Optional[Sequence[str]] = None,
        include_files: Sequence[str] = (),
    ) -> Dict:
        """Scan a project and check detected features against targets"""
        if exclude_dirs is None:
            exclude_dirs = DEFAULT_EXCLUDE_DIRS

        report = await self.aggregator.check_project(
            project_path,
            targets=targets,
            max_depth=max_depth,
            exclude_dirs=exclude_dirs,
            include_files=include_files,
        )
        scan = report["scan"]
        summary = report.get("summary")

        return jsonable({
            "status": report["status"],
            "message": report.get("message"),
            "project": {
                "path": str(project_path),
                "scanned": f"{scan.summary.total_files} files",
                "js_files": scan.summary.js_files,
                "css_files": scan.summary.css_files,
                "features_detected": len(scan.features),
            },
            "compatibility": {
                "targets": list(report.get("compatibility", {}).keys()),
                "overall_score": summary.overall_score if summary else 100,
                "critical_issues": len(summary.critical_issues) if summary else 0,
                "common_unsupported": summary.common_unsupported if summary else [],
            },
            "recommendations": report.get("recommendations") or [],
            "next_steps": report.get("next_steps") or [],
            "suggestions": report.get("suggestions") or [],
            "detailed_results": {
                "features": scan.features,
                "feature_index": scan.feature_index,
                "target_results": {
                    name: check.to_dict() for name, check in report.get("compatibility", {}).items()
                },
                "summary": summary,
            },
        })

    async def check_compatibility(
        self,
        features: Optional[Sequence[str]] = None,
        files: Optional[Sequence[str]] = None,
        targets: Optional[Sequence[str]] = None,
    ) -> Dict:
        """Check named features, plus any detected in the given files"""
        to_check: List[str] = list(features or [])

        if files:
            for record in self.detector.scan_files(files):
                to_check.extend(record.features)
        to_check = list(dict.fromkeys(to_check))

        if not to_check:
            return {
                "status": "no-features",
                "message": "No features specified or detected in files",
                "suggestion": "Either provide specific features to check, or use scan_project to auto-detect features",
                "available_targets": self.config.describe_targets(),
            }

        result = await self.aggregator.check_features(to_check, targets)
        summary = result["summary"]

        if summary.common_unsupported:
            recommendations = [
                f"Use get_fixes with features: {', '.join(summary.common_unsupported[:5])}"
            ]
        else:
            recommendations = ["All features are supported in the specified targets"]

        return jsonable({
            "status": "completed",
            "features": to_check,
            "targets": result["targets"],
            "compatibility": {name: check.to_dict() for name, check in result["compatibility"].items()},
            "summary": {
                "overall_score": summary.overall_score,
                "by_target": summary.targets,
                "critical_issues": summary.critical_issues,
                "common_unsupported": summary.common_unsupported,
            },
            "recommendations": recommendations,
        })

    async def check_feature_support(self, feature: str, target: Optional[str] = None) -> Dict:
        """Support decision for a single feature on one target"""
        token = target or self.config.load().default_baseline
        decision = await self.resolver.resolve_for_target(feature, token)
        result = jsonable(decision)
        result["target"] = token
        return result

    async def suggest_alternatives(self, feature: str, target: Optional[str] = None) -> Dict:
        result = await self.check_feature_support(feature, target)
        where = f"{result['browser']} {result['version']}"

        if result["supported"]:
            return {
                "feature": feature,
                "needs_alternatives": False,
                "message": f"{feature} is supported in {where}",
                "result": result,
            }

        return {
            "feature": feature,
            "needs_alternatives": True,
            "message": f"{feature} is not supported in {where}. Consider these alternatives:",
            "alternatives": list(ALTERNATIVES.get(feature, GENERIC_ALTERNATIVES)),
            "result": result,
        }

    def list_targets(self) -> Dict:
        return {
            "default_baseline": self.config.load().default_baseline,
            "targets": self.config.describe_targets(),
        }

    # ------------------------------------------------------------------
    # Remediation
    # ------------------------------------------------------------------

    def get_fixes(
        self,
        features: Sequence[str],
        priority: str = "all",
        include_examples: bool = True,
        include_commands: bool = True,
    ) -> Dict:
        result = self.fix_generator.generate_fixes(
            list(features or []), priority, include_examples, include_commands
        )
        return {
            "features": list(features),
            "fixes": result["fixes"],
            "summary": result["summary"],
            "quick_start": result["quick_start"],
            "instructions": {
                "step1": "Review the fixes for each feature below",
                "step2": "Run the provided installation commands",
                "step3": "Follow the configuration instructions",
                "step4": "Use generate_configs for complete build setup",
            },
        }

    def generate_configs(
        self,
        config_type: str = "all",
        target: Optional[str] = None,
        include_polyfills: bool = True,
        project_type: str = "react",
    ) -> Dict:
        token = target or self.config.load().default_baseline
        resolved = self.config.resolve_target(token)
        configs = self.fix_generator.generate_workflow_config(config_type, resolved, include_polyfills)

        installation = []
        for part in ("babel", "postcss"):
            if config_type not in ("all", part):
                continue
            part_config = configs[part] if config_type == "all" else configs
            if part_config.get("install_command"):
                installation.append({
                    "step": f"Install {'Babel' if part == 'babel' else 'PostCSS'} dependencies",
                    "command": part_config["install_command"],
                })

        return {
            "config_type": config_type,
            "target": token,
            "browser_info": jsonable(resolved),
            "project_type": project_type,
            "configs": configs,
            "installation": installation,
            "next_steps": [
                "Test the build configuration with your project",
                "Run scan_project again to verify compatibility improvements",
                "Set up CI/CD integration if not already done",
            ],
        }

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def manage_config(
        self,
        action: str = "view",
        baseline: Optional[str] = None,
        polyfill: Optional[str] = None,
        feature: Optional[str] = None,
        override: Optional[str] = None,
        target_name: Optional[str] = None,
        browser: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Dict:
        """View or mutate config; raises ConfigUsageError on bad input"""
        if action == "view":
            config = self.config.load()
            return {
                "action": "view",
                "current_config": jsonable(config.to_document()),
                "available_targets": list(self.config.get_browser_targets().keys()),
            }

        if action == "set_baseline":
            _require(action, baseline=baseline)
            self.config.mutate({"defaultBaseline": baseline})
            return self._done(action, f"Default baseline set to {baseline}", new_baseline=baseline)

        if action == "add_polyfill":
            _require(action, polyfill=polyfill)
            config = self.config.add_polyfill(polyfill)
            return self._done(action, f"Added {polyfill} to polyfills list",
                              feature=polyfill, current_polyfills=list(config.polyfills))

        if action == "remove_polyfill":
            _require(action, polyfill=polyfill)
            config = self.config.remove_polyfill(polyfill)
            return self._done(action, f"Removed {polyfill} from polyfills list",
                              feature=polyfill, current_polyfills=list(config.polyfills))

        if action == "set_override":
            _require(action, feature=feature, override=override)
            if override not in OVERRIDE_VALUES:
                raise ConfigUsageError(
                    action, f"override must be one of {', '.join(OVERRIDE_VALUES)}, got {override!r}"
                )
            self.config.set_override(feature, override)
            return self._done(action, f"Set {feature} override to {override}",
                              feature=feature, override=override)

        if action == "add_target":
            _require(action, target_name=target_name, browser=browser, version=version)
            self.config.add_target(target_name, browser, version)
            return self._done(action, f"Added custom target {target_name} ({browser} {version})",
                              target_name=target_name,
                              browser_config={"browser": browser, "version": str(version)})

        if action == "create_template":
            path = self.config.create_template()
            return self._done(action, f"Created {path.name} template file", config_file=str(path))

        if action == "reset":
            config = self.config.reset()
            return self._done(action, "Configuration reset to defaults",
                              new_config=jsonable(config.to_document()))

        raise ConfigUsageError(
            action, f"Unknown config action: {action}. Expected one of: {', '.join(CONFIG_ACTIONS)}"
        )

    @staticmethod
    def _done(action: str, message: str, **extra) -> Dict:
        logger.info(message)
        result = {"action": action, "success": True, "message": message}
        result.update(extra)
        return result
