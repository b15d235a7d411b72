"""
Aggregator

Runs the resolver over many features and targets and reduces the decisions
to per-target scores, common unsupported features and recommendations.
"""

import asyncio
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import ConfigResolver
from .models import (
    BrowserVersion,
    CompatibilitySummary,
    CriticalIssue,
    NextStep,
    Provenance,
    Recommendation,
    SupportDecision,
    SupportKind,
    TargetCheck,
    TargetScore,
)
from .resolver import FeatureSupportResolver
from .scanner import DEFAULT_EXCLUDE_DIRS, DEFAULT_MAX_DEPTH, FeatureDetector, categorize_features

logger = logging.getLogger(__name__)


CRITICAL_SCORE = 70
WARNING_SCORE = 90
BUILD_CONFIG_SCORE = 80


def js_round(value: float) -> int:
    """Round half up, as consumers of these scores expect"""
    return int(math.floor(value + 0.5))


def compatibility_score(supported: int, total: int) -> int:
    if total == 0:
        return 100
    return js_round(supported / total * 100)


def overall_score(checks: Iterable[TargetCheck], target_count: int) -> int:
    """Supported-weighted ratio, further divided by the number of targets.

    This is not an average of per-target scores; the extra division is kept
    for compatibility with existing report consumers.
    """
    total_supported = 0
    total_features = 0
    for check in checks:
        total_supported += check.supported
        total_features += check.total

    if total_features == 0 or target_count == 0:
        return 100
    return js_round(total_supported / total_features / target_count * 100)


def summarize(per_target: Mapping[str, TargetCheck], targets: Sequence[str]) -> CompatibilitySummary:
    summary = CompatibilitySummary(overall_score=100)
    issues: Dict[str, CriticalIssue] = {}
    checked = []

    for target in targets:
        check = per_target.get(target)
        if check is None:
            continue
        checked.append(check)

        summary.targets[target] = TargetScore(
            score=compatibility_score(check.supported, check.total),
            supported=check.supported,
            unsupported=check.unsupported,
            issues=list(check.unsupported_features),
        )

        for feature in check.unsupported_features:
            if feature in issues:
                if target not in issues[feature].targets:
                    issues[feature].targets.append(target)
            else:
                issues[feature] = CriticalIssue(feature=feature, targets=[target])

    summary.overall_score = overall_score(checked, len(targets))
    summary.critical_issues = list(issues.values())
    summary.common_unsupported = [
        issue.feature for issue in summary.critical_issues
        if len(issue.targets) == len(targets)
    ]
    return summary


def generate_recommendations(summary: CompatibilitySummary) -> List[Recommendation]:
    recommendations = []

    if summary.overall_score < CRITICAL_SCORE:
        recommendations.append(Recommendation(
            type="critical",
            title="Low Compatibility Score",
            message=(
                f"{summary.overall_score}% compatibility. Consider using build tools "
                "to transpile/polyfill unsupported features."
            ),
            action="Run get_fixes for specific remediation steps",
        ))
    elif summary.overall_score < WARNING_SCORE:
        recommendations.append(Recommendation(
            type="warning",
            title="Moderate Compatibility Issues",
            message=(
                f"{summary.overall_score}% compatibility. Some features may need "
                "polyfills or fallbacks."
            ),
            action="Review unsupported features and implement fallbacks",
        ))

    categorized = categorize_features(summary.common_unsupported)

    if categorized["critical"]:
        recommendations.append(Recommendation(
            type="critical",
            title="Critical Features Unsupported",
            message=f"These essential features are unsupported: {', '.join(categorized['critical'])}",
            action="Implement polyfills or use alternative approaches immediately",
        ))

    if categorized["high"]:
        recommendations.append(Recommendation(
            type="warning",
            title="Important Features Need Attention",
            message=f"These features need fallbacks: {', '.join(categorized['high'])}",
            action="Add vendor prefixes and fallback implementations",
        ))

    return recommendations


def generate_next_steps(summary: CompatibilitySummary) -> List[NextStep]:
    steps = []

    if summary.common_unsupported:
        steps.append(NextStep(
            step=1,
            title="Get specific fixes",
            command=f"Use get_fixes with features: {', '.join(summary.common_unsupported[:3])}",
            priority="high",
        ))

    if summary.overall_score < BUILD_CONFIG_SCORE:
        steps.append(NextStep(
            step=2,
            title="Generate build configuration",
            command="Use generate_configs to create Babel/PostCSS configs with polyfills",
            priority="high",
        ))

    steps.append(NextStep(
        step=len(steps) + 1,
        title="Set up development workflow",
        command='Use generate_configs with config_type="ci" and "git-hooks" for CI/CD and Git hooks',
        priority="medium",
    ))
    return steps


class CompatibilityAggregator:
    """Batches support checks across features and targets"""

    def __init__(self, config: ConfigResolver, resolver: FeatureSupportResolver,
                 detector: Optional[FeatureDetector] = None):
        self.config = config
        self.resolver = resolver
        self.detector = detector or FeatureDetector()

    async def check_features_for_target(self, features: Sequence[str], target: str) -> TargetCheck:
        browser_info = self.config.resolve_target(target)
        decisions = await asyncio.gather(
            *(self._resolve_one(feature, browser_info) for feature in features)
        )

        check = TargetCheck(target=target, browser_info=browser_info, total=len(decisions))
        for decision in decisions:
            check.details.append(decision)
            if decision.is_error:
                check.error_features.append(decision.feature)
            elif decision.supported:
                check.supported_features.append(decision.feature)
            else:
                check.unsupported_features.append(decision.feature)

            if decision.provenance == Provenance.POLYFILL:
                check.polyfilled_features.append(decision.feature)
            elif decision.provenance == Provenance.CONFIG_OVERRIDE:
                check.overridden_features.append(decision.feature)

        return check

    async def _resolve_one(self, feature: str, browser_info: BrowserVersion) -> SupportDecision:
        try:
            return await self.resolver.resolve(feature, browser_info.browser, browser_info.version)
        except Exception as e:
            return SupportDecision(
                feature=feature,
                browser=browser_info.browser,
                version=browser_info.version,
                supported=False,
                kind=SupportKind.ERROR,
                description=f"Could not check feature: {e}",
                provenance=Provenance.ERROR,
            )

    async def check_targets(self, features: Sequence[str], targets: Sequence[str]) -> Dict[str, TargetCheck]:
        """Check every target; a failing target is recorded, not raised"""
        checks = await asyncio.gather(
            *(self._check_target_isolated(features, target) for target in targets)
        )
        return dict(zip(targets, checks))

    async def _check_target_isolated(self, features: Sequence[str], target: str) -> TargetCheck:
        try:
            return await self.check_features_for_target(features, target)
        except Exception as e:
            logger.warning("Error checking target %s: %s", target, e)
            return TargetCheck(
                target=target,
                browser_info=BrowserVersion("unknown", "unknown"),
                total=len(features),
                error_features=list(features),
                error=str(e),
            )

    def _targets_or_default(self, targets: Optional[Sequence[str]]) -> List[str]:
        if not targets:
            return [self.config.load().default_baseline]
        # duplicates would be double-counted by the overall score
        return list(dict.fromkeys(targets))

    async def check_features(self, features: Sequence[str], targets: Optional[Sequence[str]] = None) -> Dict:
        targets = self._targets_or_default(targets)
        per_target = await self.check_targets(features, targets)
        summary = summarize(per_target, targets)
        return {
            "features": list(features),
            "targets": targets,
            "compatibility": per_target,
            "summary": summary,
        }

    async def check_project(
        self,
        project_path: str,
        targets: Optional[Sequence[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        include_files: Iterable[str] = (),
        include_recommendations: bool = True,
    ) -> Dict:
        """Scan a project, then check every detected feature on each target"""
        targets = self._targets_or_default(targets)
        scan = self.detector.scan_tree(project_path, max_depth, exclude_dirs, include_files)

        if not scan.features:
            return {
                "status": "no-features-detected",
                "message": "No detectable CSS/JS features found in project",
                "scan": scan,
                "suggestions": [
                    "Ensure files have supported extensions (.js, .jsx, .css, etc.)",
                    "Check if files contain recognizable feature patterns",
                    "Try checking specific files with check_compatibility",
                ],
            }

        per_target = await self.check_targets(scan.features, targets)
        summary = summarize(per_target, targets)

        return {
            "status": "completed",
            "targets": targets,
            "scan": scan,
            "features": scan.features,
            "compatibility": per_target,
            "summary": summary,
            "recommendations": generate_recommendations(summary) if include_recommendations else None,
            "next_steps": generate_next_steps(summary),
        }
