"""Data models shared by the resolver, scanner and aggregator"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Set


class SupportKind(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"
    DISABLED = "disabled"
    POLYFILL_REQUIRED = "polyfill-required"
    UNKNOWN = "unknown"
    OVERRIDE = "override"
    OVERRIDE_DISABLED = "override-disabled"
    POLYFILLED = "polyfilled"
    ERROR = "error"


class Provenance(str, Enum):
    CONFIG_OVERRIDE = "config-override"
    CANIUSE_DATA = "caniuse-data"
    POLYFILL = "polyfill"
    ERROR = "error"


class LanguageClass(str, Enum):
    """Coarse file classification; each class owns its own rule bank"""
    SCRIPT = "javascript"
    STYLE = "css"


# ============================================================================
# SUPPORT DECISIONS
# ============================================================================

@dataclass(frozen=True)
class BrowserVersion:
    browser: str
    version: str  # may be non-numeric, e.g. "latest"


@dataclass(frozen=True)
class SupportStatus:
    supported: bool
    kind: SupportKind
    description: str


@dataclass
class SupportDecision:
    feature: str
    browser: str
    version: str
    supported: bool
    kind: SupportKind
    description: str
    provenance: Provenance
    raw_value: Optional[str] = None
    # pre-upgrade status when a polyfill turned an unsupported feature green
    original_support: Optional[SupportStatus] = None

    @property
    def is_error(self) -> bool:
        return self.kind == SupportKind.ERROR

    def to_dict(self) -> Dict:
        return asdict(self)


# ============================================================================
# SCAN RESULTS
# ============================================================================

@dataclass
class PatternMatch:
    pattern: str
    match: str
    line: int


@dataclass
class FileFeatureRecord:
    path: str
    language_class: Optional[LanguageClass]
    features: List[str] = field(default_factory=list)
    matches: Dict[str, List[PatternMatch]] = field(default_factory=dict)
    lines_of_code: int = 0
    error: Optional[str] = None

    @property
    def detected_features(self) -> Set[str]:
        return set(self.features)


@dataclass
class FeatureLocation:
    file: str
    matches: List[PatternMatch]


@dataclass
class ScanSummary:
    total_files: int = 0
    js_files: int = 0
    css_files: int = 0
    features_found: int = 0


@dataclass
class ScanResult:
    files: List[FileFeatureRecord] = field(default_factory=list)
    feature_index: Dict[str, List[FeatureLocation]] = field(default_factory=dict)
    summary: ScanSummary = field(default_factory=ScanSummary)

    @property
    def features(self) -> List[str]:
        return list(self.feature_index.keys())

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["features"] = self.features
        return data


# ============================================================================
# AGGREGATION
# ============================================================================

@dataclass
class TargetCheck:
    target: str
    browser_info: BrowserVersion
    total: int
    supported_features: List[str] = field(default_factory=list)
    unsupported_features: List[str] = field(default_factory=list)
    error_features: List[str] = field(default_factory=list)
    polyfilled_features: List[str] = field(default_factory=list)
    overridden_features: List[str] = field(default_factory=list)
    details: List[SupportDecision] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def supported(self) -> int:
        return len(self.supported_features)

    @property
    def unsupported(self) -> int:
        return len(self.unsupported_features)

    @property
    def errors(self) -> int:
        return len(self.error_features)

    def counts(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "supported": self.supported,
            "unsupported": self.unsupported,
            "errors": self.errors,
            "polyfilled": len(self.polyfilled_features),
            "overridden": len(self.overridden_features),
        }

    def to_dict(self) -> Dict:
        data = asdict(self)
        data.update(self.counts())
        return data


@dataclass
class TargetScore:
    score: int
    supported: int
    unsupported: int
    issues: List[str]


@dataclass
class CriticalIssue:
    feature: str
    targets: List[str]


@dataclass
class CompatibilitySummary:
    overall_score: int
    targets: Dict[str, TargetScore] = field(default_factory=dict)
    critical_issues: List[CriticalIssue] = field(default_factory=list)
    common_unsupported: List[str] = field(default_factory=list)

    @property
    def per_target_score(self) -> Dict[str, int]:
        return {name: t.score for name, t in self.targets.items()}

    @property
    def unsupported_by_target(self) -> Dict[str, Set[str]]:
        return {name: set(t.issues) for name, t in self.targets.items()}

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class Recommendation:
    type: str  # "critical" | "warning"
    title: str
    message: str
    action: str


@dataclass
class NextStep:
    step: int
    title: str
    command: str
    priority: str
