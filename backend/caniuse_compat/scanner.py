"""
Feature Detector

Walks a project tree and matches file contents against fixed regex banks to
find which caniuse features a codebase uses. Static heuristics only;
detection is best-effort.
"""

import logging
import os
import re
import stat
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Pattern, Sequence

from .lookups import FEATURE_PRIORITY
from .models import (
    FeatureLocation,
    FileFeatureRecord,
    LanguageClass,
    PatternMatch,
    ScanResult,
)

logger = logging.getLogger(__name__)


SCRIPT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")
STYLE_EXTENSIONS = (".css", ".scss", ".sass", ".less")
SUPPORTED_EXTENSIONS = SCRIPT_EXTENSIONS + STYLE_EXTENSIONS

DEFAULT_MAX_DEPTH = 5
DEFAULT_EXCLUDE_DIRS = ("node_modules", ".git", "dist", "build")


def _compile(bank: Dict[str, Sequence[str]]) -> Dict[str, List[Pattern]]:
    return {
        feature: [re.compile(p, re.IGNORECASE) for p in patterns]
        for feature, patterns in bank.items()
    }


STYLE_RULES = _compile({
    "css-grid": [r"display:\s*grid", r"grid-template", r"grid-area", r"grid-column", r"grid-row"],
    "flexbox": [r"display:\s*flex", r"justify-content", r"align-items", r"flex-direction", r"flex-wrap"],
    "css-variables": [r"var\(--[\w-]+\)", r"--[\w-]+:"],
    "css-sticky": [r"position:\s*sticky"],
    "object-fit": [r"object-fit:"],
    "css-transforms": [r"transform:", r"-webkit-transform:"],
    "css-transitions": [r"transition:", r"-webkit-transition:"],
    "css-animation": [r"animation:", r"@keyframes", r"-webkit-animation:"],
    "css-filters": [r"filter:", r"-webkit-filter:"],
    "css-masks": [r"mask:", r"-webkit-mask:"],
    "css-clip-path": [r"clip-path:", r"-webkit-clip-path:"],
    "border-radius": [r"border-radius:", r"-webkit-border-radius:"],
    "calc": [r"calc\("],
    "css-gradients": [r"linear-gradient", r"radial-gradient", r"-webkit-gradient"],
})

SCRIPT_RULES = _compile({
    "arrow-functions": [r"=>\s*\{", r"=>\s*\(", r"=>\s*\w"],
    "const": [r"\bconst\s+\w+"],
    "let": [r"\blet\s+\w+"],
    "destructuring": [r"\{\s*\w+.*\}\s*=", r"\[\s*\w+.*\]\s*="],
    "template-literals": [r"`.*\$\{.*\}.*`"],
    "spread-syntax": [r"\.\.\.\w"],
    "promises": [r"\bnew\s+Promise", r"\.then\(", r"\.catch\("],
    "async-await": [r"\basync\s+function", r"\bawait\s+"],
    "es6-class": [r"\bclass\s+\w+", r"\bextends\s+\w+"],
    "for-of": [r"\bfor\s*\(\s*\w+\s+of\s+"],
    "array-includes": [r"\.includes\("],
    "object-assign": [r"Object\.assign"],
    "es6-modules": [r"\bimport\s+", r"\bexport\s+"],
})

RULE_BANKS = MappingProxyType({
    LanguageClass.SCRIPT: SCRIPT_RULES,
    LanguageClass.STYLE: STYLE_RULES,
})


def language_class_for(path: str) -> Optional[LanguageClass]:
    ext = os.path.splitext(path)[1].lower()
    if ext in SCRIPT_EXTENSIONS:
        return LanguageClass.SCRIPT
    if ext in STYLE_EXTENSIONS:
        return LanguageClass.STYLE
    return None


def line_number(content: str, offset: int) -> int:
    """1-based line of a character offset"""
    return content.count("\n", 0, offset) + 1


def categorize_features(features: Iterable[str]) -> Dict[str, List[str]]:
    """Partition features into priority buckets; unlisted ones go to "unknown" """
    categorized: Dict[str, List[str]] = {name: [] for name in FEATURE_PRIORITY}
    categorized["unknown"] = []

    for feature in features:
        for priority, members in FEATURE_PRIORITY.items():
            if feature in members:
                categorized[priority].append(feature)
                break
        else:
            categorized["unknown"].append(feature)

    return categorized


class FeatureDetector:
    """Regex-based feature detection over project files"""

    def __init__(self, rule_banks: Optional[Dict[LanguageClass, Dict[str, List[Pattern]]]] = None):
        self.rule_banks = rule_banks if rule_banks is not None else RULE_BANKS

    def detect(self, path: str, content: str, language_class: Optional[LanguageClass]) -> FileFeatureRecord:
        """Match content against the rule bank for its language class"""
        record = FileFeatureRecord(
            path=path,
            language_class=language_class,
            lines_of_code=len(content.split("\n")),
        )
        if language_class is None:
            return record

        for feature, patterns in self.rule_banks[language_class].items():
            found = []
            for pattern in patterns:
                match = pattern.search(content)
                if match:
                    found.append(PatternMatch(
                        pattern=pattern.pattern,
                        match=match.group(0),
                        line=line_number(content, match.start()),
                    ))
            if found:
                record.features.append(feature)
                record.matches[feature] = found

        return record

    def scan_file(self, path) -> FileFeatureRecord:
        path = str(path)
        language_class = language_class_for(path)
        if language_class is None:
            return FileFeatureRecord(path=path, language_class=None)

        try:
            content = Path(path).read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.warning("Could not scan file %s: %s", path, e)
            return FileFeatureRecord(path=path, language_class=language_class, error=str(e))

        return self.detect(path, content, language_class)

    def scan_files(self, paths: Iterable[str]) -> List[FileFeatureRecord]:
        """Scan an explicit file list; keeps files with features or errors"""
        results = []
        for path in paths:
            record = self.scan_file(path)
            if record.features or record.error:
                results.append(record)
        return results

    def scan_tree(
        self,
        root,
        max_depth: int = DEFAULT_MAX_DEPTH,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        include_files: Iterable[str] = (),
    ) -> ScanResult:
        """Scan a directory tree; the root is depth 0"""
        result = ScanResult()
        self._walk(Path(root), result, 0, max_depth, frozenset(exclude_dirs), frozenset(include_files))
        result.summary.features_found = len(result.feature_index)
        logger.info(
            "Scanned %s: %d files with features, %d features",
            root, result.summary.total_files, result.summary.features_found,
        )
        return result

    def _walk(self, directory: Path, result: ScanResult, depth: int, max_depth: int,
              exclude_dirs: frozenset, include_files: frozenset):
        if depth > max_depth:
            return

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Could not read directory %s: %s", directory, e)
            return

        for entry in entries:
            try:
                mode = entry.stat().st_mode
            except OSError as e:
                logger.warning("Could not process %s: %s", entry, e)
                continue

            if stat.S_ISDIR(mode):
                if entry.name not in exclude_dirs:
                    self._walk(entry, result, depth + 1, max_depth, exclude_dirs, include_files)
            elif stat.S_ISREG(mode):
                if language_class_for(entry.name) is not None or entry.name in include_files:
                    self._record(self.scan_file(entry), result)

    def _record(self, record: FileFeatureRecord, result: ScanResult):
        if not record.features:
            return

        result.files.append(record)
        result.summary.total_files += 1
        if record.language_class == LanguageClass.SCRIPT:
            result.summary.js_files += 1
        elif record.language_class == LanguageClass.STYLE:
            result.summary.css_files += 1

        for feature in record.features:
            result.feature_index.setdefault(feature, []).append(
                FeatureLocation(file=record.path, matches=record.matches.get(feature, []))
            )
