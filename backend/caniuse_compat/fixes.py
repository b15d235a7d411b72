"""
Fix Generator

Turns unsupported features into remediation advice (alternatives, polyfills,
install commands) and renders build-tool configuration for a target.
"""

import json
import re
from typing import Dict, List, Sequence

from .errors import ConfigUsageError
from .lookups import BABEL_FEATURES, BROWSERSLIST_NAMES, FIX_DATABASE, POSTCSS_FEATURES
from .matrix import parse_version
from .models import BrowserVersion

PRIORITIES = ("critical", "high", "medium", "low")
CONFIG_TYPES = ("babel", "postcss", "webpack", "package-json", "ci", "git-hooks", "all")

BABEL_PACKAGES = [
    "@babel/core",
    "@babel/preset-env",
    "@babel/preset-react",
    "@babel/plugin-proposal-class-properties",
    "@babel/plugin-transform-runtime",
]
POSTCSS_PACKAGES = [
    "postcss",
    "autoprefixer",
    "postcss-custom-properties",
    "postcss-calc",
    "postcss-flexbugs-fixes",
]


def package_name(polyfill: str) -> str:
    """npm-style name for a polyfill label, e.g. "CSS Grid Polyfill" -> "css-grid-polyfill" """
    return re.sub(r"\s+", "-", polyfill.lower())


def browserslist_query(target: BrowserVersion) -> str:
    name = BROWSERSLIST_NAMES.get(target.browser, target.browser)
    if parse_version(target.version) is None:
        return f"last 1 {name} version"
    return f"{name} >= {target.version}"


class FixGenerator:
    """Remediation advice and build configs for unsupported features"""

    def generate_fixes(
        self,
        features: Sequence[str],
        priority: str = "all",
        include_examples: bool = True,
        include_commands: bool = True,
    ) -> Dict:
        if not features:
            raise ConfigUsageError("get_fixes", "No features specified for fixes")
        if priority != "all" and priority not in PRIORITIES:
            raise ConfigUsageError("get_fixes", f"Unknown priority: {priority}")

        fixes = [self._fix_for(f, include_examples, include_commands) for f in features]
        filtered_out: List[str] = []
        if priority != "all":
            filtered_out = [fix["feature"] for fix in fixes if fix.get("priority") != priority]
            fixes = [fix for fix in fixes if fix.get("priority") == priority]

        summary = self._summarize(fixes)
        summary["filtered_out"] = filtered_out
        return {
            "fixes": fixes,
            "summary": summary,
            "quick_start": self._quick_start(fixes),
        }

    def _fix_for(self, feature: str, include_examples: bool, include_commands: bool) -> Dict:
        info = FIX_DATABASE.get(feature)
        if info is None:
            return {
                "feature": feature,
                "status": "unknown",
                "message": f"No fix information available for {feature}",
                "suggestions": [
                    "Check caniuse.com for manual compatibility info",
                    "Search for polyfills or alternative implementations",
                    "Consider progressive enhancement",
                ],
            }

        fix = {
            "feature": feature,
            "priority": info["priority"],
            "alternatives": list(info["alternatives"]),
            "polyfills": list(info.get("polyfills", [])),
            "build_steps": list(info.get("build_steps", [])),
            "documentation": info.get("documentation"),
        }

        if include_examples:
            for key in ("css_example", "js_example"):
                if key in info:
                    fix[key] = info[key]

        if include_commands:
            fix["commands"] = self._commands(feature, info)

        return fix

    def _commands(self, feature: str, info: Dict) -> List[Dict]:
        commands = []

        polyfills = info.get("polyfills") or []
        if polyfills:
            commands.append({
                "type": "install",
                "description": f"Install {feature} polyfills",
                "command": f"npm install {' '.join(package_name(p) for p in polyfills)} --save",
            })

        for step in info.get("build_steps") or []:
            if step.startswith("npm install"):
                commands.append({
                    "type": "install",
                    "description": f"Install build dependencies for {feature}",
                    "command": step,
                })
            else:
                commands.append({
                    "type": "config",
                    "description": f"Configure build tools for {feature}",
                    "instruction": step,
                })

        return commands

    def _summarize(self, fixes: List[Dict]) -> Dict:
        by_priority = {name: 0 for name in PRIORITIES}
        by_priority["unknown"] = 0
        total_polyfills = 0
        total_commands = 0

        for fix in fixes:
            by_priority[fix.get("priority", "unknown")] += 1
            total_polyfills += len(fix.get("polyfills", []))
            total_commands += len(fix.get("commands", []))

        return {
            "total": len(fixes),
            "by_priority": by_priority,
            "total_polyfills": total_polyfills,
            "total_commands": total_commands,
        }

    def _quick_start(self, fixes: List[Dict]) -> List[Dict]:
        steps = []
        features = {fix["feature"] for fix in fixes}

        critical_polyfills = [
            p for fix in fixes if fix.get("priority") == "critical" for p in fix.get("polyfills", [])
        ]
        if critical_polyfills:
            steps.append({
                "step": 1,
                "title": "Install critical polyfills",
                "command": f"npm install {' '.join(package_name(p) for p in critical_polyfills)} --save",
                "priority": "critical",
            })

        if features.intersection(BABEL_FEATURES):
            steps.append({
                "step": len(steps) + 1,
                "title": "Setup Babel for JS transpilation",
                "command": "npm install @babel/core @babel/preset-env --save-dev",
                "follow_up": "Create .babelrc for your target browsers",
                "priority": "high",
            })

        if features.intersection(POSTCSS_FEATURES):
            steps.append({
                "step": len(steps) + 1,
                "title": "Setup PostCSS for CSS processing",
                "command": "npm install postcss autoprefixer --save-dev",
                "follow_up": "Configure autoprefixer for your target browsers",
                "priority": "high",
            })

        return steps

    # ------------------------------------------------------------------
    # Build configuration
    # ------------------------------------------------------------------

    def generate_workflow_config(
        self,
        config_type: str,
        target: BrowserVersion,
        include_polyfills: bool = True,
        include_dev_deps: bool = True,
    ) -> Dict:
        builders = {
            "babel": lambda: self._babel_config(target, include_polyfills),
            "postcss": lambda: self._postcss_config(target),
            "webpack": self._webpack_config,
            "package-json": lambda: self._package_json_config(include_dev_deps),
            "ci": self._ci_config,
            "git-hooks": self._git_hooks,
        }

        if config_type == "all":
            return {
                "babel": builders["babel"](),
                "postcss": builders["postcss"](),
                "webpack": builders["webpack"](),
                "package_json": builders["package-json"](),
                "ci": builders["ci"](),
                "git_hooks": builders["git-hooks"](),
            }

        builder = builders.get(config_type)
        if builder is None:
            raise ConfigUsageError("generate_configs", f"Unknown config type: {config_type}")
        return builder()

    def _babel_config(self, target: BrowserVersion, include_polyfills: bool) -> Dict:
        if parse_version(target.version) is None:
            targets = browserslist_query(target)
        else:
            targets = {target.browser: target.version}

        env_options = {"targets": targets}
        if include_polyfills:
            env_options["useBuiltIns"] = "usage"
            env_options["corejs"] = 3
        else:
            env_options["useBuiltIns"] = False

        packages = list(BABEL_PACKAGES)
        if include_polyfills:
            packages.append("core-js@3")

        return {
            "filename": ".babelrc",
            "content": json.dumps({
                "presets": [["@babel/preset-env", env_options], "@babel/preset-react"],
                "plugins": [
                    "@babel/plugin-proposal-class-properties",
                    "@babel/plugin-transform-runtime",
                ],
            }, indent=2),
            "packages": packages,
            "install_command": f"npm install {' '.join(BABEL_PACKAGES)} --save-dev",
        }

    def _postcss_config(self, target: BrowserVersion) -> Dict:
        content = (
            "module.exports = {\n"
            "  plugins: {\n"
            "    'autoprefixer': {\n"
            f"      overrideBrowserslist: ['{browserslist_query(target)}']\n"
            "    },\n"
            "    'postcss-custom-properties': {\n"
            "      preserve: false\n"
            "    },\n"
            "    'postcss-calc': {},\n"
            "    'postcss-flexbugs-fixes': {}\n"
            "  }\n"
            "};"
        )
        return {
            "filename": "postcss.config.js",
            "content": content,
            "packages": list(POSTCSS_PACKAGES),
            "install_command": f"npm install {' '.join(POSTCSS_PACKAGES)} --save-dev",
        }

    def _webpack_config(self) -> Dict:
        content = """const path = require('path');

module.exports = {
  entry: './src/index.js',
  output: {
    filename: 'bundle.js',
    path: path.resolve(__dirname, 'dist')
  },
  module: {
    rules: [
      { test: /\\.(js|jsx)$/, exclude: /node_modules/, use: 'babel-loader' },
      {
        test: /\\.module\\.css$/,
        use: ['style-loader', { loader: 'css-loader', options: { modules: true } }, 'postcss-loader']
      },
      {
        test: /\\.css$/,
        exclude: /\\.module\\.css$/,
        use: ['style-loader', 'css-loader', 'postcss-loader']
      }
    ]
  },
  resolve: { extensions: ['.js', '.jsx'] }
};"""
        return {
            "filename": "webpack.config.js",
            "content": content,
            "packages": ["webpack", "webpack-cli", "babel-loader", "style-loader", "css-loader", "postcss-loader"],
        }

    def _package_json_config(self, include_dev_deps: bool) -> Dict:
        config = {
            "scripts": {
                "build": "webpack --mode production",
                "dev": "webpack --mode development --watch",
                "babel": "babel src --out-dir lib",
            }
        }
        if include_dev_deps:
            config["devDependencies"] = {
                "@babel/core": "^7.0.0",
                "@babel/preset-env": "^7.0.0",
                "@babel/preset-react": "^7.0.0",
                "webpack": "^5.0.0",
                "webpack-cli": "^4.0.0",
                "postcss": "^8.0.0",
                "autoprefixer": "^10.0.0",
            }
        return {
            "filename": "package.json (partial)",
            "content": json.dumps(config, indent=2),
            "note": "Add these scripts and devDependencies to your existing package.json",
        }

    def _ci_config(self) -> Dict:
        content = """name: Browser Compatibility Check

on: [push, pull_request]

jobs:
  compatibility:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - name: Setup Node.js
        uses: actions/setup-node@v4
        with:
          node-version: '20'
      - name: Install dependencies
        run: npm ci
      - name: Build project
        run: npm run build
      - name: Check browser compatibility
        run: caniuse-compat scan . --target "$COMPAT_TARGET"
        env:
          COMPAT_TARGET: chrome-37"""
        return {"filename": ".github/workflows/compatibility-check.yml", "content": content}

    def _git_hooks(self) -> Dict:
        content = """#!/usr/bin/env sh
. "$(dirname -- "$0")/_/husky.sh"

echo "Checking browser compatibility..."
caniuse-compat scan .
npm run build"""
        return {
            "filename": ".husky/pre-commit",
            "content": content,
            "setup": [
                "npm install husky --save-dev",
                "npx husky install",
                'npx husky add .husky/pre-commit "npm run build"',
            ],
        }
