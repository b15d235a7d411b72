"""
CanIUse Compatibility API

REST API and command line entry point over the compatibility tools.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .errors import ConfigUsageError
from .scanner import DEFAULT_MAX_DEPTH
from .tools import CONFIG_ACTIONS, CompatibilityTools

logger = logging.getLogger(__name__)


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ScanRequest(BaseModel):
    path: str = "."
    targets: Optional[List[str]] = None
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)
    exclude_dirs: Optional[List[str]] = None
    include_files: List[str] = Field(default_factory=list)


class CheckRequest(BaseModel):
    features: Optional[List[str]] = None
    files: Optional[List[str]] = None
    targets: Optional[List[str]] = None


class FixesRequest(BaseModel):
    features: List[str]
    priority: str = "all"
    include_examples: bool = True
    include_commands: bool = True


class ConfigsRequest(BaseModel):
    config_type: str = "all"
    target: Optional[str] = None
    include_polyfills: bool = True
    project_type: str = "react"


class ConfigRequest(BaseModel):
    action: str = "view"
    baseline: Optional[str] = None
    polyfill: Optional[str] = None
    feature: Optional[str] = None
    override: Optional[str] = None
    target_name: Optional[str] = None
    browser: Optional[str] = None
    version: Optional[str] = None


# ============================================================================
# FASTAPI REST API
# ============================================================================

def usage_error_envelope(error: ConfigUsageError) -> Dict:
    return {
        "error": True,
        "action": error.action,
        "message": str(error),
        "suggestion": 'Check the action parameter and required fields. Use action="view" to see available options.',
    }


def create_app(tools: Optional[CompatibilityTools] = None) -> FastAPI:
    tools = tools or CompatibilityTools()

    app = FastAPI(
        title="CanIUse Compatibility API",
        description="Check web feature support against browser targets and score projects",
        version=__version__,
    )
    app.state.tools = tools

    @app.get("/")
    async def root():
        return {
            "message": "CanIUse Compatibility API",
            "version": __version__,
            "endpoints": {
                "targets": "/targets",
                "scan": "/scan",
                "check": "/check",
                "feature": "/features/{feature}",
                "alternatives": "/alternatives/{feature}",
                "fixes": "/fixes",
                "configs": "/configs",
                "config": "/config",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "cached_features": len(tools.client.cache),
            "default_baseline": tools.config.load().default_baseline,
        }

    @app.get("/targets")
    def list_targets():
        """List built-in and custom browser targets"""
        return tools.list_targets()

    @app.post("/scan")
    async def scan_project(request: ScanRequest):
        """Scan a local directory and score it against targets"""
        if not Path(request.path).is_dir():
            raise HTTPException(status_code=400, detail="Path does not exist or is not a directory")
        return await tools.scan_project(
            request.path,
            targets=request.targets,
            max_depth=request.max_depth,
            exclude_dirs=request.exclude_dirs,
            include_files=request.include_files,
        )

    @app.post("/check")
    async def check_compatibility(request: CheckRequest):
        """Check named features (and features found in files) against targets"""
        return await tools.check_compatibility(request.features, request.files, request.targets)

    @app.get("/features/{feature}")
    async def check_feature(feature: str, target: Optional[str] = None):
        return await tools.check_feature_support(feature, target)

    @app.get("/alternatives/{feature}")
    async def suggest_alternatives(feature: str, target: Optional[str] = None):
        return await tools.suggest_alternatives(feature, target)

    @app.post("/fixes")
    def get_fixes(request: FixesRequest):
        try:
            return tools.get_fixes(
                request.features, request.priority, request.include_examples, request.include_commands
            )
        except ConfigUsageError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.post("/configs")
    def generate_configs(request: ConfigsRequest):
        try:
            return tools.generate_configs(
                request.config_type, request.target, request.include_polyfills, request.project_type
            )
        except ConfigUsageError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.post("/config")
    def manage_config(request: ConfigRequest):
        """View or change the project configuration"""
        try:
            return tools.manage_config(**request.model_dump())
        except ConfigUsageError as e:
            raise HTTPException(status_code=400, detail=usage_error_envelope(e))

    return app


app = create_app()


# ============================================================================
# CLI INTERFACE
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="caniuse-compat", description="Browser compatibility checks")
    parser.add_argument("--project", default=".", help="directory holding .caniuse-config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    server = sub.add_parser("server", help="run the REST API")
    server.add_argument("--host", default="127.0.0.1")
    server.add_argument("--port", type=int, default=8000)

    scan = sub.add_parser("scan", help="scan a project directory")
    scan.add_argument("path", nargs="?", default=".")
    scan.add_argument("--target", action="append", dest="targets")
    scan.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH)
    scan.add_argument("--min-score", type=int, default=None,
                      help="exit with status 1 when the overall score is below this")

    check = sub.add_parser("check", help="check named features")
    check.add_argument("features", nargs="+")
    check.add_argument("--target", action="append", dest="targets")

    sub.add_parser("targets", help="list browser targets")

    config = sub.add_parser("config", help="view or change the project configuration")
    config.add_argument("action", nargs="?", default="view", choices=CONFIG_ACTIONS)
    config.add_argument("--baseline")
    config.add_argument("--polyfill")
    config.add_argument("--feature")
    config.add_argument("--override")
    config.add_argument("--target-name")
    config.add_argument("--browser")
    config.add_argument("--version")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = os.environ.get("CANIUSE_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    tools = CompatibilityTools(args.project)

    if args.command == "server":
        uvicorn.run(create_app(tools), host=args.host, port=args.port)
        return 0

    if args.command == "targets":
        print(json.dumps(tools.list_targets(), indent=2))
        return 0

    if args.command == "config":
        try:
            result = tools.manage_config(
                args.action,
                baseline=args.baseline,
                polyfill=args.polyfill,
                feature=args.feature,
                override=args.override,
                target_name=args.target_name,
                browser=args.browser,
                version=args.version,
            )
        except ConfigUsageError as e:
            print(json.dumps(usage_error_envelope(e), indent=2))
            return 2
        print(json.dumps(result, indent=2))
        return 0

    if args.command == "check":
        result = asyncio.run(tools.check_compatibility(args.features, targets=args.targets))
        print(json.dumps(result, indent=2))
        return 0

    if not Path(args.path).is_dir():
        print(json.dumps({"error": True, "message": f"Path does not exist: {args.path}"}, indent=2))
        return 2

    report = asyncio.run(tools.scan_project(args.path, targets=args.targets, max_depth=args.max_depth))
    print(json.dumps(report, indent=2))

    score = report["compatibility"]["overall_score"]
    if args.min_score is not None and score < args.min_score:
        print(f"❌ FAILED: Compatibility score {score}% below threshold {args.min_score}%", file=sys.stderr)
        return 1
    if args.min_score is not None:
        print(f"✅ PASSED: Compatibility score {score}% (threshold: {args.min_score}%)", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
