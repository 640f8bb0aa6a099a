#!/usr/bin/env python3
"""Pre-deployment check of environment variables and secret hygiene.

Fails (exit code 1) when a required variable is missing or still holds a
placeholder, when .env.local exists but is not git-ignored, or when a source
file contains something that looks like a hardcoded API key.
"""

import os
import re
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import dotenv_values

ROOT = Path(__file__).resolve().parents[1]
REQUIRED_VARS = ["ARK_API_KEY", "DOUBAO_MODEL_NAME"]
OPTIONAL_VARS = ["OPENAI_API_KEY", "GIFT_API_URL", "APP_ENV"]
EXCLUDE_DIRS = {".git", ".venv", "venv", "__pycache__", "node_modules", "build", "dist"}
SECRET_FILE = ".env.local"

KEY_PATTERNS = [
    re.compile(r"sk-[A-Za-z0-9_\-]{20,}"),
    re.compile(r"Bearer\s+[A-Za-z0-9_\-\.]{20,}"),
]


def load_env(root: Path, environ: Mapping[str, str]) -> Dict[str, str]:
    """Variables as a deployment would see them: .env < process < .env.local."""
    values: Dict[str, str] = {}

    def read(name: str) -> Dict[str, str]:
        path = root / name
        if not path.is_file():
            return {}
        return {k: v for k, v in dotenv_values(path).items() if v is not None}

    values.update(read(".env"))
    values.update(environ)
    values.update(read(SECRET_FILE))
    return values


def is_placeholder(value: str) -> bool:
    return "your_" in value and "_here" in value


def _prefix(value: str) -> str:
    return f"{value[:8]}..."


def check_variables(env: Mapping[str, str]) -> Tuple[List[str], List[str]]:
    """Return (report lines, problems)."""
    report: List[str] = ["Required variables:"]
    problems: List[str] = []
    for name in REQUIRED_VARS:
        value = (env.get(name) or "").strip()
        if not value:
            report.append(f"  [missing] {name}")
            problems.append(f"{name} is not set")
        elif is_placeholder(value):
            report.append(f"  [placeholder] {name}")
            problems.append(f"{name} still holds a placeholder value")
        else:
            report.append(f"  [ok] {name} ({_prefix(value)})")

    report.append("Optional variables:")
    for name in OPTIONAL_VARS:
        value = (env.get(name) or "").strip()
        report.append(f"  [ok] {name} ({_prefix(value)})" if value else f"  [unset] {name}")
    return report, problems


def check_gitignore(root: Path) -> List[str]:
    if not (root / SECRET_FILE).is_file():
        return []
    gitignore = root / ".gitignore"
    entries = gitignore.read_text(encoding="utf-8").splitlines() if gitignore.is_file() else []
    patterns = {line.strip() for line in entries}
    if patterns & {SECRET_FILE, "/" + SECRET_FILE, ".env*.local", ".env.*", ".env*"}:
        return []
    return [f"{SECRET_FILE} exists but is not listed in .gitignore"]


def should_scan(path: Path, root: Path) -> bool:
    if path.suffix != ".py" or not path.is_file():
        return False
    parts = path.relative_to(root).parts
    return not any(part in EXCLUDE_DIRS or part.endswith(".egg-info") for part in parts)


def scan_hardcoded_keys(root: Path) -> List[Tuple[Path, int]]:
    hits: List[Tuple[Path, int]] = []
    for path in sorted(root.rglob("*.py")):
        if not should_scan(path, root):
            continue
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except UnicodeDecodeError:
            continue
        for idx, line in enumerate(lines, start=1):
            if any(p.search(line) for p in KEY_PATTERNS):
                hits.append((path, idx))
    return hits


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    root = Path(args[0]).resolve() if args else ROOT
    env = load_env(root, os.environ if environ is None else environ)

    report, problems = check_variables(env)
    print("\n".join(report))

    problems += check_gitignore(root)
    for path, line_no in scan_hardcoded_keys(root):
        problems.append(f"possible hardcoded API key in {path.relative_to(root)}:{line_no}")

    mode = "production" if (env.get("APP_ENV") or env.get("NODE_ENV")) == "production" else "development"
    print(f"Environment: {mode}")

    if problems:
        print("Problems found:")
        for problem in problems:
            print(f"- {problem}")
        return 1

    print("Environment looks safe to deploy.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
