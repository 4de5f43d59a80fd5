#!/usr/bin/env python3
"""
Run tests with coverage reporting for the chatshare package.

Usage:
    python run_coverage.py              # Run tests with coverage
    python run_coverage.py --min=80     # Fail if coverage < 80%
    python run_coverage.py --html       # Write and open an HTML report
"""

import argparse
import subprocess
import sys
import webbrowser
from pathlib import Path


def build_command(fail_under=None, html=False):
    cmd = [sys.executable, "-m", "pytest", "--cov=chatshare", "--cov-report=term-missing"]
    if html:
        cmd.append("--cov-report=html")
    if fail_under is not None:
        cmd.extend(["--cov-fail-under", str(fail_under)])
    return cmd


def main():
    parser = argparse.ArgumentParser(description="Run tests with coverage")
    parser.add_argument(
        "--min",
        type=float,
        default=None,
        help="Minimum coverage percentage required (0-100). Fails if coverage is below this."
    )
    parser.add_argument(
        "--html",
        action="store_true",
        help="Write an HTML coverage report and open it in a browser"
    )
    args = parser.parse_args()

    result = subprocess.run(build_command(args.min, args.html))

    if args.html and result.returncode == 0:
        html_path = Path("htmlcov/index.html")
        if html_path.exists():
            print(f"\nOpening coverage report: {html_path.absolute()}")
            webbrowser.open(html_path.absolute().as_uri())
        else:
            print("Warning: HTML coverage report not found")

    sys.exit(result.returncode)


if __name__ == "__main__":
    main()
