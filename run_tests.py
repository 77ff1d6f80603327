#!/usr/bin/env python
"""
Test runner script for inputdeck.

Runs the test suite and optional quality checks with one command.

Usage:
    python run_tests.py                    # Run all tests
    python run_tests.py --coverage         # Run with coverage report
    python run_tests.py --all-checks       # Tests, mypy and black
    python run_tests.py -k verification    # Forward a pytest keyword filter
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PACKAGE = "inputdeck"


def _ensure_pythonioencoding():
    """Default PYTHONIOENCODING to UTF-8 if it is not already set."""
    if os.environ.get("PYTHONIOENCODING") != "utf-8":
        os.environ["PYTHONIOENCODING"] = "utf-8"


def run_command(cmd: list, description: str) -> bool:
    """Run a command from the project root and return True if successful."""
    print(f"\n{'='*80}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print(f"{'='*80}\n")

    result = subprocess.run(cmd, cwd=ROOT_DIR)
    success = result.returncode == 0

    print(f"\n{description} - {'PASSED' if success else 'FAILED'}")
    return success


def main():
    _ensure_pythonioencoding()
    parser = argparse.ArgumentParser(description="Run inputdeck tests and quality checks")
    parser.add_argument("--coverage", action="store_true", help="Run tests with coverage report")
    parser.add_argument("--html-coverage", action="store_true", help="Generate HTML coverage report")
    parser.add_argument("--mypy", action="store_true", help="Run mypy type checking")
    parser.add_argument("--black-check", action="store_true", help="Check code formatting with black")
    parser.add_argument(
        "--all-checks",
        action="store_true",
        help="Run all quality checks (tests with coverage, mypy, black)",
    )
    parser.add_argument("-k", dest="keyword", help="Only run tests matching this pytest expression")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args()

    results = []

    pytest_cmd = [sys.executable, "-m", "pytest", "tests"]
    if args.verbose:
        pytest_cmd.append("-vv")
    if args.keyword:
        pytest_cmd.extend(["-k", args.keyword])
    if args.coverage or args.html_coverage or args.all_checks:
        pytest_cmd.extend([f"--cov={PACKAGE}", "--cov-report=term-missing"])
        if args.html_coverage or args.all_checks:
            pytest_cmd.append("--cov-report=html")
    results.append(run_command(pytest_cmd, "Unit Tests"))

    if args.mypy or args.all_checks:
        results.append(run_command(["mypy", PACKAGE], "Type Checking (mypy)"))

    if args.black_check or args.all_checks:
        black_cmd = ["black", "--check", "--line-length=120", PACKAGE, "tests"]
        results.append(run_command(black_cmd, "Code Formatting (black)"))

    # Print summary
    print(f"\n{'='*80}")
    print("TEST SUMMARY")
    print(f"{'='*80}")

    passed = sum(results)
    total = len(results)
    print(f"\nPassed: {passed}/{total}")

    if all(results):
        print("\nALL CHECKS PASSED")
        return 0
    print("\nSOME CHECKS FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())
