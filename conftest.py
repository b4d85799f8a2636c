"""
Pytest configuration for test discovery and imports.

Ensures src/ is on sys.path so tests can import modules directly, and keeps
CI environment variables from leaking into the deployer under test.
"""

import os
import sys

import pytest

ROOT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


@pytest.fixture(autouse=True)
def _isolated_ci_environment(monkeypatch):
    """Unset pipeline variables read by the deployer."""
    for name in ("GITHUB_OUTPUT", "GITHUB_SHA", "AWS_REGION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
