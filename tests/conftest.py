"""Pytest fixtures for diagspan tests."""
from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def temp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.diagspan]
display_style = "short"
tab_width = 2
chars = "ascii"
start_context_lines = 5
end_context_lines = 2
before_label_lines = 1
after_label_lines = 1
color = "never"
emitter = "debug"
"""
    )
    return config_path


@pytest.fixture
def empty_pyproject(tmp_path: Path) -> Path:
    """Create a pyproject.toml without [tool.diagspan] section."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[project]
name = "test-project"
version = "0.1.0"
"""
    )
    return config_path


@pytest.fixture
def invalid_toml(tmp_path: Path) -> Path:
    """Create an invalid TOML file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text("invalid [ toml content")
    return config_path


@pytest.fixture
def invalid_config(tmp_path: Path) -> Path:
    """Create a pyproject.toml with invalid diagspan config."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.diagspan]
display_style = "fancy"
chars = "emoji"
tab_width = -1
color = "maybe"
"""
    )
    return config_path


@pytest.fixture
def diagnostics_document(tmp_path: Path) -> Path:
    """A JSON diagnostics document with one error and one inline file."""
    (tmp_path / "hello.txt").write_text("hello world\n")
    document: Path = tmp_path / "diagnostics.json"
    document.write_text(json.dumps({
        "files": [
            {"name": "greeting.txt", "source": "let x = 1;\nlet y = x + \"a\";\n"},
            {"name": "hello.txt", "path": "hello.txt"},
        ],
        "diagnostics": [
            {
                "severity": "error",
                "code": "E0001",
                "message": "mismatched types",
                "labels": [
                    {
                        "style": "primary",
                        "file": "greeting.txt",
                        "start": 23,
                        "end": 26,
                        "message": "expected number",
                    },
                ],
                "notes": ["strings cannot be added to numbers"],
            },
        ],
    }))
    return document


@pytest.fixture
def warning_document(tmp_path: Path) -> Path:
    """A JSON diagnostics document containing only a warning."""
    document: Path = tmp_path / "warnings.json"
    document.write_text(json.dumps({
        "files": [{"name": "a.txt", "source": "unused = 1\n"}],
        "diagnostics": [
            {
                "severity": "warning",
                "message": "unused variable",
                "labels": [{"file": "a.txt", "start": 0, "end": 6}],
            },
        ],
    }))
    return document
