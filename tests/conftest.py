"""Shared fixtures for the benchmark tests."""

import socket
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from js_min_bench.metadata import JSFileMetadata, Test, ToolMetadata, Variant  # noqa: E402

BUNDLE_SOURCE = "function add(first, second) {\n    return first + second;\n}\n" * 40

FAKE_BROTLI = """#!/bin/sh
for last; do :; done
cp "$last" "$last.br"
"""


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("localhost", 0))
        return s.getsockname()[1]


@pytest.fixture
def fake_brotli(tmp_path, monkeypatch):
    """Stand-in for the brotli binary: copies the input to <input>.br."""
    script = tmp_path / "fake-brotli"
    script.write_text(FAKE_BROTLI)
    script.chmod(0o755)
    monkeypatch.setenv("BROTLI", str(script))
    return script


@pytest.fixture
def bundles(tmp_path):
    third_party = tmp_path / "third_party"
    paths = {}
    for name in ("react", "vue", "todomvc"):
        path = third_party / name / "bundle.js"
        path.parent.mkdir(parents=True)
        path.write_text(BUNDLE_SOURCE)
        paths[name] = path
    return paths


@pytest.fixture
def inputs(bundles):
    return {
        "vue": JSFileMetadata(bundle_path=str(bundles["vue"]), desc="vue"),
        "react": JSFileMetadata(bundle_path=str(bundles["react"]), desc="react"),
        "todomvc": JSFileMetadata(
            bundle_path=str(bundles["todomvc"]),
            desc="todomvc",
            externs="third_party/todomvc/externs.js",
            test=Test(webroot=str(bundles["todomvc"].parent), test="suite.py"),
        ),
    }


@pytest.fixture
def tools():
    return (
        ToolMetadata(id="raw", name="baseline input file", variants=(Variant(command="cp %%in%% %%out%%"),)),
        ToolMetadata(
            id="squash",
            name="whitespace stripper",
            variants=(
                Variant(command="tr -d ' \\n' < %%in%% > %%out%%"),
                Variant(id="spaces", desc="spaces only", command="tr -d ' ' < %%in%% > %%out%%"),
            ),
        ),
        ToolMetadata(
            id="missing",
            name="a tool that is not installed",
            variants=(Variant(command="definitely-not-a-minifier-4242 %%in%% -o %%out%%"),),
        ),
    )
