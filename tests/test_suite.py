import logging

import pytest

from js_min_bench import suite
from js_min_bench import metadata


def test_failing_suite_reports_and_logs_repro(tmp_path, free_port, monkeypatch, caplog):
    seen = {}

    def fake_run_suite(test_file, base_url):
        seen["args"] = (test_file, base_url)
        return 1

    monkeypatch.setattr(suite, "run_suite", fake_run_suite)
    test = metadata.Test(webroot=str(tmp_path), test="suites/todomvc.py")

    with caplog.at_level(logging.WARNING):
        message = suite.run_tests(test, "out/data/todomvc-react.terser", port=free_port)

    assert message == "test failure"
    assert seen["args"] == ("suites/todomvc.py", f"http://localhost:{free_port}")
    assert any("--remap=/bundle.js=out/data/todomvc-react.terser" in r.getMessage() for r in caplog.records)


def test_passing_suite_returns_none(tmp_path, free_port, monkeypatch):
    monkeypatch.setattr(suite, "run_suite", lambda test_file, base_url: 0)
    test = metadata.Test(webroot=str(tmp_path), test="suites/todomvc.py")
    assert suite.run_tests(test, "out/data/bundle.js", port=free_port) is None


def test_server_is_stopped_when_suite_crashes(tmp_path, free_port, monkeypatch):
    def boom(test_file, base_url):
        raise OSError("cannot spawn")

    monkeypatch.setattr(suite, "run_suite", boom)
    test = metadata.Test(webroot=str(tmp_path), test="suites/todomvc.py")
    with pytest.raises(OSError):
        suite.run_tests(test, "bundle.js", port=free_port)

    monkeypatch.setattr(suite, "run_suite", lambda test_file, base_url: 0)
    assert suite.run_tests(test, "bundle.js", port=free_port) is None


def test_run_suite_exports_base_url(tmp_path):
    test_file = tmp_path / "check_env.py"
    test_file.write_text(
        "import os\n\n"
        "def test_url():\n"
        "    assert os.environ['JS_MIN_BENCH_URL'] == 'http://localhost:1234'\n"
    )
    assert suite.run_suite(str(test_file), "http://localhost:1234") == 0
