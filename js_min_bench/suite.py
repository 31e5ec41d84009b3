"""Correctness suites run against a minified bundle."""
from __future__ import annotations

import logging
import os
import pathlib
import subprocess
import sys
from typing import Optional

from .metadata import Test
from .paths import PORT
from .server import WebServer

logger = logging.getLogger(__name__)

URL_ENV = "JS_MIN_BENCH_URL"
TEST_FAILURE = "test failure"


def run_suite(test_file: str, base_url: str) -> int:
    """Run one suite file through pytest; returns pytest's exit status."""
    env = os.environ.copy()
    env[URL_ENV] = base_url
    proc = subprocess.run(
        [sys.executable, "-m", "pytest", "-q", "-p", "no:cacheprovider", str(pathlib.Path(test_file).resolve())],
        env=env,
    )
    return proc.returncode


def run_tests(test: Test, bundle_path: str, port: int = PORT) -> Optional[str]:
    """Runs a test suite with a JS bundle substituted in.

    Returns a failure message if the suite failed, None on success.
    """
    server = WebServer(test.webroot)
    server.remaps["/bundle.js"] = str(bundle_path)
    logger.info("Testing %s against %s", bundle_path, test.test)

    server.start(port)
    try:
        status = run_suite(test.test, server.url)
    finally:
        server.stop()

    if status != 0:
        logger.warning("run test manually via\n$ %s", server.cmdline())
        return TEST_FAILURE
    logger.info("No errors")
    return None
