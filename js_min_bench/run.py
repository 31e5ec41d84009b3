"""Runs every (input, tool, variant) combination and records the results."""
from __future__ import annotations

import logging
import os
import pathlib
import re
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Sequence

from playwright.sync_api import Error as PlaywrightError

from .measure import measure
from .metadata import JS, TOOLS, JSFileMetadata, Test, ToolMetadata
from .paths import DATA_DIR, INDEX_FILE, RESULTS_FILE, TEMPLATE_FILE
from .render import render
from .schemas import ExperimentConfiguration, ExperimentResult, Measurement, write_results
from .suite import run_tests
from .transforms import apply_transform

logger = logging.getLogger(__name__)

AuditFn = Callable[..., List[dict]]
TestRunner = Callable[[Test, str], Optional[str]]

LOGGED_AUDITS = {
    "speedIndex",
    "interactive",
    "mainthreadWorkBreakdown",
    "firstContentfulPaint",
    "scriptDuration",
}


@dataclass
class RunSummary:
    results: List[ExperimentResult] = field(default_factory=list)
    total_errors: int = 0


def camelcase(value: str) -> str:
    head, *rest = value.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def exec_command(cmd: str) -> None:
    """Synchronously executes a shell command with inherited stdio."""
    subprocess.run(cmd, shell=True, check=True)


def gzip_size(path: pathlib.Path) -> int:
    """gzips a bundle and returns the gzipped size."""
    exec_command(f"gzip -k -9 -f {path}")
    return pathlib.Path(f"{path}.gz").stat().st_size


def brotli_size(path: pathlib.Path) -> int:
    """brotli-compresses a bundle and returns the compressed size."""
    brotli = os.getenv("BROTLI", "brotli")
    exec_command(f"{brotli} -k -9 -f {path}")
    return pathlib.Path(f"{path}.br").stat().st_size


def kilobytes(num_bytes: int) -> Measurement:
    value = num_bytes / 1000
    if value.is_integer():
        value = int(value)
    return Measurement(numeric_value=value, numeric_unit="kB")


def elapsed_ms(start: float) -> Measurement:
    return Measurement(numeric_value=round((time.perf_counter() - start) * 1000, 1), numeric_unit="ms")


def build_command(template: str, input_path: str, out: str, externs: Optional[str]) -> str:
    return (
        template.replace("%%in%%", input_path)
        .replace("%%out%%", out)
        .replace("%%externs%%", externs or "")
    )


def run_experiments(
    inputs: Mapping[str, JSFileMetadata] = JS,
    tools: Sequence[ToolMetadata] = TOOLS,
    input_filter: Optional[re.Pattern] = None,
    tool_filter: Optional[re.Pattern] = None,
    skip_tests: bool = False,
    data_dir: pathlib.Path = DATA_DIR,
    audit: Optional[AuditFn] = measure,
    test_runner: TestRunner = run_tests,
) -> RunSummary:
    """Build, test, and measure each combination in turn.

    Inputs run in sorted order, tools and variants in table order. Build and
    test failures are recorded on the result and the loop moves on; only
    test failures count towards ``total_errors``. An audit that fails is
    logged and the result is kept without audit columns. The audit is
    called with the loop's ``inputs`` and ``data_dir``.
    """
    summary = RunSummary()

    for experiment_identifier in sorted(inputs):
        if input_filter and not input_filter.search(experiment_identifier):
            continue

        meta = inputs[experiment_identifier]
        input_path = meta.bundle_path
        if meta.transform:
            input_path = str(apply_transform(meta.transform, meta.bundle_path, inputs, data_dir=data_dir))

        for tool in tools:
            for variant in tool.variants:
                configuration = ExperimentConfiguration(
                    tool=tool.id, variant=variant.id, input=experiment_identifier
                )
                if tool_filter and not tool_filter.search(configuration.platform_identifier):
                    continue

                logger.info("%s", configuration)
                out = data_dir / str(configuration)
                cmd = build_command(variant.command, input_path, str(out), meta.externs)
                result = ExperimentResult(input=experiment_identifier, tool=tool.id, variant=variant.id)

                start = time.perf_counter()
                try:
                    exec_command(cmd)
                except (subprocess.CalledProcessError, OSError) as exc:
                    logger.warning("Could not execute cmd: %s (%s)", cmd, exc)
                    result.data.build_time = elapsed_ms(start)
                    result.failure = str(exc)
                    summary.results.append(result)
                    continue
                result.data.build_time = elapsed_ms(start)

                if not skip_tests and meta.test:
                    failure = test_runner(meta.test, str(out))
                    if failure:
                        result.failure = failure
                        summary.results.append(result)
                        summary.total_errors += 1
                        continue
                else:
                    result.untested = True
                    logger.warning("warning: no test for %s", configuration)

                result.data.size = kilobytes(out.stat().st_size)
                result.data.gzip_size = kilobytes(gzip_size(out))
                result.data.brotli_size = kilobytes(brotli_size(out))

                if audit is not None:
                    try:
                        entries = audit(configuration, inputs=inputs, data_dir=data_dir)
                    except (PlaywrightError, RuntimeError, OSError) as exc:
                        logger.warning("audit failed for %s: %s", configuration, exc)
                        entries = []
                    for entry in entries:
                        key = camelcase(entry["id"])
                        measurement = Measurement.from_audit(entry)
                        result.data.add_audit(key, measurement)
                        if key in LOGGED_AUDITS:
                            logger.info("%s %s: %s", configuration, key, measurement.display_value)

                summary.results.append(result)

    return summary


def run(
    input_filter: Optional[re.Pattern] = None,
    tool_filter: Optional[re.Pattern] = None,
    skip_tests: bool = False,
    audit: Optional[AuditFn] = measure,
    inputs: Mapping[str, JSFileMetadata] = JS,
    tools: Sequence[ToolMetadata] = TOOLS,
    data_dir: pathlib.Path = DATA_DIR,
    results_file: pathlib.Path = RESULTS_FILE,
    index_file: pathlib.Path = INDEX_FILE,
    template_file: pathlib.Path = TEMPLATE_FILE,
    test_runner: TestRunner = run_tests,
) -> int:
    """Run the benchmark, write results and the report; returns the exit status."""
    data_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "inputFilter=%s toolFilter=%s skipTests=%s",
        input_filter and input_filter.pattern,
        tool_filter and tool_filter.pattern,
        skip_tests,
    )

    summary = run_experiments(
        inputs=inputs,
        tools=tools,
        input_filter=input_filter,
        tool_filter=tool_filter,
        skip_tests=skip_tests,
        data_dir=data_dir,
        audit=audit,
        test_runner=test_runner,
    )

    write_results(summary.results, results_file)
    logger.info("Results written to %s", results_file)

    render(
        results_file=results_file,
        template_file=template_file,
        index_file=index_file,
        inputs=inputs,
        tools=tools,
    )

    return int(summary.total_errors > 0)
