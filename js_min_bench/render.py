"""Renders out/results.json into the HTML comparison table."""
from __future__ import annotations

import logging
import pathlib
import re
import sys
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, Undefined
from markupsafe import Markup

from .metadata import JS, TOOLS, JSFileMetadata, ToolMetadata
from .paths import INDEX_FILE, PACKAGE_DIR, PROJECT_MARKER, RESULTS_FILE, TEMPLATE_FILE
from .schemas import ExperimentResult, Metric, load_results

logger = logging.getLogger(__name__)

BASELINE_TOOL = "raw"

# Keys never rendered as columns.
EXCLUDE_FIELDS = {
    "input",
    "tool",
    "variant",
    "metrics",
    "unminifiedJavascript",
    "usesTextCompression",
    "unusedJavascript",
    "networkServerLatency",
    "networkRtt",
    "bootupTime",
    "serverResponseTime",
}

SIZE_COLUMNS = [Metric.SIZE.value, Metric.GZIP_SIZE.value, Metric.BROTLI_SIZE.value]

TEMPLATES_DIR = PACKAGE_DIR / "templates"


def redact_command(cmd: str, marker: str = PROJECT_MARKER) -> str:
    """Redacts the "/home/username/.../" bit from a command line."""
    if sys.executable:
        cmd = cmd.replace(sys.executable, "python")
    return re.sub(rf"^.*/{re.escape(marker)}/", "", cmd)


class KeepPlaceholder(Undefined):
    """Renders an unknown %%name%% placeholder back unchanged."""

    def __str__(self) -> str:
        return f"%%{self._undefined_name}%%"


template_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)
template_env.filters["redact"] = redact_command

page_env = Environment(
    variable_start_string="%%",
    variable_end_string="%%",
    undefined=KeepPlaceholder,
    keep_trailing_newline=True,
    autoescape=False,
)


def _macros():
    return template_env.get_template("report_macros.html.j2").module


def rollup(results: Sequence[ExperimentResult]) -> Dict[str, List[ExperimentResult]]:
    """Group results by input, keeping first-appearance order."""
    groups: Dict[str, List[ExperimentResult]] = {}
    for result in results:
        groups.setdefault(result.input, []).append(result)
    return groups


def included_columns(results: Sequence[ExperimentResult]) -> List[str]:
    columns = list(SIZE_COLUMNS)
    for result in results:
        for key in result.data.audits or {}:
            if key not in EXCLUDE_FIELDS and key not in columns:
                columns.append(key)
    columns.append(Metric.BUILD_TIME.value)
    return columns


def extremes(results: Sequence[ExperimentResult], column: str) -> Tuple[Optional[float], Optional[float]]:
    """Best (min) and worst (max) of a column over successful non-baseline rows."""
    values = []
    for result in results:
        if result.failure or result.tool == BASELINE_TOOL:
            continue
        measurement = result.data.get(column)
        if measurement is not None:
            values.append(measurement.numeric_value)
    if not values:
        return None, None
    return min(values), max(values)


def baseline_value(results: Sequence[ExperimentResult], column: str) -> Optional[float]:
    for result in results:
        if result.tool == BASELINE_TOOL and not result.failure:
            measurement = result.data.get(column)
            return measurement.numeric_value if measurement is not None else None
    return None


def percentage_reduction(value: float, raw: Optional[float]) -> str:
    if not raw:
        return ""
    reduction = -(value / raw - 1) * 100
    if not reduction:
        return ""
    return f"{reduction:.1f}%"


def two_column_row(result: ExperimentResult, results: Sequence[ExperimentResult], column: str) -> Markup:
    measurement = result.data.get(column)
    if measurement is None:
        return _macros().measurement_cells()

    best, worst = extremes(results, column)
    classes = []
    if best is not None and measurement.numeric_value == best:
        classes.append("best")
    if worst is not None and measurement.numeric_value == worst:
        classes.append("worst")
    special = " ".join(classes)

    pct = ""
    if column == Metric.BUILD_TIME.value:
        second = "blank"
    elif worst:
        second = "pct"
        pct = percentage_reduction(measurement.numeric_value, baseline_value(results, column))
    else:
        second = "empty"
    return _macros().measurement_cells(measurement.display_value, special, second, pct)


def results_table(
    all_results: Sequence[ExperimentResult],
    inputs: Mapping[str, JSFileMetadata] = JS,
) -> str:
    columns = included_columns(all_results)

    groups = []
    for input_id, results in rollup(all_results).items():
        meta = inputs.get(input_id)
        rows = []
        last_tool = ""
        for result in results:
            cells = [] if result.failure else [two_column_row(result, results, c) for c in columns]
            rows.append({"result": result, "first": result.tool != last_tool, "cells": cells})
            last_tool = result.tool
        groups.append({"input": input_id, "readme": meta.readme_path if meta else None, "rows": rows})

    return template_env.get_template("results_table.html.j2").render(
        columns=columns, colspan=2 * len(columns), groups=groups
    )


def tool_details(tools: Sequence[ToolMetadata] = TOOLS) -> str:
    baseline, *others = tools
    return template_env.get_template("tool_details.html.j2").render(baseline=baseline, tools=others)


def fill_template(template: str, fields: Mapping[str, str]) -> str:
    return page_env.from_string(template).render(fields)


def render(
    results_file: pathlib.Path = RESULTS_FILE,
    template_file: pathlib.Path = TEMPLATE_FILE,
    index_file: pathlib.Path = INDEX_FILE,
    inputs: Mapping[str, JSFileMetadata] = JS,
    tools: Sequence[ToolMetadata] = TOOLS,
) -> pathlib.Path:
    """Read the results file and write the rendered report."""
    results = load_results(results_file)
    template = template_file.read_text(encoding="utf-8")
    output = fill_template(
        template,
        {
            "resultsTable": results_table(results, inputs),
            "toolDetails": tool_details(tools),
        },
    )
    index_file.write_text(output, encoding="utf-8")
    logger.info("HTML written to %s", index_file)
    return index_file
