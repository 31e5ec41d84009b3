"""Runtime performance audits of a served bundle in Chromium.

Timings come from the page's Navigation/Paint Timing entries plus the
DevTools ``Performance`` domain, and are shaped like Lighthouse audits so
they can be folded straight into a result.
"""
from __future__ import annotations

import json
import logging
import pathlib
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from playwright.sync_api import Browser, sync_playwright

from .metadata import JS, JSFileMetadata
from .paths import AUDIT_DIR, DATA_DIR, PORT
from .schemas import ExperimentConfiguration
from .server import serve

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}

NAVIGATION_TIMING_JS = """
() => {
    const [entry] = performance.getEntriesByType('navigation');
    return entry ? entry.toJSON() : {};
}
"""

PAINT_TIMING_JS = """
() => Object.fromEntries(
    performance.getEntriesByType('paint').map((e) => [e.name, e.startTime])
)
"""

# DevTools metric name -> (audit id, title, scale to audit unit, unit)
CDP_AUDITS = {
    "ScriptDuration": ("script-duration", "Script evaluation", 1000.0, "millisecond"),
    "LayoutDuration": ("layout-duration", "Layout", 1000.0, "millisecond"),
    "RecalcStyleDuration": ("recalc-style-duration", "Style recalculation", 1000.0, "millisecond"),
    "TaskDuration": ("task-duration", "Main-thread tasks", 1000.0, "millisecond"),
    "JSHeapUsedSize": ("js-heap-used-size", "JS heap used", 1.0, "byte"),
    "Nodes": ("dom-nodes", "DOM nodes", 1.0, "element"),
}


def display_value(value: float, unit: str) -> str:
    if unit == "millisecond":
        return f"{value:,.1f} ms"
    if unit == "byte":
        return f"{value / 1024:,.1f} KiB"
    if unit == "element":
        return f"{value:,.0f} elements"
    return f"{value}"


def make_audit(audit_id: str, title: str, value: float, unit: str) -> dict:
    return {
        "id": audit_id,
        "title": title,
        "numericValue": value,
        "numericUnit": unit,
        "displayValue": display_value(value, unit),
    }


def build_report(
    requested_url: str,
    final_url: str,
    navigation: Mapping[str, float],
    paints: Mapping[str, float],
    metrics: List[Mapping[str, float]],
) -> dict:
    """Assemble a Lighthouse-shaped report from raw browser timings."""
    audits: Dict[str, dict] = {}

    def add(audit_id: str, title: str, value: Optional[float], unit: str = "millisecond") -> None:
        if value is None:
            return
        audits[audit_id] = make_audit(audit_id, title, value, unit)

    add("first-paint", "First Paint", paints.get("first-paint"))
    add("first-contentful-paint", "First Contentful Paint", paints.get("first-contentful-paint"))
    add("dom-content-loaded", "DOMContentLoaded", navigation.get("domContentLoadedEventEnd"))
    add("load-event", "Load event", navigation.get("loadEventEnd"))
    if "responseStart" in navigation and "requestStart" in navigation:
        add(
            "server-response-time",
            "Server response time",
            navigation["responseStart"] - navigation["requestStart"],
        )

    for metric in metrics:
        spec = CDP_AUDITS.get(metric.get("name"))
        if spec is None:
            continue
        audit_id, title, scale, unit = spec
        add(audit_id, title, metric["value"] * scale, unit)

    return {
        "requestedUrl": requested_url,
        "finalUrl": final_url,
        "fetchTime": datetime.now(timezone.utc).isoformat(),
        "categories": ["performance"],
        "audits": audits,
    }


class PerformanceAuditor:
    """Loads a URL in a fresh full-size context and reports its timings."""

    def __init__(self, browser: Browser, viewport: Optional[dict] = None) -> None:
        self.browser = browser
        self.viewport = viewport or VIEWPORT

    def audit(self, url: str) -> dict:
        context = self.browser.new_context(viewport=self.viewport)
        try:
            page = context.new_page()
            cdp = context.new_cdp_session(page)
            cdp.send("Performance.enable")
            page.goto(url, wait_until="load")
            page.wait_for_load_state("networkidle")
            navigation = page.evaluate(NAVIGATION_TIMING_JS)
            paints = page.evaluate(PAINT_TIMING_JS)
            metrics = cdp.send("Performance.getMetrics")["metrics"]
            return build_report(url, page.url, navigation, paints, metrics)
        finally:
            context.close()


def numeric_audits(report: dict) -> List[dict]:
    return [audit for audit in report.get("audits", {}).values() if audit.get("numericValue")]


def save_report(
    report: dict,
    configuration: ExperimentConfiguration,
    audit_dir: pathlib.Path = AUDIT_DIR,
) -> pathlib.Path:
    audit_dir.mkdir(parents=True, exist_ok=True)
    path = audit_dir / f"{configuration}.json"
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return path


def measure(
    configuration: Optional[ExperimentConfiguration] = None,
    port: int = PORT,
    headless: bool = True,
    inputs: Mapping[str, JSFileMetadata] = JS,
    data_dir: pathlib.Path = DATA_DIR,
    audit_dir: pathlib.Path = AUDIT_DIR,
) -> List[dict]:
    """Open Chromium and audit the served experiment.

    The raw report is only written to ``audit_dir`` when a configuration is
    given. Returns the audits that carry a numeric value.
    """
    server = serve(configuration, port=port, inputs=inputs, data_dir=data_dir)
    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(
                headless=headless,
                args=[f"--window-size={VIEWPORT['width']},{VIEWPORT['height']}"],
            )
            try:
                report = PerformanceAuditor(browser).audit(server.url)
            finally:
                browser.close()
    finally:
        server.stop()

    if configuration is not None:
        path = save_report(report, configuration, audit_dir)
        logger.info("Audit written to %s", path)
    return numeric_audits(report)
