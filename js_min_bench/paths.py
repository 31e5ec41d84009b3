import os
import pathlib

PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
TEMPLATE_FILE = PACKAGE_DIR / "templates" / "results.template"

OUT_DIR = pathlib.Path("out")
DATA_DIR = OUT_DIR / "data"
AUDIT_DIR = OUT_DIR / "lighthouse"
RESULTS_FILE = OUT_DIR / "results.json"
INDEX_FILE = pathlib.Path("index.html")

PORT = int(os.getenv("JS_MIN_BENCH_PORT", "9000"))

# Everything up to and including this segment is stripped from commands
# shown in the report.
PROJECT_MARKER = "js-min-bench"
