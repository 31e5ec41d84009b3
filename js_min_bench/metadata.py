"""Inputs and tools under benchmark.

Tool commands are shell templates. ``%%in%%`` and ``%%out%%`` are replaced
with the input bundle and the output path, ``%%externs%%`` with the input's
externs file (or nothing).
"""
from __future__ import annotations

import pathlib
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .paths import PACKAGE_DIR


@dataclass(frozen=True)
class Test:
    webroot: str
    test: str


@dataclass(frozen=True)
class JSFileMetadata:
    bundle_path: str
    desc: str
    # Path to project README; defaults to README.md alongside the bundle.
    readme: Optional[str] = None
    version: Optional[str] = None
    transform: Optional[str] = None
    externs: Optional[str] = None
    test: Optional[Test] = None

    @property
    def readme_path(self) -> str:
        if self.readme:
            return self.readme
        return str(pathlib.PurePosixPath(self.bundle_path).parent / "README.md")


@dataclass(frozen=True)
class Variant:
    command: str
    id: Optional[str] = None
    desc: Optional[str] = None


@dataclass(frozen=True)
class ToolMetadata:
    id: str
    name: str
    variants: Tuple[Variant, ...]


CLOSURE_COMMAND = " ".join(
    [
        "node_modules/.bin/google-closure-compiler",
        "--jscomp_off checkVars",
        "--warning_level QUIET",
        "--language_in ES_NEXT",
        "--language_out ECMASCRIPT_2015",
        "--isolation_mode IIFE",
        "--assume_function_wrapper",
        "--strict_mode_input",
    ]
)

TODOMVC_SUITE = str(PACKAGE_DIR / "suites" / "todomvc_suite.py")

JS: Mapping[str, JSFileMetadata] = MappingProxyType(
    {
        "angularjs": JSFileMetadata(
            bundle_path="third_party/angularjs/angular.js",
            desc="angularjs 1.6.6 minified bundle",
            version="1.6.6",
        ),
        "fake-10mb-angular": JSFileMetadata(
            transform="angularjs 10x",
            bundle_path="fake-10mb-angular.js",
            desc="angularjs 1.6.6 minified, artificially repeated until input file >10mb",
            version="1.6.6",
        ),
        "angular-hello": JSFileMetadata(
            bundle_path="third_party/angular/main.js",
            desc=(
                "angular5 + cli hello world "
                '(note: <a href="https://github.com/angular/closure-demo">'
                "closure-optimized build</a> is much smaller)"
            ),
        ),
        "react": JSFileMetadata(
            bundle_path="third_party/react/react.production.min.js",
            desc="react production bundle",
        ),
        "react-dom": JSFileMetadata(
            bundle_path="third_party/react/react-dom.production.min.js",
            desc="react-dom production bundle",
        ),
        "vue": JSFileMetadata(
            bundle_path="third_party/vue/vue.js",
            desc="vue.js 2.5.3",
            version="2.5.3",
        ),
        "todomvc-vanillajs": JSFileMetadata(
            bundle_path="third_party/todomvc/vanillajs/bundle.js",
            externs="third_party/todomvc/vanillajs/externs.js",
            desc="todomvc vanillajs",
            readme="third_party/todomvc/README.md",
            test=Test(webroot="third_party/todomvc/vanillajs", test=TODOMVC_SUITE),
        ),
        "todomvc-react": JSFileMetadata(
            bundle_path="third_party/todomvc/react/bundle.js",
            externs="third_party/todomvc/react/externs.js",
            desc="todomvc react",
            readme="third_party/todomvc/README.md",
            test=Test(webroot="third_party/todomvc/react", test=TODOMVC_SUITE),
        ),
    }
)

COMPRESS_MANGLE = "<tt>--compress</tt> and <tt>--mangle</tt> flags"

TOOLS: Tuple[ToolMetadata, ...] = (
    ToolMetadata(
        id="raw",
        name="baseline input file",
        variants=(Variant(command="cp %%in%% %%out%%"),),
    ),
    ToolMetadata(
        id="uglify",
        name="uglifyjs 3.5.6",
        variants=(
            Variant(command="node_modules/.bin/uglifyjs %%in%% -o %%out%%"),
            Variant(
                id="compress-mangle",
                desc=COMPRESS_MANGLE,
                command="node_modules/.bin/uglifyjs %%in%% -o %%out%% --compress --mangle",
            ),
        ),
    ),
    ToolMetadata(
        id="terser",
        name="terser 3.17.0",
        variants=(
            Variant(command="node_modules/.bin/terser %%in%% -o %%out%%"),
            Variant(
                id="compress-mangle",
                desc=COMPRESS_MANGLE,
                command="node_modules/.bin/terser %%in%% -o %%out%% --compress --mangle",
            ),
        ),
    ),
    ToolMetadata(
        id="closure",
        name=(
            "<a href='https://developers.google.com/closure/compiler/'>"
            "Google Closure Compiler</a> 20190415"
        ),
        variants=(
            Variant(command=f"{CLOSURE_COMMAND} --js_output_file=%%out%% %%in%%"),
            Variant(
                id="advanced",
                desc="advanced mode + externs",
                command=(
                    f"{CLOSURE_COMMAND} -O advanced third_party/externs.js %%externs%% "
                    "--js_output_file=%%out%% %%in%%"
                ),
            ),
        ),
    ),
    ToolMetadata(
        id="rjsmin",
        name="<a href='https://github.com/ndparker/rjsmin'>rjsmin</a>",
        variants=(
            Variant(command=f"{sys.executable} -m rjsmin < %%in%% > %%out%%"),
            Variant(
                id="keep-bang",
                desc="keeps <tt>/*!</tt> license comments",
                command=f"{sys.executable} -m rjsmin -b < %%in%% > %%out%%",
            ),
        ),
    ),
)
