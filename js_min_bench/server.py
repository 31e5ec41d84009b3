"""Minimal static file server used by the test suites and the audit.

Paths in ``remaps`` are served verbatim instead of being looked up under the
root, which is how a freshly minified bundle gets substituted for
``/bundle.js``.
"""
from __future__ import annotations

import logging
import os
import pathlib
import posixpath
import threading
import time
from typing import BinaryIO, Dict, Iterator, Mapping, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from .metadata import JS, JSFileMetadata
from .paths import DATA_DIR, PORT
from .schemas import ExperimentConfiguration

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    try:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


class WebServer:
    def __init__(self, root: str, host: str = "127.0.0.1") -> None:
        self.root = root
        self.host = host
        self.port: Optional[int] = None
        self.remaps: Dict[str, str] = {}
        self.app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
        self.app.add_api_route("/{path:path}", self.handle, methods=["GET"])
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    def resolve(self, raw_path: str) -> Optional[str]:
        """Map a request path onto a file path, or None for a bad path."""
        raw_path = raw_path or "/"
        req_path = posixpath.normpath(raw_path)
        if not req_path.startswith("/"):
            return None
        if raw_path.endswith("/"):
            req_path = req_path.rstrip("/") + "/index.html"
        remap = self.remaps.get(req_path)
        if remap:
            return os.path.normpath(remap)
        return os.path.join(self.root, req_path.lstrip("/"))

    async def handle(self, request: Request) -> Response:
        file_path = self.resolve(request.url.path)
        if file_path is None:
            return PlainTextResponse("bad path", status_code=400)
        try:
            handle = open(file_path, "rb")
        except OSError as exc:
            return PlainTextResponse(str(exc), status_code=500)
        return StreamingResponse(_iter_file(handle))

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def start(self, port: int = PORT, timeout: float = 15.0) -> "WebServer":
        config = uvicorn.Config(self.app, host=self.host, port=port, log_level="warning")
        server = uvicorn.Server(config)
        thread = threading.Thread(target=server.run, name=f"web-server-{port}", daemon=True)
        thread.start()

        deadline = time.time() + timeout
        while not server.started and thread.is_alive() and time.time() < deadline:
            time.sleep(0.05)

        if not server.started:
            server.should_exit = True
            thread.join(timeout=5)
            raise RuntimeError(f"web server did not start on port {port}")

        self.port = port
        self._server = server
        self._thread = thread
        return self

    def stop(self, timeout: float = 10.0) -> None:
        if self._server is None or self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            raise RuntimeError(f"web server on port {self.port} did not shut down")
        self._server = None
        self._thread = None

    def __enter__(self) -> "WebServer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def cmdline(self) -> str:
        """Command line that reproduces this server by hand."""
        cmd = f"js-min-bench serve --root={self.root}"
        if self.port is not None:
            cmd += f" --port={self.port}"
        for src, dst in self.remaps.items():
            cmd += f" --remap={src}={dst}"
        return cmd


def bundle_path(configuration: ExperimentConfiguration, data_dir: pathlib.Path = DATA_DIR) -> pathlib.Path:
    return data_dir / str(configuration)


def serve(
    configuration: Optional[ExperimentConfiguration] = None,
    port: int = PORT,
    inputs: Mapping[str, JSFileMetadata] = JS,
    data_dir: pathlib.Path = DATA_DIR,
) -> WebServer:
    """Serve an experiment's test webroot with its build output as /bundle.js."""
    if configuration is None:
        configuration = ExperimentConfiguration()
    meta = inputs.get(configuration.experiment_identifier)
    root = meta.test.webroot if meta and meta.test else ""

    server = WebServer(root)
    bundle = bundle_path(configuration, data_dir)
    server.remaps["/bundle.js"] = str(bundle)

    logger.info("Mapping bundle.js to %s", bundle)
    server.start(port)
    logger.info("Serving at: %s", server.url)
    return server
