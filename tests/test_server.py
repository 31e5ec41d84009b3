import os

import httpx
import pytest
from fastapi.testclient import TestClient

from js_min_bench.schemas import ExperimentConfiguration
from js_min_bench.metadata import JSFileMetadata
from js_min_bench import metadata
from js_min_bench.server import WebServer, serve


@pytest.fixture
def webroot(tmp_path):
    root = tmp_path / "www"
    (root / "sub").mkdir(parents=True)
    (root / "index.html").write_text("<script src=bundle.js></script>")
    (root / "bundle.js").write_text("original();")
    (root / "sub" / "index.html").write_text("nested")
    return root


@pytest.fixture
def client(webroot, tmp_path):
    server = WebServer(str(webroot))
    replacement = tmp_path / "minified.js"
    replacement.write_text("minified();")
    server.remaps["/bundle.js"] = str(replacement)
    with TestClient(server.app) as c:
        yield c


def test_directory_requests_serve_index(client):
    assert client.get("/").text == "<script src=bundle.js></script>"
    assert client.get("/sub/").text == "nested"


def test_remapped_path_serves_target(client):
    response = client.get("/bundle.js")
    assert response.status_code == 200
    assert response.text == "minified();"
    assert "content-type" not in response.headers


def test_missing_file_is_server_error(client):
    response = client.get("/nope.js")
    assert response.status_code == 500
    assert "No such file" in response.text


def test_resolve_rules(webroot):
    server = WebServer(str(webroot))
    server.remaps["/bundle.js"] = "out/data/../data/x.js"

    assert server.resolve("/a/../b.js") == os.path.join(str(webroot), "b.js")
    assert server.resolve("/bundle.js") == os.path.join("out", "data", "x.js")
    assert server.resolve("/docs/") == os.path.join(str(webroot), "docs", "index.html")
    assert server.resolve("") == os.path.join(str(webroot), "index.html")
    assert server.resolve("relative.js") is None


def test_cmdline_lists_remaps(webroot):
    server = WebServer(str(webroot))
    server.remaps["/bundle.js"] = "out/data/todomvc-react.raw"
    assert server.cmdline() == (
        f"js-min-bench serve --root={webroot} --remap=/bundle.js=out/data/todomvc-react.raw"
    )


def test_start_and_stop_release_the_port(webroot, free_port):
    for _ in range(2):
        server = WebServer(str(webroot)).start(free_port)
        try:
            response = httpx.get(f"http://127.0.0.1:{free_port}/bundle.js", timeout=5)
            assert response.text == "original();"
        finally:
            server.stop()


def test_serve_maps_bundle_for_experiment(tmp_path, webroot, free_port):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "todomvc-react.raw").write_text("built();")
    inputs = {
        "todomvc-react": JSFileMetadata(
            bundle_path="bundle.js", desc="todomvc", test=metadata.Test(webroot=str(webroot), test="suite.py")
        )
    }

    server = serve(ExperimentConfiguration(), port=free_port, inputs=inputs, data_dir=data_dir)
    try:
        assert server.remaps == {"/bundle.js": str(data_dir / "todomvc-react.raw")}
        base = f"http://127.0.0.1:{free_port}"
        assert httpx.get(f"{base}/bundle.js", timeout=5).text == "built();"
        assert httpx.get(f"{base}/", timeout=5).text == "<script src=bundle.js></script>"
    finally:
        server.stop()
