import pytest

from js_min_bench import cli


def test_global_options_before_subcommand():
    args = cli.build_parser().parse_args(["--inputFilter", "vue", "--skip-tests", "run"])
    assert args.command == "run"
    assert args.input_filter.pattern == "vue"
    assert args.tool_filter is None
    assert args.skip_tests is True


def test_global_options_after_subcommand():
    args = cli.build_parser().parse_args(["run", "--toolFilter", "^uglify", "--no-audit"])
    assert args.tool_filter.search("uglify-compress-mangle")
    assert args.input_filter is None
    assert args.skip_tests is False
    assert args.no_audit is True


def test_invalid_regex_is_rejected():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--toolFilter", "(", "run"])


def test_serve_arguments():
    args = cli.build_parser().parse_args(
        ["serve", "terser", "vanillajs", "--remap", "/bundle.js=out/data/x.js", "--port", "9100"]
    )
    assert (args.tool, args.framework, args.port) == ("terser", "vanillajs", 9100)
    assert args.remap == [("/bundle.js", "out/data/x.js")]


def test_bad_remap_is_rejected():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["serve", "--remap", "/bundle.js"])


def test_run_returns_exit_status(monkeypatch):
    calls = {}

    def fake_run(**kwargs):
        calls.update(kwargs)
        return 1

    monkeypatch.setattr(cli, "run", fake_run)
    assert cli.main(["run", "--inputFilter", "react", "--no-audit"]) == 1
    assert calls["input_filter"].pattern == "react"
    assert calls["audit"] is None


def test_run_wires_audit_by_default(monkeypatch):
    calls = {}
    monkeypatch.setattr(cli, "run", lambda **kwargs: calls.update(kwargs) or 0)
    assert cli.main(["--skip-tests", "run"]) == 0
    assert calls["skip_tests"] is True
    assert calls["audit"].keywords == {"headless": True}


def test_render_command(monkeypatch):
    called = []
    monkeypatch.setattr(cli, "render", lambda: called.append(True))
    assert cli.main(["render"]) == 0
    assert called == [True]


def test_measure_command_prints_audits(monkeypatch, capsys):
    audits = [{"id": "first-paint", "displayValue": "12.0 ms", "numericValue": 12.0}]
    monkeypatch.setattr(cli.measure_mod, "measure", lambda headless=True: audits)
    assert cli.main(["measure"]) == 0
    assert "first-paint" in capsys.readouterr().out
