"""
Command-line entry point tests
"""

import pytest

import main


@pytest.mark.parametrize("argv", [
    [],
    ["--url", "http://x.com/"],
    ["--root", "out"],
])
def test_missing_required_flags_print_usage(argv, capsys):
    assert main.main(argv) == 1

    err = capsys.readouterr().err
    assert "usage:" in err
    assert "--url and --root are required" in err


def test_invalid_wait_exits(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(["--url", "http://x.com/", "--root", "out", "--wait", "soon"])

    assert exc_info.value.code != 0


def test_invalid_option_value_prints_usage(capsys):
    assert main.main(["--url", "http://x.com/", "--root", "out", "--queue-size", "0"]) == 1
    assert "queue_capacity" in capsys.readouterr().err


def test_missing_config_file_prints_usage(tmp_path, capsys):
    assert main.main(["--config", str(tmp_path / "absent.yaml")]) == 1
    assert "usage:" in capsys.readouterr().err


def test_relative_seed_fails_before_fetching(tmp_path, monkeypatch):
    monkeypatch.setattr(main.CrawlerApp, "setup_signal_handlers", lambda self: None)

    status = main.main(["--url", "x.com/index.html", "--root", str(tmp_path / "out")])

    assert status == 1
    assert not list((tmp_path / "out").iterdir())


def test_parser_accepts_duration_strings():
    args = main.build_parser().parse_args(["--wait", "1m30s", "--host-policy", "first-response"])

    assert args.wait == pytest.approx(90.0)
    assert args.host_policy == "first-response"


def test_unexpected_error_prints_fatal_error(tmp_path, monkeypatch, capsys):
    async def broken_run(self, config):
        raise OSError("Address already in use")

    monkeypatch.setattr(main.CrawlerApp, "run", broken_run)

    status = main.main(["--url", "http://x.com/", "--root", str(tmp_path / "out")])

    assert status == 1
    assert "Fatal error: Address already in use" in capsys.readouterr().out
