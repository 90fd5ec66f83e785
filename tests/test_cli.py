import io

import pytest

from helmify.cli import main, parse_args, version_text

MANIFEST = """apiVersion: v1
kind: ConfigMap
metadata:
  name: my-config
data:
  key: value
"""


class _Tty(io.StringIO):
    def isatty(self):
        return True


def test_parse_args_defaults():
    config = parse_args([])
    assert config.chart_name == ""
    assert config.verbose is False
    assert config.crd is False


def test_parse_args_chart_path():
    config = parse_args(["deploy/charts/mychart"])
    assert config.chart_name == "mychart"
    assert config.chart_dir == "deploy/charts"


def test_parse_args_plain_name():
    config = parse_args(["mychart"])
    assert config.chart_name == "mychart"
    assert config.chart_dir == "."


def test_parse_args_flags():
    config = parse_args(["-v", "-vv", "-crd-dir", "-image-pull-secrets", "x"])
    assert config.verbose is True
    assert config.very_verbose is True
    assert config.crd is True
    assert config.image_pull_secrets is True
    assert config.chart_name == "x"


def test_version_text():
    text = version_text()
    assert "Version:    development" in text
    assert "Git Commit: not set" in text


def test_version_flag_exits(capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["-version"])
    assert info.value.code == 0
    assert capsys.readouterr().out == version_text()


@pytest.mark.parametrize("flag", ["-h", "-help"])
def test_help_flag_exits(capsys, flag):
    with pytest.raises(SystemExit) as info:
        parse_args([flag])
    assert info.value.code == 0
    out = capsys.readouterr().out
    assert "Usage:" in out
    assert "-crd-dir" in out


def test_main_rejects_terminal(monkeypatch):
    monkeypatch.setattr("sys.stdin", _Tty(""))
    assert main(["chart"]) == 1


def test_main_creates_chart(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.stdin", io.StringIO(MANIFEST))
    assert main([str(tmp_path / "mychart")]) == 0
    assert (tmp_path / "mychart" / "Chart.yaml").is_file()
    assert (tmp_path / "mychart" / "values.yaml").is_file()


def test_main_invalid_chart_name(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.stdin", io.StringIO(MANIFEST))
    assert main([str(tmp_path / "my_chart")]) == 1
    assert not (tmp_path / "my_chart").exists()