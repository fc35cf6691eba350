import sys

import pytest
from loguru import logger

from unitprice import config
from unitprice.cli import main
from unitprice.config import ANNOTATION_CLASS

PAGE = (
    "<html><body><div class='product'><span>800 g</span>"
    "<span class='price'>36 kr</span></div></body></html>"
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_cli_annotates_file_to_output(tmp_path, capsys):
    src = tmp_path / "page.html"
    out = tmp_path / "out.html"
    src.write_text(PAGE, encoding="utf-8")

    code = main([str(src), "-o", str(out), "--log-level", "WARNING"])

    assert code == 0
    html = out.read_text(encoding="utf-8")
    assert ANNOTATION_CLASS in html
    assert "- ~45.00 / kg" in html
    assert "1 price candidates, 1 unit prices injected" in capsys.readouterr().err


def test_cli_writes_to_stdout(tmp_path, capsys):
    src = tmp_path / "page.html"
    src.write_text(PAGE, encoding="utf-8")

    assert main([str(src), "--log-level", "WARNING"]) == 0
    assert "- ~45.00 / kg" in capsys.readouterr().out


def test_cli_missing_file_exits_2(tmp_path, capsys):
    code = main([str(tmp_path / "nope.html"), "--log-level", "ERROR"])
    assert code == 2
    assert "could not read input" in capsys.readouterr().err


def test_cli_url_fetch_failure_exits_2(monkeypatch, capsys):
    monkeypatch.setattr("unitprice.cli.fetch_page_html", lambda url: None)
    assert main(["--url", "https://shop.example/gone", "--log-level", "ERROR"]) == 2


def test_cli_invalid_depth_exits_2(tmp_path):
    src = tmp_path / "page.html"
    src.write_text(PAGE, encoding="utf-8")
    assert main([str(src), "--max-depth", "0", "--log-level", "ERROR"]) == 2


def test_cli_log_file_receives_debug_lines(tmp_path):
    src = tmp_path / "page.html"
    log = tmp_path / "logs" / "run.log"
    src.write_text(PAGE, encoding="utf-8")

    assert main([str(src), "-o", str(tmp_path / "out.html"), "--log-level", "ERROR", "--log-file", str(log)]) == 0
    config.setup_logging("ERROR")

    assert "Injected ~45.00 / kg" in log.read_text(encoding="utf-8")
