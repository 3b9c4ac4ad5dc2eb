from datetime import datetime

import pytest

from tradematch import logger
from tradematch.logger import Level


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger.set_log_file(None)
    logger.set_level(Level.INFO)


def test_info_line_format(capsys):
    logger.info("Matching Engine starting up...")
    out = capsys.readouterr().out
    assert out.endswith("\n")
    stamp, level, message = out[:-1].split(" ", 2)
    assert level == "[INFO]"
    assert message == "Matching Engine starting up..."
    assert len(stamp) == 23
    assert stamp[19] == "."
    assert stamp[20:].isdigit()
    parsed = datetime.strptime(stamp[:19], "%Y-%m-%dT%H:%M:%S")
    assert parsed.strftime("%Y-%m-%dT%H:%M:%S") == stamp[:19]


def test_level_names(capsys):
    logger.set_level(Level.DEBUG)
    logger.debug("a")
    logger.warn("b")
    logger.err("c")
    lines = capsys.readouterr().out.splitlines()
    assert [line.split(" ", 2)[1] for line in lines] == ["[DEBUG]", "[WARN]", "[ERR]"]


def test_messages_below_level_are_dropped(capsys):
    logger.set_level(Level.ERR)
    logger.info("hidden")
    logger.warn("hidden")
    assert capsys.readouterr().out == ""
    logger.log(Level.ERR, "shown")
    assert capsys.readouterr().out.endswith("[ERR] shown\n")


def test_default_level_drops_debug(capsys):
    logger.debug("quiet")
    assert capsys.readouterr().out == ""


def test_log_file_appends(tmp_path, capsys):
    path = tmp_path / "engine.log"
    path.write_text("existing\n", encoding="utf-8")
    logger.set_log_file(str(path))
    logger.info("first")
    logger.err("second")
    assert capsys.readouterr().out == ""
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "existing"
    assert lines[1].endswith("[INFO] first")
    assert lines[2].endswith("[ERR] second")


def test_unopenable_file_falls_back_to_stdout(tmp_path, capsys):
    logger.set_log_file(str(tmp_path / "missing" / "dir" / "x.log"))
    logger.info("console")
    assert capsys.readouterr().out.endswith("[INFO] console\n")