import io

import pytest

from logger import LogLevel, Logger, get_logger


def test_messages_above_level_are_dropped():
    stream = io.StringIO()
    log = Logger("sweep", level=LogLevel.WARNING, stream=stream)
    log.debug("constraint count")
    log.info("starting")
    log.warning("missing labels")
    log.error("aborted")

    output = stream.getvalue()
    assert "constraint count" not in output
    assert "starting" not in output
    assert "WARNING [sweep] missing labels" in output
    assert "ERROR   [sweep] aborted" in output


def test_section_is_always_written():
    stream = io.StringIO()
    log = Logger("results", level=LogLevel.ERROR, stream=stream)
    log.section("OPTIMIZATION RESULTS", width=40)
    assert "OPTIMIZATION RESULTS" in stream.getvalue()
    assert "=" * 40 in stream.getvalue()


def test_exception_includes_traceback():
    stream = io.StringIO()
    log = Logger("solver", stream=stream)
    try:
        raise RuntimeError("license expired")
    except RuntimeError:
        log.exception("Solve failed")

    output = stream.getvalue()
    assert "Solve failed" in output
    assert "Traceback" in output
    assert "license expired" in output


def test_exception_outside_handler_logs_message_only():
    stream = io.StringIO()
    log = Logger("solver", stream=stream)
    log.exception("Solve failed")
    assert "Solve failed" in stream.getvalue()
    assert "Traceback" not in stream.getvalue()


def test_progress_format():
    stream = io.StringIO()
    log = Logger("sweep", stream=stream)
    log.progress("Optimizing for threshold 60.01", 1, 4)
    assert "[1/4 - 25.0%] Optimizing for threshold 60.01" in stream.getvalue()


def test_log_file_mirrors_output(tmp_path):
    log_path = tmp_path / "logs" / "sweep.log"
    with Logger("sweep", stream=io.StringIO(), file_path=log_path) as log:
        log.info("Completed 7 solves")
    assert "Completed 7 solves" in log_path.read_text(encoding="utf-8")


def test_get_logger_returns_same_instance():
    assert get_logger("combination") is get_logger("combination")


def test_level_from_name():
    assert LogLevel.from_name(" debug ") is LogLevel.DEBUG
    assert LogLevel.from_name("WARNING") is LogLevel.WARNING
    with pytest.raises(ValueError, match="Unknown log level"):
        LogLevel.from_name("verbose")


def test_attach_file_switches_target(tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"
    log = Logger("sweep", stream=io.StringIO(), file_path=first)
    log.info("to first")
    log.attach_file(second)
    log.info("to second")
    log.close()

    assert "to second" not in first.read_text(encoding="utf-8")
    assert "to second" in second.read_text(encoding="utf-8")
