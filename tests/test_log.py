import logging

from mathdelim.log import setup_logging


def test_setup_logging_adds_handlers_once(tmp_path):
    log_file = tmp_path / "logs" / "mathdelim.log"
    logger = setup_logging(log_file, logging.DEBUG)
    assert logger.name == "mathdelim"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert log_file.parent.is_dir()

    setup_logging(log_file, logging.WARNING)
    assert len(logger.handlers) == 2
    assert logger.level == logging.WARNING


def test_child_loggers_write_to_file(tmp_path):
    log_file = tmp_path / "mathdelim.log"
    logger = setup_logging(log_file, logging.DEBUG)
    logging.getLogger("mathdelim.latex_processor").debug("pass finished")
    for handler in logger.handlers:
        handler.flush()
    content = log_file.read_text()
    assert "mathdelim.latex_processor - DEBUG - pass finished" in content
