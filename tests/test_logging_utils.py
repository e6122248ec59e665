import logging

from services.logging_utils import get_logger, set_level


def test_logger_has_one_handler_and_does_not_propagate() -> None:
    logger = get_logger("evm.test.single")
    again = get_logger("evm.test.single")

    assert again is logger
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_records_are_not_repeated_by_root_handlers() -> None:
    seen = []

    class Collect(logging.Handler):
        def emit(self, record):
            seen.append(record.getMessage())

    root_handler = Collect()
    logging.getLogger().addHandler(root_handler)
    try:
        get_logger("evm.test.root").warning("once")
    finally:
        logging.getLogger().removeHandler(root_handler)

    assert seen == []


def test_set_level_applies_to_created_loggers() -> None:
    logger = get_logger("evm.test.level", level="INFO")
    set_level("error")
    try:
        assert logger.level == logging.ERROR
    finally:
        set_level("INFO")
