import logging

import pytest

from wadors_loader.log import (
    _filter_header_parsing_error,
    _map_logging_verbosity,
    configure_logging,
)


@pytest.mark.parametrize('verbosity,level', [
    (0, logging.ERROR),
    (1, logging.WARN),
    (2, logging.INFO),
    (3, logging.DEBUG),
    (5, logging.DEBUG),
])
def test_map_logging_verbosity(verbosity, level):
    assert _map_logging_verbosity(verbosity) == level


def test_configure_logging():
    logger = configure_logging(3)
    assert logger.name == 'wadors_loader'
    assert logger.level == logging.DEBUG
    configure_logging(1)
    stderr_handlers = [
        h for h in logging.getLogger().handlers if h.name == 'stderr'
    ]
    assert len(stderr_handlers) == 1
    assert logging.getLogger('wadors_loader').level == logging.WARN


def test_filter_header_parsing_error():
    record = logging.LogRecord(
        'urllib3.connectionpool', logging.WARNING, __file__, 1,
        'Failed to parse headers (url=%s)', ('http://host',), None
    )
    assert _filter_header_parsing_error(record) == 0
    record.msg = 'Connection pool is full'
    record.args = ()
    assert _filter_header_parsing_error(record) == 1
