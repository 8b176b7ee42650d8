"""Utility functions for logging configuration"""
import sys
import logging


_LEVELS = (logging.ERROR, logging.WARN, logging.INFO, logging.DEBUG)


def _filter_header_parsing_error(record: logging.LogRecord) -> int:
    """Filters warnings of ``urllib3.exceptions.HeaderParsingError``.

    WADO-RS servers commonly answer frame requests with multipart messages,
    which urllib3 reports as header parsing failures.

    Parameters
    ----------
    record: logging.LogRecord
        log record to filter

    Returns
    -------
    int
        zero if the record should be filtered, non-zero otherwise

    """
    if 'Failed to parse headers' in record.getMessage():
        return 0
    return 1


def _map_logging_verbosity(verbosity: int) -> int:
    """Maps logging verbosity to logging level.

    Parameters
    ----------
    verbosity: int
        logging verbosity (e.g. ``2``)

    Returns
    -------
    int
        logging level (e.g. ``logging.INFO``)

    """
    if verbosity < 0:
        return _LEVELS[0]
    try:
        return _LEVELS[verbosity]
    except IndexError:
        return _LEVELS[-1]


def configure_logging(verbosity: int) -> logging.Logger:
    """Configures the root logger with a "stderr" stream handler, so that
    standard output stays reserved for the results of the command line
    program (e.g., load times or parsed transfer syntaxes).

    Logging verbosity maps to levels as follows::

            0 -> CRITICAL & ERROR messages
            1 -> CRITICAL, ERROR & WARN/WARNING messages
            2 -> CRITICAL, ERROR, WARN/WARNING, & INFO messages
            3 -> CRITICAL, ERROR, WARN/WARNING, INFO & DEBUG messages
            4 -> all messages, including line numbers

    Parameters
    ----------
    verbosity: int
        logging verbosity

    Returns
    -------
    logging.Logger
        package root logger

    """
    if verbosity > 3:
        fmt = (
            '%(asctime)s | %(levelname)-8s | %(name)-32s | '
            '%(lineno)-4s | %(message)s'
        )
    else:
        fmt = '%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s'
    formatter = logging.Formatter(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.name == 'stderr':
            root_logger.removeHandler(handler)
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.name = 'stderr'
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(logging.ERROR)

    level = _map_logging_verbosity(verbosity)
    pkg_name = __name__.split('.')[0]
    pkg_logger = logging.getLogger(pkg_name)
    pkg_logger.setLevel(level)

    urllib3_logger = logging.getLogger('urllib3')
    urllib3_logger.setLevel(level)
    urllib3_logger.propagate = True
    conn_pool_logger = logging.getLogger('urllib3.connectionpool')
    conn_pool_logger.addFilter(_filter_header_parsing_error)

    return pkg_logger
