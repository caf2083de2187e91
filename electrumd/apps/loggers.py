"""Configure loggers.

Logs go to stderr, where the container runtime collects them.

NOTE: This module has import-time side effect: when environment
variable DEBUG is set (to anything but "0" or "false"), it configures
logging at DEBUG level right away so that you may debug startup.
"""

__all__ = [
    'TRACE',
    'add_arguments',
    'configure_logging',
]

import logging
import os

# Finer than DEBUG, selected by -vv.
TRACE = logging.DEBUG - 1
logging.addLevelName(TRACE, 'TRACE')

_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'
_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG, TRACE)


def add_arguments(parser):
    parser.add_argument(
        '-v',
        '--verbose',
        action='count',
        default=0,
        help='increase log level (repeat for more)',
    )


def configure_logging(args):
    _configure(logging.INFO, args.verbose)


def _configure(level, verbose):
    index = min(_LEVELS.index(level) + verbose, len(_LEVELS) - 1)
    logging.basicConfig(level=_LEVELS[index], format=_FORMAT)


if os.environ.get('DEBUG', '').lower() not in ('', '0', 'false'):
    _configure(logging.DEBUG, 0)
    logging.getLogger(__name__).debug('start at DEBUG level')
