"""Base runner for applications."""

__all__ = [
    'LABELS',
    'run',
]

import argparse
import contextlib
import inspect
import sys

from startup import startup

from electrumd.bases import labels
from electrumd.bases.assertions import ASSERT

from . import loggers

LABELS = labels.make_labels(
    __name__,
    'args',
    'args_not_validated',
    'argv',
    'parser',
    'exit_stack',
    'main',
    # Labels for sequencing application startup.
    'parse',
    'validate_args',
)

#
# Application startup.
#


@startup
def parse_argv(
    parser: LABELS.parser,
    argv: LABELS.argv,
    _: LABELS.parse,
) -> LABELS.args_not_validated:
    return parser.parse_args(argv[1:])


@startup
def wait_for_args_validation(
    args: LABELS.args_not_validated,
    _: LABELS.validate_args,
) -> LABELS.args:
    return args


startup.add_func(
    loggers.add_arguments,
    {
        'parser': LABELS.parser,
        'return': LABELS.parse,
    },
)

startup.add_func(
    loggers.configure_logging,
    {'args': LABELS.args},
)

#
# Public interface.
#


def run(main, argv=None, *, prog=None):
    if argv is None:
        argv = sys.argv
    startup.set(LABELS.argv, argv)
    startup.set(LABELS.main, main)
    startup.set(
        LABELS.parser,
        argparse.ArgumentParser(
            prog=prog or argv[0],
            description=main.__doc__,
        ),
    )
    # Trick to make ``parse`` and ``validate_args`` "optional".
    startup.set(LABELS.parse, None)
    startup.set(LABELS.validate_args, None)
    with contextlib.ExitStack() as exit_stack:
        startup.set(LABELS.exit_stack, exit_stack)
        main, kwargs = _do_startup()
        status = main(**kwargs)
    sys.exit(status)


def _do_startup():
    varz = startup.call()
    main = varz[LABELS.main]
    kwargs = {}
    for parameter in inspect.signature(main).parameters.values():
        if parameter.annotation is parameter.empty:
            ASSERT.true(parameter.default is not parameter.empty)
        else:
            kwargs[parameter.name] = varz[parameter.annotation]
    return main, kwargs
