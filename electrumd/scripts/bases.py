"""Helpers for constructing ``subprocess.run`` calls contextually.

NOTE: Context is kept in a module-global variable, and thus is not
thread safe.  The supervisor and the builder are single-threaded, and
a signal handler only ever raises (it does not call ``run``).
"""

__all__ = [
    'REDACTED',
    'run',
    # Context manipulations.
    'doing_capture_output',
    'doing_check',
    'doing_dry_run',
    'get_dry_run',
    'redact',
    'using_secrets',
    'using_timeout',
]

import contextlib
import logging
import subprocess

from electrumd.bases.assertions import ASSERT

LOG = logging.getLogger(__name__)

REDACTED = '<redacted>'

_CONTEXT = {}

# Context entry names and default values.
_CAPTURE_OUTPUT = 'capture_output'
_CHECK = 'check'
_DRY_RUN = 'dry_run'
_SECRETS = 'secrets'
_TIMEOUT = 'timeout'
_DEFAULTS = {
    _CAPTURE_OUTPUT: False,
    _CHECK: True,
    _DRY_RUN: False,
    _SECRETS: frozenset(),
    _TIMEOUT: None,
}


def _get(name):
    return _CONTEXT.get(name, ASSERT.getitem(_DEFAULTS, name))


@contextlib.contextmanager
def _using(name, new_value):
    is_set = name in _CONTEXT
    old_value = _get(name)
    _CONTEXT[name] = new_value
    try:
        yield old_value
    finally:
        if is_set:
            _CONTEXT[name] = old_value
        else:
            _CONTEXT.pop(name)


def doing_capture_output(capture_output=True):
    return _using(_CAPTURE_OUTPUT, capture_output)


def doing_check(check=True):
    return _using(_CHECK, check)


def get_dry_run():
    return _get(_DRY_RUN)


def doing_dry_run(dry_run=True):
    return _using(_DRY_RUN, dry_run)


def using_secrets(secrets):
    """Context of arguments that must not appear in logs."""
    return _using(_SECRETS, _get(_SECRETS).union(map(str, secrets)))


def redact(args):
    secrets = _get(_SECRETS)
    return [REDACTED if arg in secrets else arg for arg in map(str, args)]


def using_timeout(timeout):
    """Context of bounding how long a command may run (in seconds)."""
    if timeout is not None:
        ASSERT.greater(timeout, 0)
    return _using(_TIMEOUT, timeout)


def run(args):
    args = list(map(str, args))
    LOG.debug('run: %s', ' '.join(redact(args)))
    if _get(_DRY_RUN):
        # Return a fake, successful result so that callers need not
        # special-case dry run.
        return subprocess.CompletedProcess(args, 0, b'', b'')
    return subprocess.run(
        args,
        capture_output=_get(_CAPTURE_OUTPUT),
        check=_get(_CHECK),
        timeout=_get(_TIMEOUT),
    )
