"""Helpers for scripting the ``electrum`` command."""

__all__ = [
    'DaemonError',
    'electrum',
    # Config commands.
    'setconfig',
    # Daemon commands.
    'is_daemon_ready',
    'start_daemon',
    'stop_daemon',
    # Wallet commands.
    'create_wallet',
    'load_wallet',
]

import logging
import subprocess

from electrumd import scripts
from electrumd.apps import parameters

LOG = logging.getLogger(__name__)

PARAMS = parameters.define(
    __name__,
    parameters.Namespace(
        binary=parameters.Parameter(
            'electrum',
            doc='path to, or name of, the electrum executable',
        ),
    ),
)

DEFAULT_WALLET = 'default_wallet'

# Config values that are masked in logs and error messages.
SECRET_KEYS = frozenset(('rpcpassword', ))


class DaemonError(Exception):
    pass


def electrum(args):
    return scripts.run([PARAMS.binary.get(), *args])


def setconfig(key, value, network):
    """Persist a config entry without a running daemon."""
    args = ['setconfig', key, value, *network.flags, '--offline']
    if key not in SECRET_KEYS:
        return electrum(args)
    with scripts.using_secrets([value]):
        try:
            return electrum(args)
        except subprocess.CalledProcessError as exc:
            exc.cmd = scripts.redact(exc.cmd)
            raise


def start_daemon(network):
    """Start a detached daemon; this returns once it has forked."""
    return electrum(['daemon', '-d', *network.flags])


def stop_daemon(network):
    return electrum(['daemon', 'stop', *network.flags])


def is_daemon_ready(network):
    with scripts.doing_check(False), scripts.doing_capture_output():
        proc = electrum(['getinfo', *network.flags])
    if proc.returncode != 0:
        LOG.debug(
            'daemon is not ready: returncode=%d stderr=%r',
            proc.returncode,
            proc.stderr,
        )
    return proc.returncode == 0


def create_wallet(network):
    return electrum(['create', '--offline', *network.flags])


def load_wallet(network):
    return electrum(['load_wallet', *network.flags])
