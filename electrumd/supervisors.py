"""Supervise an Electrum daemon as the container's main process.

The supervisor applies the daemon config, launches the daemon detached,
and then idles until SIGTERM, on which it terminates child processes,
asks the daemon to stop, and waits (bounded) for them to exit.
"""

__all__ = [
    'Shutdown',
    'Supervisor',
    'cmd_supervise',
    'make_supervisor',
    'reap_children',
]

import contextlib
import logging
import os
import signal
import subprocess
import time
from pathlib import Path

from electrumd import scripts
from electrumd.apps import parameters

from . import configs
from . import electrums

LOG = logging.getLogger(__name__)

PARAMS = parameters.define(
    __name__,
    parameters.Namespace(
        rpc=parameters.Namespace(
            'daemon RPC endpoint',
            host=parameters.Parameter(
                configs.DEFAULT_RPC_HOST,
                doc='address the daemon RPC server listens on',
            ),
            port=parameters.Parameter(
                configs.DEFAULT_RPC_PORT,
                doc='port the daemon RPC server listens on',
                validator=lambda port: 0 < port < 65536,
            ),
        ),
        data_dir=parameters.Parameter(
            '/home/electrum/.electrum',
            doc='daemon base config directory',
        ),
        ready_timeout=parameters.Parameter(
            30.0,
            doc='how long to wait for daemon readiness (0 to skip)',
            type=(int, float),
            unit='second',
            validator=lambda timeout: timeout >= 0,
        ),
        ready_interval=parameters.Parameter(
            1.0,
            doc='interval between readiness checks',
            type=(int, float),
            unit='second',
            validator=lambda interval: interval > 0,
        ),
        stop_timeout=parameters.Parameter(
            10.0,
            doc='how long to wait for daemon exit before killing it',
            type=(int, float),
            unit='second',
            validator=lambda timeout: timeout > 0,
        ),
        prepare_wallet=parameters.Parameter(
            False,
            doc='create (if missing) and load the default wallet',
        ),
    ),
)

# Interval of polling child processes during shutdown.
_CHILDREN_POLL_INTERVAL = 0.2


class Shutdown(Exception):
    """Raised (from the signal handler) when SIGTERM is received."""


class Supervisor:

    def __init__(
        self,
        config,
        *,
        data_dir,
        ready_timeout,
        ready_interval,
        stop_timeout,
        prepare_wallet=False,
    ):
        self._config = config
        self._data_dir = Path(data_dir)
        self._ready_timeout = ready_timeout
        self._ready_interval = ready_interval
        self._stop_timeout = stop_timeout
        self._prepare_wallet = prepare_wallet

    @property
    def network(self):
        return self._config.network

    def run(self):
        """Run until SIGTERM and return the exit status.

        Errors during startup are propagated to the caller.
        """
        LOG.info('supervise daemon: network=%s', self.network.value)
        # Register the handler before anything else so that SIGTERM
        # arriving during startup is honored.
        with self._handling_sigterm():
            try:
                self.start()
                self.idle()
            except Shutdown:
                LOG.info('user requests shutdown')
                self.shutdown()
        return 0

    @contextlib.contextmanager
    def _handling_sigterm(self):

        def handle(signum, _):
            # Shutdown is requested once; ignore repeated signals.
            signal.signal(signal.SIGTERM, signal.SIG_IGN)
            LOG.info('receive signal: %s', signal.Signals(signum).name)
            raise Shutdown

        previous = signal.signal(signal.SIGTERM, handle)
        try:
            yield
        finally:
            signal.signal(signal.SIGTERM, previous)

    def start(self):
        # The daemon must not be running while we write its config.
        for key, value in self._config.rpc.iter_settings():
            electrums.setconfig(key, value, self.network)
        if self._prepare_wallet:
            self._create_wallet_if_missing()
        electrums.start_daemon(self.network)
        self.wait_until_ready()
        if self._prepare_wallet:
            electrums.load_wallet(self.network)
        LOG.info('daemon is started')

    def _create_wallet_if_missing(self):
        wallet_path = (
            self.network.get_wallets_dir(self._data_dir) /
            electrums.DEFAULT_WALLET
        )
        if wallet_path.exists():
            LOG.info('use existing wallet: %s', wallet_path)
        else:
            LOG.info('create wallet: %s', wallet_path)
            electrums.create_wallet(self.network)

    def wait_until_ready(self):
        if self._ready_timeout <= 0:
            LOG.info('skip daemon readiness check')
            return
        deadline = time.monotonic() + self._ready_timeout
        while not electrums.is_daemon_ready(self.network):
            if time.monotonic() >= deadline:
                raise electrums.DaemonError(
                    'daemon is not ready after %s seconds' %
                    self._ready_timeout
                )
            time.sleep(self._ready_interval)
        LOG.info('daemon is ready')

    @staticmethod
    def idle():
        LOG.info('wait for termination signal')
        while True:
            signal.pause()
            # Reap orphans that exit while we idle.
            reap_children()

    def shutdown(self):
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        pid = os.getpid()
        scripts.pkill_children(pid, signal.SIGTERM)
        self._request_stop()
        remaining = self._wait_for_children(pid)
        if remaining:
            LOG.warning('kill child processes: pids=%s', remaining)
            scripts.pkill_children(pid, signal.SIGKILL)
            reap_children()
        LOG.info('daemon is stopped')

    def _request_stop(self):
        """Ask the daemon to stop (best-effort)."""
        try:
            with scripts.doing_check(False), \
                    scripts.using_timeout(self._stop_timeout):
                proc = electrums.stop_daemon(self.network)
        except (subprocess.TimeoutExpired, OSError) as exc:
            LOG.warning('cannot request daemon to stop: %r', exc)
            return
        if proc.returncode != 0:
            LOG.warning(
                'daemon stop request err: returncode=%d', proc.returncode
            )

    def _wait_for_children(self, pid):
        deadline = time.monotonic() + self._stop_timeout
        while True:
            reap_children()
            remaining = scripts.pgrep_children(pid)
            if not remaining or time.monotonic() >= deadline:
                return remaining
            time.sleep(_CHILDREN_POLL_INTERVAL)


def reap_children():
    """Reap terminated child processes without blocking.

    As the container's process 1, we inherit orphaned processes (like
    the detached daemon), and have to reap them.
    """
    while True:
        try:
            pid, status = os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            return
        if pid == 0:
            return
        LOG.info('reap child process: pid=%d status=%d', pid, status)


def make_supervisor(config):
    return Supervisor(
        config,
        data_dir=PARAMS.data_dir.get(),
        ready_timeout=PARAMS.ready_timeout.get(),
        ready_interval=PARAMS.ready_interval.get(),
        stop_timeout=PARAMS.stop_timeout.get(),
        prepare_wallet=PARAMS.prepare_wallet.get(),
    )


def cmd_supervise(environ=None):
    config = configs.Config.from_environ(
        environ,
        rpc_host=PARAMS.rpc.host.get(),
        rpc_port=PARAMS.rpc.port.get(),
    )
    return make_supervisor(config).run()
