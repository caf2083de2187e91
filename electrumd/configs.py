__all__ = [
    'Config',
    'ConfigError',
    'RpcConfig',
]

import dataclasses
import os

from electrumd.bases.assertions import ASSERT

from . import networks

USER_VAR = 'ELECTRUM_USER'
PASSWORD_VAR = 'ELECTRUM_PASSWORD'

DEFAULT_RPC_HOST = '0.0.0.0'
DEFAULT_RPC_PORT = 7000


class ConfigError(ValueError):
    pass


@dataclasses.dataclass(frozen=True)
class RpcConfig:
    """RPC credentials and endpoint of the daemon."""

    user: str
    password: str
    host: str = DEFAULT_RPC_HOST
    port: int = DEFAULT_RPC_PORT

    def __post_init__(self):
        ASSERT.greater(self.port, 0)

    def iter_settings(self):
        """Yield (key, value) pairs for ``electrum setconfig``."""
        yield 'rpcuser', self.user
        yield 'rpcpassword', self.password
        yield 'rpchost', self.host
        yield 'rpcport', self.port


@dataclasses.dataclass(frozen=True)
class Config:

    network: networks.Networks
    rpc: RpcConfig

    @classmethod
    def from_environ(
        cls,
        environ=None,
        *,
        rpc_host=DEFAULT_RPC_HOST,
        rpc_port=DEFAULT_RPC_PORT,
    ):
        if environ is None:
            environ = os.environ
        missing = [
            var for var in (USER_VAR, PASSWORD_VAR) if not environ.get(var)
        ]
        if missing:
            raise ConfigError(
                'expect non-empty environment variables: %s' %
                ', '.join(missing)
            )
        return cls(
            network=networks.select_network(environ),
            rpc=RpcConfig(
                user=environ[USER_VAR],
                password=environ[PASSWORD_VAR],
                host=rpc_host,
                port=rpc_port,
            ),
        )
