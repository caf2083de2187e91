"""Network modes of the Electrum daemon."""

__all__ = [
    'Networks',
    'select_network',
]

import enum
import logging
import os
from pathlib import Path

LOG = logging.getLogger(__name__)

TESTNET_VAR = 'ELECTRUM_TESTNET'
NETWORK_VAR = 'ELECTRUM_NETWORK'


class Networks(enum.Enum):
    MAINNET = 'mainnet'
    TESTNET = 'testnet'
    REGTEST = 'regtest'
    SIMNET = 'simnet'

    @property
    def flags(self):
        """Command-line flags that select this network."""
        if self is Networks.MAINNET:
            return ()
        return ('--%s' % self.value, )

    def get_data_dir(self, base_dir):
        base_dir = Path(base_dir)
        if self is Networks.MAINNET:
            return base_dir
        return base_dir / self.value

    def get_wallets_dir(self, base_dir):
        return self.get_data_dir(base_dir) / 'wallets'


def select_network(environ=None):
    """Select network from environment variables.

    The first match wins, in the order of: ELECTRUM_TESTNET being
    "true", and then ELECTRUM_NETWORK being "testnet", "regtest", or
    "simnet".  Mainnet is selected when none matches.
    """
    if environ is None:
        environ = os.environ
    name = environ.get(NETWORK_VAR, '')
    if environ.get(TESTNET_VAR) == 'true' or name == 'testnet':
        return Networks.TESTNET
    elif name == 'regtest':
        return Networks.REGTEST
    elif name == 'simnet':
        return Networks.SIMNET
    if name and name != Networks.MAINNET.value:
        LOG.warning('unknown %s=%r; use mainnet', NETWORK_VAR, name)
    return Networks.MAINNET
