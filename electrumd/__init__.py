"""Build and supervise an Electrum wallet daemon container."""
