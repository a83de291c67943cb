"""Port Ethereum Solidity repositories to Monad."""

__version__ = "0.1.0"
