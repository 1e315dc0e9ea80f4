"""supplygraph - in-memory supply-chain metadata graph."""

__version__ = "0.1.0"
