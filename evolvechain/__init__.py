"""Rollup node helpers: configuration, the ANDE precompile and MEV tooling."""

__version__ = "0.1.0"