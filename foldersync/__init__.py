"""One-way periodic folder mirroring."""

__version__ = "0.1.0"
