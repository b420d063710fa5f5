"""AsterVault — persistence, monitoring and retrieval for ELM text models."""

__version__ = "0.4.0"
