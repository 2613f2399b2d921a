"""Thrift binary and compact protocol iterators and streams, with general and raw value models."""

__version__ = "0.1.0"
__all__ = ["protocol", "spi", "compact_types", "binary", "compact", "general", "raw"]