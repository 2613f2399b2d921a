"""Interfaces shared by the protocol readers, writers and codecs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from thriftwire.protocol import TType


class Iterator(ABC):
    """Reads Thrift values from a source, one protocol element at a time."""

    @abstractmethod
    def read_struct_header(self) -> None:
        """Enter a struct."""

    @abstractmethod
    def read_struct_field(self) -> tuple[TType, int]:
        """Return the next field's type and id; the type is STOP at the end."""

    @abstractmethod
    def read_list_header(self) -> tuple[TType, int]:
        """Return the element type and length of a list."""

    @abstractmethod
    def read_map_header(self) -> tuple[TType, TType, int]:
        """Return the key type, element type and length of a map."""

    @abstractmethod
    def discard(self, ttype: TType) -> None:
        """Read past one value of the given type."""


class Stream(ABC):
    """Writes Thrift values to a buffer or writer."""

    @abstractmethod
    def write_struct_header(self) -> None:
        """Enter a struct."""

    @abstractmethod
    def write_struct_field(self, field_type: TType, field_id: int) -> None:
        """Write the header of one struct field."""

    @abstractmethod
    def write_struct_field_stop(self) -> None:
        """Write the end marker of a struct."""


class ValEncoder(ABC):
    """Writes values of one Python type."""

    @abstractmethod
    def encode(self, val: Any, stream: Stream) -> None:
        """Write ``val`` to ``stream``."""

    @abstractmethod
    def thrift_type(self) -> TType:
        """Wire type of the values this encoder writes."""


class ValDecoder(ABC):
    """Reads values of one Python type."""

    @abstractmethod
    def decode(self, iterator: Iterator) -> Any:
        """Read one value from ``iterator`` and return it."""


class Extension(ABC):
    """Supplies codecs for the types it knows, ``None`` for the rest."""

    @abstractmethod
    def decoder_of(self, val_type: type) -> ValDecoder | None:
        """Decoder for ``val_type``, or ``None``."""

    @abstractmethod
    def encoder_of(self, val_type: type) -> ValEncoder | None:
        """Encoder for ``val_type``, or ``None``."""


class DummyExtension(Extension):
    """An extension that knows no types."""

    def decoder_of(self, val_type: type) -> ValDecoder | None:
        return None

    def encoder_of(self, val_type: type) -> ValEncoder | None:
        return None


class Extensions(list, Extension):
    """Ordered extensions; the first one that knows a type wins."""

    def decoder_of(self, val_type: type) -> ValDecoder | None:
        for extension in self:
            decoder = extension.decoder_of(val_type)
            if decoder is not None:
                return decoder
        return None

    def encoder_of(self, val_type: type) -> ValEncoder | None:
        for extension in self:
            encoder = extension.encoder_of(val_type)
            if encoder is not None:
                return encoder
        return None


def discard_list(iterator: Iterator) -> None:
    """Read past a whole list."""
    elem_type, size = iterator.read_list_header()
    for _ in range(size):
        iterator.discard(elem_type)


def discard_struct(iterator: Iterator) -> None:
    """Read past a whole struct, up to and including its stop marker."""
    iterator.read_struct_header()
    while True:
        field_type, _ = iterator.read_struct_field()
        if field_type == TType.STOP:
            return
        iterator.discard(field_type)


def discard_map(iterator: Iterator) -> None:
    """Read past a whole map."""
    key_type, elem_type, size = iterator.read_map_header()
    for _ in range(size):
        iterator.discard(key_type)
        iterator.discard(elem_type)