"""Order-preserving variable-length encoding for unsigned 64-bit integers.

This module implements "bvarint", a variant of the SQLite4 varint format in
which the first byte of an encoding tells the decoder how many bytes follow.
Encodings compare in the same order as the integers they represent when
compared byte-wise (memcmp order), so they can be used directly as keys in
sorted stores.

Encoding format (lead byte, then payload bytes):
- 0 to 240: 1 byte - the value itself
- 241 to 2287: 2 bytes - 241..248, low 8 bits of (value - 240)
- 2288 to 67823: 3 bytes - 249, (value - 2288) as 2 big-endian bytes
- 67824 to 2^24-1: 4 bytes - 250, value as 3 big-endian bytes
- ... up to 9 bytes (255, value as 8 big-endian bytes) for 2^56 to 2^64-1
"""
from bisect import bisect_right
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator

MAX_VALUE = (1 << 64) - 1
MAX_ENCODED_LENGTH = 9


class TruncatedInput(ValueError):
    """Raised when a buffer ends before the encoding its lead byte announces."""

    def __init__(self, offset: int, needed: int, available: int):
        super().__init__(
            f"Truncated bvarint at offset {offset}: need {needed} bytes, have {available}")
        self.offset = offset
        self.needed = needed
        self.available = available


@dataclass(frozen=True)
class LengthClass:
    """One row of the length-class table.

    A value ``v`` of this class is written as the lead byte
    ``first_lead + ((v - offset) >> (8 * payload_size))`` followed by the low
    ``payload_size`` bytes of ``v - offset`` in big-endian order.
    """
    class_id: int
    first_lead: int
    last_lead: int
    payload_size: int
    min_value: int
    max_value: int
    offset: int

    @property
    def encoded_length(self) -> int:
        return 1 + self.payload_size

    @property
    def lead_bytes(self) -> range:
        return range(self.first_lead, self.last_lead + 1)


LENGTH_CLASSES: tuple[LengthClass, ...] = (
    LengthClass(0, 0x00, 0xf0, 0, 0, 240, 0),
    LengthClass(1, 0xf1, 0xf8, 1, 241, 2287, 240),
    LengthClass(2, 0xf9, 0xf9, 2, 2288, 67823, 2288),
    LengthClass(3, 0xfa, 0xfa, 3, 67824, (1 << 24) - 1, 0),
    LengthClass(4, 0xfb, 0xfb, 4, 1 << 24, (1 << 32) - 1, 0),
    LengthClass(5, 0xfc, 0xfc, 5, 1 << 32, (1 << 40) - 1, 0),
    LengthClass(6, 0xfd, 0xfd, 6, 1 << 40, (1 << 48) - 1, 0),
    LengthClass(7, 0xfe, 0xfe, 7, 1 << 48, (1 << 56) - 1, 0),
    LengthClass(8, 0xff, 0xff, 8, 1 << 56, MAX_VALUE, 0),
)

_MIN_VALUES = tuple(length_class.min_value for length_class in LENGTH_CLASSES)

_CLASS_BY_LEAD: tuple[LengthClass, ...] = tuple(
    length_class
    for length_class in LENGTH_CLASSES
    for _ in length_class.lead_bytes
)


def _check_value(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"Cannot encode non-integer value: {value!r}")
    if value < 0:
        raise ValueError(f"Cannot encode negative value: {value}")
    if value > MAX_VALUE:
        raise ValueError(f"Value {value} exceeds maximum (2^64-1)")


def length_class_for_value(value: int) -> LengthClass:
    """Return the length class whose value range contains ``value``."""
    _check_value(value)
    return LENGTH_CLASSES[bisect_right(_MIN_VALUES, value) - 1]


def length_class_for_lead_byte(lead: int) -> LengthClass:
    """Return the length class selected by a lead byte (0-255)."""
    if not 0 <= lead <= 0xff:
        raise ValueError(f"Lead byte out of range: {lead}")
    return _CLASS_BY_LEAD[lead]


def encoded_length(value: int) -> int:
    """Return the number of bytes ``encode_bvarint(value)`` produces."""
    return length_class_for_value(value).encoded_length


def encode_bvarint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as 1 to 9 order-preserving bytes.

    Args:
        value: Integer in the range 0 to 2^64-1

    Returns:
        The encoding; its length is fixed by the value's length class

    Raises:
        TypeError: If value is not an integer
        ValueError: If value is negative or exceeds 2^64-1
    """
    length_class = length_class_for_value(value)
    payload = value - length_class.offset
    payload_bits = 8 * length_class.payload_size
    lead = length_class.first_lead + (payload >> payload_bits)
    low = payload & ((1 << payload_bits) - 1)
    return bytes((lead,)) + low.to_bytes(length_class.payload_size, 'big')


def encode_bvarints(values: Iterable[int]) -> bytes:
    """Encode several integers into one concatenated buffer."""
    out = bytearray()
    for value in values:
        out += encode_bvarint(value)
    return bytes(out)


def decode_bvarint(data: bytes | bytearray | memoryview, offset: int = 0) -> tuple[int, int]:
    """Decode one bvarint from a buffer.

    Args:
        data: Buffer containing the encoding
        offset: Position of the lead byte in the buffer

    Returns:
        Tuple of (decoded_value, bytes_consumed)

    Raises:
        TruncatedInput: If the buffer ends before the encoding does
        ValueError: If offset is negative
    """
    if offset < 0:
        raise ValueError(f"Negative offset: {offset}")
    available = len(data) - offset
    if available < 1:
        raise TruncatedInput(offset, 1, max(available, 0))

    lead = data[offset]
    length_class = _CLASS_BY_LEAD[lead]
    size = length_class.encoded_length
    if available < size:
        raise TruncatedInput(offset, size, available)

    high = lead - length_class.first_lead
    low = int.from_bytes(data[offset + 1:offset + size], 'big')
    value = ((high << (8 * length_class.payload_size)) | low) + length_class.offset
    return value, size


def iter_bvarints(data: bytes | bytearray | memoryview, offset: int = 0) -> Iterator[int]:
    """Yield the values of back-to-back encodings until the buffer is used up."""
    while offset < len(data):
        value, consumed = decode_bvarint(data, offset)
        offset += consumed
        yield value


def decode_bvarints(data: bytes | bytearray | memoryview, offset: int = 0) -> list[int]:
    return list(iter_bvarints(data, offset))


def write_bvarint(value: int, stream: BinaryIO) -> int:
    """Write one encoding to a binary stream and return the bytes written."""
    encoded = encode_bvarint(value)
    stream.write(encoded)
    return len(encoded)


def read_bvarint(stream: BinaryIO) -> int:
    """Read exactly one encoding from a binary stream.

    Raises:
        TruncatedInput: If the stream ends before the encoding is complete
    """
    lead = stream.read(1)
    if not lead:
        raise TruncatedInput(0, 1, 0)

    payload_size = _CLASS_BY_LEAD[lead[0]].payload_size
    payload = b''
    while len(payload) < payload_size:
        chunk = stream.read(payload_size - len(payload))
        if not chunk:
            raise TruncatedInput(0, 1 + payload_size, 1 + len(payload))
        payload += chunk

    value, _ = decode_bvarint(lead + payload)
    return value
