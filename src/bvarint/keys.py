"""Sort keys made of concatenated bvarints.

Keys have the form ``<prefix><bvarint><bvarint>...``. Each encoding is
self-terminating and order-preserving, so keys with the same prefix sort
like the integer tuples they hold. This is the layout used for records such
as ``<16-byte path hash><sequence number>`` in a LevelDB database.
"""
from typing import Iterable

from .codec import encode_bvarint, encode_bvarints, decode_bvarints


def pack_key(values: Iterable[int], prefix: bytes = b'') -> bytes:
    """Build a key from a prefix and a sequence of integers."""
    return bytes(prefix) + encode_bvarints(values)


def unpack_key(key: bytes, prefix: bytes = b'') -> tuple[int, ...]:
    """Split a key built by :func:`pack_key` back into its integers.

    Raises:
        ValueError: If the key does not start with prefix
        TruncatedInput: If the key ends inside an encoding
    """
    if not key.startswith(prefix):
        raise ValueError(f"Key {key.hex()} does not start with prefix {prefix.hex()}")
    return tuple(decode_bvarints(key, len(prefix)))


def _prefix_successor(prefix: bytes) -> bytes | None:
    # Smallest byte string greater than every string starting with prefix.
    stripped = prefix.rstrip(b'\xff')
    if not stripped:
        return None
    return stripped[:-1] + bytes((stripped[-1] + 1,))


def key_range(low: int, high: int | None = None, prefix: bytes = b'') -> tuple[bytes, bytes | None]:
    """Return (start, stop) byte bounds covering keys for ``low <= v < high``.

    The bounds fit ordered-store iterators that take an inclusive start and
    an exclusive stop, for example ``plyvel.DB.iterator(start=..., stop=...)``.
    With ``high=None`` the scan runs to the end of the prefix (or of the
    keyspace when there is no prefix), in which case stop may be None.
    """
    if high is not None and low > high:
        raise ValueError(f"Empty range: low {low} is greater than high {high}")
    start = bytes(prefix) + encode_bvarint(low)
    if high is None:
        return start, _prefix_successor(bytes(prefix))
    return start, bytes(prefix) + encode_bvarint(high)
