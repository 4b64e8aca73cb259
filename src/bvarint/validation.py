"""Checks for the ordering and round-trip properties of the bvarint codec.

These helpers back both the test suite and the ``bvarint check`` command.
They cover three things:

- the length-class table itself (partition, ordering of value ranges and
  lead bytes, encoded lengths);
- single values (decode(encode(v)) == v, consuming the whole encoding);
- pairs of values (byte order equals numeric order, no encoding is a prefix
  of another, longer encodings never belong to smaller values).
"""
import logging
import random
from dataclasses import dataclass
from typing import Sequence

from .codec import (
    LENGTH_CLASSES,
    MAX_VALUE,
    LengthClass,
    decode_bvarint,
    encode_bvarint,
)

logger = logging.getLogger(__name__)


class LengthClassTableError(ValueError):
    """The length-class table violates one of its invariants."""


class CheckFailure(AssertionError):
    """A round-trip or ordering property does not hold for some value."""


@dataclass
class CheckReport:
    """Counts of the checks performed by :func:`run_checks`."""
    round_trips: int = 0
    ordered_pairs: int = 0
    random_pairs: int = 0
    seed: int | None = None

    @property
    def total(self) -> int:
        return self.round_trips + self.ordered_pairs + self.random_pairs


def interesting_values() -> list[int]:
    """Return boundary values worth checking exhaustively against each other.

    Includes every class boundary with its neighbours and the values around
    each power of two from 2^5 to 2^63, plus the top of the 64-bit range.
    """
    values = set()
    for length_class in LENGTH_CLASSES:
        for edge in (length_class.min_value, length_class.max_value):
            values.update(range(edge - 2, edge + 3))
    for bits in range(5, 64):
        values.update(range((1 << bits) - 2, (1 << bits) + 2))
    values.update(range(MAX_VALUE - 3, MAX_VALUE + 1))
    return sorted(v for v in values if 0 <= v <= MAX_VALUE)


def verify_length_classes(classes: Sequence[LengthClass] = LENGTH_CLASSES) -> None:
    """Verify the invariants a length-class table must satisfy.

    Raises:
        LengthClassTableError: Describing the first invariant found broken
    """
    if not classes:
        raise LengthClassTableError("Length-class table is empty")
    if classes[0].min_value != 0:
        raise LengthClassTableError(f"Class 0 starts at {classes[0].min_value}, not 0")
    if classes[-1].max_value != MAX_VALUE:
        raise LengthClassTableError(f"Last class ends at {classes[-1].max_value}, not 2^64-1")
    if classes[0].first_lead != 0 or classes[-1].last_lead != 0xff:
        raise LengthClassTableError("Lead bytes do not cover 0x00 to 0xff")

    for index, length_class in enumerate(classes):
        if length_class.class_id != index:
            raise LengthClassTableError(f"Class at position {index} has id {length_class.class_id}")
        if length_class.min_value > length_class.max_value:
            raise LengthClassTableError(f"Class {index} has an empty value range")
        if length_class.first_lead > length_class.last_lead:
            raise LengthClassTableError(f"Class {index} has an empty lead-byte range")

        # Both ends of the value range must fit the class's lead bytes and payload.
        capacity = len(length_class.lead_bytes) << (8 * length_class.payload_size)
        for edge in (length_class.min_value, length_class.max_value):
            payload = edge - length_class.offset
            if not 0 <= payload < capacity:
                raise LengthClassTableError(
                    f"Class {index} cannot represent {edge} with offset {length_class.offset}")

        if index == 0:
            continue
        previous = classes[index - 1]
        if previous.max_value + 1 != length_class.min_value:
            raise LengthClassTableError(
                f"Value ranges of classes {index - 1} and {index} are not contiguous: "
                f"{previous.max_value} then {length_class.min_value}")
        if previous.last_lead + 1 != length_class.first_lead:
            raise LengthClassTableError(
                f"Lead bytes of classes {index - 1} and {index} are not contiguous: "
                f"{previous.last_lead:#04x} then {length_class.first_lead:#04x}")
        if previous.payload_size > length_class.payload_size:
            raise LengthClassTableError(f"Class {index} is shorter than class {index - 1}")

    if classes is LENGTH_CLASSES:
        for length_class in classes:
            for edge in (length_class.min_value, length_class.max_value):
                encoded = encode_bvarint(edge)
                if len(encoded) != length_class.encoded_length or encoded[0] not in length_class.lead_bytes:
                    raise LengthClassTableError(
                        f"{edge} encodes as {encoded.hex()}, outside class {length_class.class_id}")


def check_round_trip(value: int) -> None:
    """Check that ``value`` decodes back from its encoding, using every byte."""
    encoded = encode_bvarint(value)
    decoded, consumed = decode_bvarint(encoded, 0)
    if decoded != value or consumed != len(encoded):
        raise CheckFailure(
            f"Round trip of {value:#x} via {encoded.hex()} gave {decoded:#x} "
            f"consuming {consumed} of {len(encoded)} bytes")


def check_order(a: int, b: int) -> None:
    """Check that the encodings of ``a`` and ``b`` compare like the values do."""
    encoded_a = encode_bvarint(a)
    encoded_b = encode_bvarint(b)

    numeric = (a > b) - (a < b)
    lexical = (encoded_a > encoded_b) - (encoded_a < encoded_b)
    if numeric != lexical:
        raise CheckFailure(
            f"Order mismatch for {a:#x} ({encoded_a.hex()}) and {b:#x} ({encoded_b.hex()})")

    if a != b and (encoded_a.startswith(encoded_b) or encoded_b.startswith(encoded_a)):
        raise CheckFailure(
            f"Prefix collision between {a:#x} ({encoded_a.hex()}) and {b:#x} ({encoded_b.hex()})")

    if numeric < 0 and len(encoded_a) > len(encoded_b):
        raise CheckFailure(f"Encoding of {a:#x} is longer than that of larger value {b:#x}")
    if numeric > 0 and len(encoded_a) < len(encoded_b):
        raise CheckFailure(f"Encoding of {b:#x} is longer than that of larger value {a:#x}")


def run_checks(samples: int = 10000, seed: int | None = None, exhaustive_limit: int = 0x10000) -> CheckReport:
    """Run the full set of codec checks.

    Args:
        samples: Number of random value pairs to compare
        seed: Seed for the random pairs; a fresh seed is drawn if None
        exhaustive_limit: Every value below this is round-tripped and compared
                          with its successor

    Returns:
        Counts of the checks performed

    Raises:
        LengthClassTableError: If the table is inconsistent
        CheckFailure: On the first property that does not hold
    """
    if seed is None:
        seed = random.randrange(1 << 32)
    report = CheckReport(seed=seed)

    verify_length_classes()
    logger.info("Length-class table verified (%d classes)", len(LENGTH_CLASSES))

    try:
        for value in range(min(exhaustive_limit, MAX_VALUE + 1)):
            check_round_trip(value)
            report.round_trips += 1
            if value > 0:
                check_order(value - 1, value)
                report.ordered_pairs += 1
        logger.info("Checked %d consecutive values", report.round_trips)

        values = interesting_values()
        for value in values:
            check_round_trip(value)
            report.round_trips += 1
        for a in values:
            for b in values:
                check_order(a, b)
                report.ordered_pairs += 1
        logger.info("Checked %d boundary values pairwise", len(values))

        rng = random.Random(seed)
        for _ in range(samples):
            # Pick a bit width first so that every length class gets exercised.
            a = rng.getrandbits(rng.randint(1, 64))
            b = rng.getrandbits(rng.randint(1, 64))
            check_round_trip(a)
            check_order(a, b)
            report.random_pairs += 1
        logger.info("Checked %d random pairs with seed %d", samples, seed)
    except CheckFailure:
        logger.error("Codec check failed (seed %d)", seed, exc_info=True)
        raise

    return report
