"""Property tests: byte order of encodings matches numeric order of values."""
import random
import unittest

from bvarint import MAX_VALUE, decode_bvarint, encode_bvarint
from bvarint.validation import interesting_values


def random_value(rng: random.Random) -> int:
    # Uniform bit width so that small length classes are not starved.
    return rng.getrandbits(rng.randint(1, 64))


class OrderPreservationTest(unittest.TestCase):
    def setUp(self):
        self.rng = random.Random(0x5eed)

    def assertSameOrder(self, a, b):
        encoded_a = encode_bvarint(a)
        encoded_b = encode_bvarint(b)
        self.assertEqual(a < b, encoded_a < encoded_b, f"{a:#x} {encoded_a.hex()} vs {b:#x} {encoded_b.hex()}")
        self.assertEqual(a == b, encoded_a == encoded_b, f"{a:#x} {encoded_a.hex()} vs {b:#x} {encoded_b.hex()}")

    def test_consecutive_values(self):
        for value in range(0x11000):
            self.assertLess(encode_bvarint(value), encode_bvarint(value + 1), f"{value:#x}")

    def test_boundary_values_pairwise(self):
        values = interesting_values()
        encodings = [encode_bvarint(v) for v in values]
        for a, encoded_a in zip(values, encodings):
            for b, encoded_b in zip(values, encodings):
                self.assertEqual((a > b) - (a < b), (encoded_a > encoded_b) - (encoded_a < encoded_b),
                                 f"{a:#x} vs {b:#x}")

    def test_random_pairs(self):
        for _ in range(20000):
            self.assertSameOrder(random_value(self.rng), random_value(self.rng))

    def test_random_neighbours(self):
        for _ in range(5000):
            a = random_value(self.rng)
            if a < MAX_VALUE:
                self.assertSameOrder(a, a + 1)

    def test_sorting_encodings_sorts_values(self):
        values = [random_value(self.rng) for _ in range(5000)] + interesting_values()
        self.rng.shuffle(values)
        by_encoding = sorted(values, key=encode_bvarint)
        self.assertEqual(sorted(values), by_encoding)


class RoundTripPropertyTest(unittest.TestCase):
    def test_random_round_trip(self):
        rng = random.Random(1234)
        for _ in range(20000):
            value = random_value(rng)
            encoded = encode_bvarint(value)
            self.assertEqual((value, len(encoded)), decode_bvarint(encoded, 0), f"{value:#x}")

    def test_boundary_round_trip(self):
        for value in interesting_values():
            encoded = encode_bvarint(value)
            self.assertEqual((value, len(encoded)), decode_bvarint(encoded, 0), f"{value:#x}")


class LengthPropertyTest(unittest.TestCase):
    def test_length_monotonic(self):
        values = interesting_values()
        lengths = [len(encode_bvarint(v)) for v in values]
        self.assertEqual(sorted(lengths), lengths)
        self.assertEqual(1, lengths[0])
        self.assertEqual(9, lengths[-1])

    def test_no_prefix_collisions(self):
        values = interesting_values()
        encodings = [encode_bvarint(v) for v in values]
        for i, encoded_a in enumerate(encodings):
            for j, encoded_b in enumerate(encodings):
                if i != j:
                    self.assertFalse(encoded_b.startswith(encoded_a), f"{encoded_a.hex()} / {encoded_b.hex()}")


if __name__ == '__main__':
    unittest.main()
