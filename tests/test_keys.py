"""Tests for composite sort keys, including ordering inside a LevelDB database."""
import random
import tempfile
import unittest

import plyvel

from bvarint import MAX_VALUE, TruncatedInput, encode_bvarint, key_range, pack_key, unpack_key
from bvarint.keys import _prefix_successor


class PackKeyTest(unittest.TestCase):
    def test_pack_and_unpack(self):
        key = pack_key([5, 1000, 70000], prefix=b'doc:')
        self.assertEqual(b'doc:' + bytes.fromhex('05f3f8fa011170'), key)
        self.assertEqual((5, 1000, 70000), unpack_key(key, prefix=b'doc:'))

    def test_empty_key(self):
        self.assertEqual(b'', pack_key([]))
        self.assertEqual((), unpack_key(b''))

    def test_wrong_prefix(self):
        with self.assertRaises(ValueError):
            unpack_key(pack_key([1], prefix=b'a'), prefix=b'b')

    def test_damaged_key(self):
        with self.assertRaises(TruncatedInput):
            unpack_key(pack_key([1 << 40])[:-1])

    def test_tuple_order(self):
        """Keys sort like the integer tuples they contain."""
        rng = random.Random(42)
        tuples = [tuple(rng.choice([0, 1, 240, 241, 2288, 70000, 1 << 40, MAX_VALUE]) for _ in range(3))
                  for _ in range(500)]
        by_key = sorted(tuples, key=pack_key)
        self.assertEqual(sorted(tuples), by_key)


class KeyRangeTest(unittest.TestCase):
    def test_bounded(self):
        self.assertEqual((encode_bvarint(10), encode_bvarint(300)), key_range(10, 300))

    def test_with_prefix(self):
        start, stop = key_range(1, 2, prefix=b'p')
        self.assertEqual(b'p\x01', start)
        self.assertEqual(b'p\x02', stop)

    def test_unbounded(self):
        self.assertEqual((b'\x00', None), key_range(0))
        self.assertEqual((b'p\x05', b'q'), key_range(5, prefix=b'p'))

    def test_empty_range_rejected(self):
        with self.assertRaises(ValueError):
            key_range(5, 4)

    def test_prefix_successor(self):
        self.assertIsNone(_prefix_successor(b''))
        self.assertIsNone(_prefix_successor(b'\xff\xff'))
        self.assertEqual(b'ab', _prefix_successor(b'aa'))
        self.assertEqual(b'b', _prefix_successor(b'a\xff'))


class LevelDBOrderTest(unittest.TestCase):
    """Encoded keys iterate in numeric order in an ordered key-value store."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db = plyvel.DB(self.tmpdir.name, create_if_missing=True)

        rng = random.Random(7)
        values = {rng.getrandbits(rng.randint(1, 64)) for _ in range(2000)}
        values.update([0, 240, 241, 2287, 2288, 67823, 67824, MAX_VALUE])
        self.values = sorted(values)

        shuffled = list(self.values)
        rng.shuffle(shuffled)
        with self.db.write_batch() as batch:
            for value in shuffled:
                batch.put(pack_key([value], prefix=b'n'), b'')
                batch.put(pack_key([value % 3, value], prefix=b't'), b'')

    def tearDown(self):
        self.db.close()
        self.tmpdir.cleanup()

    def test_iteration_order(self):
        keys = list(self.db.iterator(prefix=b'n', include_value=False))
        self.assertEqual(self.values, [unpack_key(key, prefix=b'n')[0] for key in keys])

    def test_range_scan(self):
        for low, high in ((0, 241), (241, 67824), (1000, 1 << 40), (1 << 32, MAX_VALUE)):
            start, stop = key_range(low, high, prefix=b'n')
            found = [unpack_key(key, prefix=b'n')[0]
                     for key in self.db.iterator(start=start, stop=stop, include_value=False)]
            self.assertEqual([v for v in self.values if low <= v < high], found, f"[{low}, {high})")

    def test_open_ended_scan(self):
        start, stop = key_range(1 << 20, prefix=b'n')
        found = [unpack_key(key, prefix=b'n')[0]
                 for key in self.db.iterator(start=start, stop=stop, include_value=False)]
        self.assertEqual([v for v in self.values if v >= 1 << 20], found)

    def test_composite_key_order(self):
        keys = list(self.db.iterator(prefix=b't', include_value=False))
        expected = sorted((v % 3, v) for v in self.values)
        self.assertEqual(expected, [unpack_key(key, prefix=b't') for key in keys])


if __name__ == '__main__':
    unittest.main()
