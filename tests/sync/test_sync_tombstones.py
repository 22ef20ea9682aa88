import unittest

from sheetcache.sync.tombstones import TombstoneSet


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestTombstoneSet(unittest.TestCase):
    def test_default_entries_never_expire(self) -> None:
        clock = FakeClock()
        tombstones = TombstoneSet(clock=clock)
        tombstones.add("a")
        clock.now += 10 ** 9
        self.assertEqual(tombstones.expire(), 0)
        self.assertIn("a", tombstones)
        self.assertEqual(len(tombstones), 1)

    def test_discard(self) -> None:
        tombstones = TombstoneSet()
        tombstones.add("a")
        tombstones.discard("a")
        tombstones.discard("missing")
        self.assertNotIn("a", tombstones)
        self.assertEqual(list(tombstones), [])

    def test_ttl_expiry(self) -> None:
        clock = FakeClock()
        tombstones = TombstoneSet(ttl_sec=60, clock=clock)
        tombstones.add("a")
        clock.now += 30
        tombstones.add("b")
        self.assertIn("a", tombstones)

        clock.now += 31
        self.assertNotIn("a", tombstones)
        self.assertIn("b", tombstones)
        self.assertEqual(tombstones.expire(), 1)
        self.assertEqual(list(tombstones), ["b"])

    def test_invalid_ttl(self) -> None:
        with self.assertRaises(ValueError):
            TombstoneSet(ttl_sec=0)


if __name__ == "__main__":
    unittest.main()
