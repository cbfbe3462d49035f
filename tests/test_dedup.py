import unittest

from swarmsearch.core.dedup import dedupe
from swarmsearch.models.magnet import parse_magnet
from swarmsearch.models.search_result import RankedResult

HASH = "C" * 40


def ranked(title, magnet=None, score=0, seeders=0, source="S"):
    r = RankedResult(title=title, source=source, score=score, seeders=seeders)
    r.set_magnet(magnet)
    return r


class TestDedup(unittest.TestCase):
    def test_same_infohash_merges_trackers_onto_best(self):
        a = ranked("Abbey Road FLAC", f"magnet:?xt=urn:btih:{HASH}&tr=udp%3A%2F%2Fone%3A1", score=70, seeders=5, source="A")
        b = ranked("Abbey Road [FLAC]", f"magnet:?xt=urn:btih:{HASH}&tr=udp%3A%2F%2Ftwo%3A2", score=80, seeders=1, source="B")
        out = dedupe([a, b])
        self.assertEqual(len(out), 1)
        self.assertIs(out[0], b)
        # group is sorted before merging, so the best member's trackers come first
        self.assertEqual(parse_magnet(out[0].magnet).trackers, ["udp://two:2", "udp://one:1"])

    def test_ties_broken_by_seeders(self):
        a = ranked("Abbey Road", f"magnet:?xt=urn:btih:{HASH}", score=50, seeders=5)
        b = ranked("Abbey Road", f"magnet:?xt=urn:btih:{HASH}", score=50, seeders=9)
        out = dedupe([a, b])
        self.assertEqual(len(out), 1)
        self.assertIs(out[0], b)
        # identical magnets are not rewritten
        self.assertEqual(out[0].magnet, f"magnet:?xt=urn:btih:{HASH}")

    def test_without_infohash_groups_by_normalized_title(self):
        a = ranked("Abbey Road - FLAC", score=40)
        b = ranked("abbey road flac", score=60)
        c = ranked("Let It Be", score=50)
        out = dedupe([a, b, c])
        self.assertEqual([r.title for r in out], ["abbey road flac", "Let It Be"])

    def test_output_sorted_by_score_then_seeders(self):
        rows = [
            ranked("one", "magnet:?xt=urn:btih:" + "1" * 40, score=10, seeders=100),
            ranked("two", "magnet:?xt=urn:btih:" + "2" * 40, score=90, seeders=1),
            ranked("three", "magnet:?xt=urn:btih:" + "3" * 40, score=90, seeders=7),
        ]
        self.assertEqual([r.title for r in dedupe(rows)], ["three", "two", "one"])


if __name__ == "__main__":
    unittest.main()
