import unittest

from swarmsearch.core.content_type import (
    DEFAULT_PENALTY,
    STRONG_PENALTY,
    WEAK_PENALTY,
    ContentTypeClassifier,
)


class TestContentTypeClassifier(unittest.TestCase):
    def setUp(self):
        self.soft = ContentTypeClassifier("soft")
        self.hard = ContentTypeClassifier("hard")

    def test_default_mode_is_soft(self):
        self.assertEqual(ContentTypeClassifier().mode, "soft")

    def test_unknown_mode_rejected(self):
        with self.assertRaises(ValueError):
            ContentTypeClassifier("strict")

    def test_markers(self):
        self.assertTrue(self.soft.is_video("Abbey Road 1080p BluRay x264"))
        self.assertFalse(self.soft.is_video("The Beatles - Abbey Road (1969) FLAC"))
        self.assertTrue(self.soft.is_audio("The Beatles - Abbey Road (1969) FLAC"))
        self.assertTrue(self.soft.is_audio("Interstellar OST"))

    def test_penalty_tiers(self):
        self.assertEqual(self.soft.penalty("Abbey Road 1080p BluRay x264"), STRONG_PENALTY)
        self.assertEqual(self.soft.penalty("Some Concert CAM"), WEAK_PENALTY)
        self.assertEqual(self.soft.penalty("Live at Wembley HDTV"), WEAK_PENALTY)
        self.assertEqual(self.soft.penalty("Live at Wembley DVDRip"), DEFAULT_PENALTY)
        self.assertEqual(self.soft.penalty("Concert.720p.mkv"), DEFAULT_PENALTY)

    def test_audio_marker_cancels_penalty(self):
        self.assertEqual(self.soft.penalty("Music Videos 720p FLAC"), 0)
        self.assertEqual(self.soft.penalty("Plain Album Title"), 0)

    def test_soft_never_excludes(self):
        self.assertEqual(self.soft.apply(58, "Abbey Road 1080p BluRay x264"), 40)
        self.assertEqual(self.soft.apply(10, "Abbey Road 1080p BluRay x264"), 0)
        self.assertEqual(self.soft.apply(75, "Abbey Road FLAC"), 75)
        self.assertFalse(self.soft.excludes("Abbey Road 1080p BluRay x264"))

    def test_hard_excludes_video_without_audio_marker(self):
        self.assertIsNone(self.hard.apply(90, "Abbey Road 1080p BluRay x264"))
        self.assertEqual(self.hard.apply(90, "Abbey Road 720p FLAC"), 90)
        self.assertEqual(self.hard.apply(90, "Abbey Road"), 90)


if __name__ == "__main__":
    unittest.main()
