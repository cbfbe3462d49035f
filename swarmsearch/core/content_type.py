"""
Content Type Classifier
Audio vs. video heuristics on release titles
"""
import re
from typing import Optional

VIDEO_TERMS = re.compile(
    r"\b(?:1080p|720p|2160p|4k|8k|480p|576p|1080i|bluray|blu-ray|bdrip|brrip|webrip|web-dl|webdl|"
    r"hdtv|dvdrip|dvd-r|dvdr|x264|x265|h264|h265|hevc|hd|sd|cam|camrip|telesync|telecine|ts|xvid|divx|"
    r"mkv|mp4|avi|movie|season|episode|s\d{1,2}e\d{1,2})\b",
    re.IGNORECASE,
)
AUDIO_TERMS = re.compile(
    r"\b(?:flac|alac|wav|ape|dsd|sacd|mp3|aac|ogg|opus|m4a|soundtrack|ost|album|discography|"
    r"lp|ep|320k|320kbps|v0|24bit|16bit|cd)\b",
    re.IGNORECASE,
)
RESOLUTION_TERMS = re.compile(r"\b(?:2160p|1080p|1080i|720p|576p|480p|4k|8k)\b", re.IGNORECASE)
ENCODE_TERMS = re.compile(
    r"\b(?:x264|x265|h264|h265|hevc|xvid|divx|bluray|blu-ray|bdrip|brrip|webrip|web-dl|webdl|dvdrip)\b",
    re.IGNORECASE,
)
WEAK_TERMS = re.compile(r"\b(?:cam|camrip|telesync|telecine|ts|hdtv|hd|sd)\b", re.IGNORECASE)

STRONG_PENALTY = 18
DEFAULT_PENALTY = 15
WEAK_PENALTY = 12

MODE_SOFT = "soft"
MODE_HARD = "hard"


class ContentTypeClassifier:
    """
    Flags video releases in an audio catalog.

    ``hard`` drops any video-marked title without an audio marker;
    ``soft`` subtracts a tiered penalty and never drops anything.
    """

    def __init__(self, mode: str = MODE_SOFT):
        mode = (mode or MODE_SOFT).strip().lower()
        if mode not in (MODE_SOFT, MODE_HARD):
            raise ValueError(f"Unknown content filter mode: {mode!r}")
        self.mode = mode

    def is_video(self, title: str) -> bool:
        return bool(VIDEO_TERMS.search(title or ""))

    def is_audio(self, title: str) -> bool:
        return bool(AUDIO_TERMS.search(title or ""))

    def penalty(self, title: str) -> int:
        title = title or ""
        if self.is_audio(title) or not self.is_video(title):
            return 0
        if RESOLUTION_TERMS.search(title) and ENCODE_TERMS.search(title):
            return STRONG_PENALTY
        stripped = WEAK_TERMS.sub(" ", title)
        if not self.is_video(stripped):
            # only ambiguous markers matched
            return WEAK_PENALTY
        return DEFAULT_PENALTY

    def excludes(self, title: str) -> bool:
        return self.mode == MODE_HARD and self.is_video(title) and not self.is_audio(title)

    def apply(self, score: int, title: str) -> Optional[int]:
        """Return the adjusted score, or None when the title is excluded."""
        if self.mode == MODE_HARD:
            return None if self.excludes(title) else score
        return max(0, int(score) - self.penalty(title))
