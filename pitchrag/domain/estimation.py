"""Rough token and page estimates used for quotas and display."""
import math

CHARS_PER_TOKEN = 4
CHARS_PER_WORD = 5
WORDS_PER_PAGE = 500


def estimate_tokens(text: str) -> int:
    """ceil(len(text) / 4). Zero only for the empty string."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_page_count(text: str) -> int:
    """ceil((len(text) / 5) / 500), i.e. ~500 words of ~5 characters per page."""
    return math.ceil((len(text) / CHARS_PER_WORD) / WORDS_PER_PAGE)
