"""Text helpers shared by the analyzers: extraction, normalization and statistics."""

from __future__ import annotations

import math
import re
from collections import Counter
from functools import lru_cache

from bs4 import BeautifulSoup, Comment

from .models import TextStats

URL_PATTERN = re.compile(r"https?://[^\s<>\"')\]]+", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_TRAILING_PUNCT = re.compile(r"[.,;:!?)]+$")
_WHITESPACE = re.compile(r"\s+")
_SPACES = re.compile(r"[^\S\n]+")

_INVISIBLE = re.compile(r"[\u200B-\u200D\u2060\uFEFF\u00AD]")
_LATIN = re.compile(r"[a-zA-Z]")
_CYRILLIC = re.compile("[а-яА-ЯёЁ]")
_GREEK = re.compile("[α-ωΑ-Ω]")

_BLOCK_TAGS = ["p", "div", "br", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr"]


def calculate_text_stats(text: str) -> TextStats:
    """Character- and word-level statistics over *text*."""
    chars = len(text)
    words = text.split()
    word_count = len(words)

    upper = sum(1 for c in text if "A" <= c <= "Z")
    letters = sum(1 for c in text if c.isascii() and c.isalpha())
    digits = sum(1 for c in text if c.isdigit())
    special = sum(1 for c in text if not (c.isascii() and c.isalnum()) and not c.isspace())

    return TextStats(
        char_count=chars,
        word_count=word_count,
        line_count=text.count("\n") + 1,
        uppercase_ratio=upper / letters if letters else 0.0,
        digit_ratio=digits / chars if chars else 0.0,
        special_char_ratio=special / chars if chars else 0.0,
        avg_word_length=sum(len(w) for w in words) / word_count if word_count else 0.0,
        short_word_ratio=sum(1 for w in words if len(w) <= 3) / word_count if word_count else 0.0,
        long_word_ratio=sum(1 for w in words if len(w) >= 10) / word_count if word_count else 0.0,
    )


def extract_urls(text: str) -> list[str]:
    """Return every http(s) URL in *text*, trailing punctuation stripped."""
    return [_TRAILING_PUNCT.sub("", m) for m in URL_PATTERN.findall(text)]


def extract_emails(text: str) -> list[str]:
    return EMAIL_PATTERN.findall(text)


def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.lower()).strip()


@lru_cache(maxsize=256)
def html_to_text(html: str) -> str:
    """Visible text of an HTML fragment.

    Scripts, styles and comments are dropped, entities are decoded. Block elements
    end a line; other whitespace is collapsed to single spaces.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.find_all(["script", "style"]):
        node.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_after("\n")
    text = soup.get_text(" ").replace("\xa0", " ")
    lines = (_SPACES.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def calculate_entropy(text: str) -> float:
    """Shannon entropy of *text* in bits per character."""
    if not text:
        return 0.0
    length = len(text)
    return -sum((n / length) * math.log2(n / length) for n in Counter(text).values())


def has_invisible_chars(text: str) -> bool:
    return _INVISIBLE.search(text) is not None


def has_mixed_scripts(text: str) -> bool:
    """True when Latin letters appear together with Cyrillic or Greek ones."""
    scripts = [
        _LATIN.search(text) is not None,
        _CYRILLIC.search(text) is not None,
        _GREEK.search(text) is not None,
    ]
    return sum(scripts) > 1
