"""Regex catalog applied by the pattern analyzer.

Patterns are compiled once at import. Each entry belongs to a group
(obfuscation, formatting, content, structure, encoding) which is kept
for reporting only; every rule is scored under the ``pattern`` category.
"""

from __future__ import annotations

import re
from typing import NamedTuple


class PatternRule(NamedTuple):
    name: str
    pattern: re.Pattern[str]
    score: float
    description: str
    group: str
    min_count: int = 1


def _rule(
    name: str,
    pattern: str,
    score: float,
    description: str,
    group: str,
    flags: int = 0,
    min_count: int = 1,
):
    return PatternRule(name, re.compile(pattern, flags), score, description, group, min_count)


OBFUSCATION_PATTERNS = (
    _rule("SPACED_WORDS", r"\b[a-z]\s+[a-z]\s+[a-z]\s+[a-z]\s+[a-z]\b", 1.5,
          "Words with spaces between letters (f r e e)", "obfuscation", re.I),
    _rule("LETTER_NUMBER_SUBSTITUTION", r"[a-z][0-9][a-z]|[0-9][a-z][0-9]", 0.8,
          "Letters and numbers mixed (v1agra, fr33)", "obfuscation", re.I),
    _rule("SYMBOL_SUBSTITUTION", r"[a-z](?:[$!]|@(?![a-z0-9-]+\.[a-z]{2,}))[a-z]", 1.0,
          "Symbols substituted for letters (vi@gra)", "obfuscation", re.I),
    _rule("ZERO_WIDTH_CHARS", r"[\u200B-\u200D\uFEFF]", 2.5,
          "Zero-width characters hidden in text", "obfuscation"),
    _rule("HOMOGRAPH_ATTACK", r"[а-яА-Я]|[αβγδεζηθικλμνξοπρστυφχψω]", 1.5,
          "Cyrillic or Greek characters that look like Latin", "obfuscation"),
    _rule("EXCESSIVE_PUNCTUATION", r"[!?]{3,}", 1.0,
          "Multiple exclamation or question marks", "obfuscation"),
    _rule("REPEATED_CHARS", r"(\S)\1{4,}", 1.0,
          "Same character repeated many times", "obfuscation"),
)

FORMATTING_PATTERNS = (
    _rule("ALL_CAPS_BLOCK", r"[A-Z\s]{30,}", 1.5,
          "Large block of uppercase text", "formatting"),
    _rule("EXCESSIVE_WHITESPACE", r"\n{5,}|\s{10,}", 0.8,
          "Excessive blank lines or spaces", "formatting"),
    _rule("RANDOM_CAPS", r"([A-Z][a-z]){5,}", 1.0,
          "Alternating caps pattern (HeLlO WoRlD)", "formatting"),
)

CONTENT_PATTERNS = (
    _rule("CURRENCY_AMOUNT",
          r"[$€£¥]\s*\d{1,3}(?:,\d{3})*(?:\.\d{2})?"
          r"|\d{1,3}(?:,\d{3})*(?:\.\d{2})?\s*(?:dollars?|USD|EUR|GBP)",
          0.5, "Currency amounts mentioned", "content", re.I),
    _rule("LARGE_MONEY_AMOUNT",
          r"[$€£¥]\s*\d{1,3}(?:,\d{3}){2,}|(?:million|billion)\s+(?:dollars?|USD|EUR)",
          1.5, "Large money amounts (millions)", "content", re.I),
    _rule("PERCENTAGE_CLAIM", r"\d{2,3}\s*%\s*(?:off|discount|free|guaranteed|success)", 1.0,
          "Percentage claims (90% off, 100% free)", "content", re.I),
    _rule("PHONE_NUMBER_SPAM",
          r"(?:call|dial|phone|tel|contact)\s*(?:us)?\s*(?:at|:)?\s*[\d\-()\s]{10,}",
          0.8, "Phone number with call to action", "content", re.I),
    _rule("TRACKING_NUMBER_FAKE", r"tracking\s*(?:number|#|no\.?|code)?\s*:?\s*[A-Z0-9]{10,}",
          1.2, "Fake tracking number pattern", "content", re.I),
    _rule("LOTTERY_REFERENCE",
          r"\b(?:ref|reference|ticket|batch|lucky)\s*(?:number|#|no\.?|code)?\s*:?\s*[A-Z0-9]{8,}",
          1.5, "Lottery-style reference numbers", "content", re.I),
    _rule("NIGERIAN_SCAM_MARKERS",
          r"(?:next of kin|deceased|inheritance|barrister|solicitor|diplomat|consignment|trunk box)",
          2.0, "Classic 419 scam terminology", "content", re.I),
    _rule("URGENCY_CAPS", r"\b(?:URGENT|IMPORTANT|ATTENTION|WARNING|ALERT|IMMEDIATE|FINAL)\b",
          1.2, "Urgency words in all caps", "content"),
    _rule("CRYPTO_SCAM",
          r"(?:bitcoin|btc|ethereum|eth|crypto)\s*(?:investment|trading|profit|wallet|giveaway)",
          1.8, "Cryptocurrency scam patterns", "content", re.I),
    _rule("DATING_SCAM",
          r"(?:beautiful|lonely|single)\s*(?:woman|lady|girl|man)\s*(?:looking|seeking|wants)",
          3.0, "Dating/romance scam patterns", "content", re.I),
)

STRUCTURE_PATTERNS = (
    _rule("VERY_SHORT_BODY", r"^.{0,20}$", 0.5, "Very short email body", "structure", re.S),
    _rule("NO_GREETING",
          r"^(?!(?:hi|hello|dear|hey|good\s+(?:morning|afternoon|evening)|greetings))",
          0.1, "No greeting at start", "structure", re.I),
    _rule("GENERIC_GREETING",
          r"^(?:dear\s+(?:sir|madam|customer|user|member|friend|valued|recipient|beneficiary))",
          1.2, "Generic impersonal greeting", "structure", re.I),
    # Counted with findall; URLs glued together still count separately
    _rule("MULTIPLE_URLS", r"https?://\S+?(?=https?://|\s|$)", 1.0,
          "Multiple URLs in body", "structure", re.I, min_count=5),
    _rule("URL_ONLY_BODY", r"^\s*https?://\S+(?:\s+https?://\S+)*\s*$", 2.0,
          "Body contains only URLs", "structure", re.I),
    _rule("HIDDEN_TEXT_MARKER",
          r"font-size:\s*0|display:\s*none|visibility:\s*hidden"
          r"|color:\s*(?:#fff(?:fff)?|white|#f{6})\s*;[^}]*background",
          2.5, "CSS hiding text", "structure", re.I),
)

ENCODING_PATTERNS = (
    _rule("BASE64_BLOCK", r"[A-Za-z0-9+/]{50,}={0,2}", 0.5,
          "Large Base64 encoded block in body", "encoding"),
    _rule("ENCODED_URL", r"(?:%[0-9A-Fa-f]{2}){5,}", 1.2,
          "Heavily URL-encoded content", "encoding"),
    _rule("HTML_ENTITIES_ABUSE", r"(?:&#\d{2,4};){5,}|(?:&[a-z]+;){5,}", 1.5,
          "Excessive HTML entities", "encoding", re.I),
)

ALL_PATTERNS: tuple[PatternRule, ...] = (
    *OBFUSCATION_PATTERNS,
    *FORMATTING_PATTERNS,
    *CONTENT_PATTERNS,
    *STRUCTURE_PATTERNS,
    *ENCODING_PATTERNS,
)

# Rules evaluated against the body's leading text instead of the full text
GREETING_RULES = frozenset({"NO_GREETING", "GENERIC_GREETING"})

REPLY_SUBJECT = re.compile(r"^(?:re|fwd?|aw|tr|sv):", re.I)
BRACKETED_TAG = re.compile(r"\[.*?\]")

NOTIFICATION_OPENERS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.I)
    for p in (
        r"^(?:you've|you have) (?:been|received|been granted)",
        r"^(?:your|this) (?:order|invoice|ticket|request|support) ",
        r"^(?:payment|shipping|delivery) (?:is|has|for)",
        r"^(?:password|account|security) (?:reset|update|notification)",
        r"^(?:weekly|daily|monthly) (?:digest|summary|report)",
        r"^(?:new|latest|recent) (?:commit|pull request|issue|PR) ",
        r"^(?:ticket|order|invoice) #",
        r"^(?:hi|hello) ",
    )
)
