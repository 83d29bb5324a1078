"""Static URL and sender-domain reference data."""

from __future__ import annotations

import re
from typing import NamedTuple


class NamedPattern(NamedTuple):
    name: str
    pattern: re.Pattern[str]
    score: float


# Frequently abused TLDs
SUSPICIOUS_TLDS = frozenset({
    "zip", "mov", "top", "xyz", "work", "click", "link", "gq", "ml", "cf",
    "ga", "tk", "buzz", "icu", "best", "monster", "rest", "cyou", "cfd",
    "sbs", "quest", "cam", "bond", "bid", "trade", "review", "party",
    "download", "racing", "win", "loan", "cricket", "science", "date",
    "faith", "accountant", "stream", "gdn", "men", "webcam", "adult",
    "porn", "xxx", "sex",
    # ccTLDs, also widely legitimate
    "ru", "cn", "cc", "su", "pw",
})

URL_SHORTENERS = frozenset({
    "bit.ly", "tinyurl.com", "goo.gl", "t.co", "ow.ly", "is.gd", "buff.ly",
    "j.mp", "adf.ly", "cur.lv", "tiny.cc", "shorte.st", "bc.vc", "v.gd",
    "po.st", "u.to", "cutt.ly", "shorturl.at", "rb.gy", "t.ly", "rebrand.ly",
    "clck.ru", "shorturl.asia", "mcaf.ee", "su.pr", "clicky.me", "budurl.com",
    "soo.gd", "x.co", "yourls.org", "urlz.fr", "qr.net", "url.ie", "zpr.io",
})

SPAM_DOMAIN_PATTERNS: tuple[NamedPattern, ...] = (
    # Brand typosquats
    NamedPattern("PAYPAL_TYPO", re.compile(r"paypa[l1].*\.(com|net|org)", re.I), 2.5),
    NamedPattern("APPLE_TYPO", re.compile(r"app[l1]e.*\.(com|net)", re.I), 2.0),
    NamedPattern("AMAZON_TYPO", re.compile(r"amaz[o0]n.*\.(com|net)", re.I), 2.0),
    NamedPattern("GOOGLE_TYPO", re.compile(r"g[o0][o0]g[l1]e.*\.(com|net)", re.I), 2.0),
    NamedPattern("MICROSOFT_TYPO", re.compile(r"micr[o0]s[o0]ft.*\.(com|net)", re.I), 2.0),
    NamedPattern("FACEBOOK_TYPO", re.compile(r"faceb[o0][o0]k.*\.(com|net)", re.I), 2.0),
    NamedPattern("NETFLIX_TYPO", re.compile(r"netf[l1]ix.*\.(com|net)", re.I), 2.0),
    # Phishy subdomains
    NamedPattern(
        "PHISHY_SUBDOMAIN",
        re.compile(r"^(secure|login|account|verify|update|confirm|auth)[-.]"),
        1.5,
    ),
    NamedPattern("PHISHY_SUBDOMAIN_MID", re.compile(r"\.(secure|login|account|verify)\."), 1.8),
    NamedPattern(
        "PHISHY_KEYWORD_DASH", re.compile(r"-secure|-login|-verify|-confirm|-update", re.I), 1.5
    ),
    NamedPattern("MANY_DIGITS", re.compile(r"\d{4,}"), 0.8),
    NamedPattern("VERY_LONG_DOMAIN", re.compile(r"[a-z]{20,}"), 1.0),
    # Free hosting
    NamedPattern(
        "FREE_HOSTING",
        re.compile(
            r"\.(000webhostapp|herokuapp|netlify\.app|vercel\.app|github\.io|gitlab\.io)$", re.I
        ),
        0.5,
    ),
    NamedPattern("FREE_BLOG", re.compile(r"\.(blogspot|wordpress|wix|weebly)\.com$", re.I), 0.3),
)

SUSPICIOUS_PATH_PATTERNS: tuple[NamedPattern, ...] = (
    NamedPattern(
        "EXECUTABLE_EXTENSION",
        re.compile(r"\.(exe|scr|bat|cmd|msi|jar|vbs|ps1|sh)(\?|$)", re.I),
        2.5,
    ),
    NamedPattern("ARCHIVE_EXTENSION", re.compile(r"\.(zip|rar|7z|tar|gz)(\?|$)", re.I), 1.0),
    NamedPattern("PHP_WITH_PARAMS", re.compile(r"\.php\?.*=", re.I), 0.8),
    NamedPattern(
        "WORDPRESS_EXPLOIT_PATH",
        re.compile(r"/wp-(admin|includes|content)/(?!themes|plugins)", re.I),
        1.5,
    ),
    NamedPattern(
        "PHISHY_PHP", re.compile(r"/(admin|login|signin|verify|secure|account)\.php", re.I), 1.2
    ),
    NamedPattern("ENCODED_CHARS", re.compile(r"%[0-9a-f]{2}%[0-9a-f]{2}", re.I), 1.0),
    NamedPattern("CONTROL_CHARS", re.compile(r"[\x00-\x1f]"), 2.0),
    NamedPattern("DOUBLE_SLASH", re.compile(r"//+"), 1.0),
)

IP_URL_PATTERN = re.compile(r"^https?://(\d{1,3}\.){3}\d{1,3}")

# Root domains never penalized by the URL analyzer
LEGITIMATE_DOMAINS = frozenset({
    "google.com", "gmail.com", "youtube.com", "facebook.com", "twitter.com",
    "instagram.com", "linkedin.com", "microsoft.com", "apple.com", "amazon.com",
    "github.com", "gitlab.com", "bitbucket.org", "stackoverflow.com",
    "wikipedia.org", "reddit.com", "dropbox.com", "slack.com", "zoom.us",
    "paypal.com", "stripe.com", "shopify.com", "salesforce.com",
    "cloudflare.com", "aws.amazon.com", "azure.microsoft.com",
})

COMPOUND_TLDS = frozenset({"co.uk", "com.au", "co.nz", "co.jp", "com.br", "co.in"})

# ----------------------------------------------------------------------
# Sender domains
# ----------------------------------------------------------------------

FREEMAIL_DOMAINS = frozenset({
    "gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com",
    "mail.com", "protonmail.com", "icloud.com", "zoho.com", "yandex.com",
    "gmx.com", "gmx.net", "live.com", "msn.com", "me.com",
})

DISPOSABLE_DOMAINS = frozenset({
    "tempmail.com", "guerrillamail.com", "10minutemail.com", "mailinator.com",
    "throwaway.email", "temp-mail.org", "fakeinbox.com", "trashmail.com",
    "getnada.com", "maildrop.cc", "dispostable.com", "yopmail.com",
    "sharklasers.com", "guerrillamail.info", "grr.la", "spam4.me",
})

SUSPICIOUS_MAILERS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.I)
    for p in (r"mass\s*mail", r"bulk\s*mail", r"email\s*blast", r"newsletter", r"phpmailer", r"swiftmailer")
)


def root_domain(domain: str) -> str:
    """Registrable domain: ``mail.example.co.uk`` -> ``example.co.uk``."""
    parts = domain.lower().split(".")
    if len(parts) <= 2:
        return domain.lower()
    if ".".join(parts[-2:]) in COMPOUND_TLDS:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])


def tld(domain: str) -> str:
    return domain.lower().rsplit(".", 1)[-1]
