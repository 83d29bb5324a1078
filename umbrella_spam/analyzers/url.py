"""Link analyzer: phishing, obfuscation and reputation signals in URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..data.urls import (
    IP_URL_PATTERN,
    LEGITIMATE_DOMAINS,
    SPAM_DOMAIN_PATTERNS,
    SUSPICIOUS_PATH_PATTERNS,
    SUSPICIOUS_TLDS,
    URL_SHORTENERS,
    root_domain,
    tld,
)
from ..datasets import LanguageDataset
from ..models import AnalysisRule, AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..rules import RuleCatalog
from ..text import extract_urls, html_to_text
from .base import BaseAnalyzer

URL_RULES = RuleCatalog.build(
    RuleCategory.URL,
    [
        ("IP_ADDRESS_URL", "URL uses IP address instead of domain", 2.5),
        ("SUSPICIOUS_TLD", "URL uses suspicious TLD", 1.5),
        ("URL_SHORTENER", "URL uses shortening service", 1.0),
        ("PHISHING_DOMAIN", "Domain matches phishing pattern", 2.5),
        ("SUSPICIOUS_PATH", "URL path contains suspicious pattern", 1.5),
        ("MANY_URLS", "Email contains many URLs", 1.0),
        ("URL_WITH_PORT", "URL contains non-standard port", 1.5),
        ("ENCODED_URL", "URL contains excessive encoding", 1.2),
        ("MISMATCHED_LINK_TEXT", "Link text differs from actual URL", 2.0),
        ("LONG_SUBDOMAIN", "URL has unusually long subdomain", 1.0),
        ("MANY_SUBDOMAINS", "URL has many subdomain levels", 1.0),
    ],
)

MAX_URLS = 50
MANY_URLS_THRESHOLD = 10

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)
_PERCENT_ENCODED = re.compile(r"%[0-9a-f]{2}", re.IGNORECASE)
_ANCHOR = re.compile(r"""<a[^>]*href=["']([^"']+)["'][^>]*>([^<]+)</a>""", re.IGNORECASE)


@dataclass(frozen=True)
class UrlInfo:
    """Components of one extracted URL."""

    original: str
    domain: str
    tld: str
    path: str
    query: str
    is_ip_address: bool
    is_suspicious_tld: bool
    has_port_number: bool
    is_shortener: bool
    encoded_count: int


def parse_url(url: str) -> UrlInfo | None:
    """Split *url* into analysis components; None if it cannot be parsed."""
    full = url if _SCHEME.match(url) else f"http://{url}"
    try:
        parts = urlsplit(full)
        port = parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None

    domain = parts.hostname.lower()
    return UrlInfo(
        original=url,
        domain=domain,
        tld=tld(domain),
        path=parts.path or "/",
        query=f"?{parts.query}" if parts.query else "",
        is_ip_address=IP_URL_PATTERN.match(full) is not None,
        is_suspicious_tld=tld(domain) in SUSPICIOUS_TLDS,
        has_port_number=port is not None and port not in (80, 443),
        is_shortener=domain in URL_SHORTENERS or root_domain(domain) in URL_SHORTENERS,
        encoded_count=len(_PERCENT_ENCODED.findall(url)),
    )


def find_mismatched_links(html: str) -> list[tuple[str, str]]:
    """Anchors whose visible text looks like a URL on another host."""
    mismatched = []
    for found in _ANCHOR.finditer(html):
        href = found.group(1)
        text = found.group(2).strip()
        lowered = text.lower()
        if not (_SCHEME.match(text) or lowered.startswith("www.") or ".com" in text):
            continue

        text_domain = _SCHEME.sub("", text).split("/")[0].lower()
        try:
            href_host = urlsplit(href if href.startswith("http") else f"http://{href}").hostname
        except ValueError:
            href_host = None

        if href_host is None:
            mismatched.append((text, href))
            continue
        href_domain = href_host.lower()
        if text_domain != href_domain and not text_domain.endswith(href_domain):
            mismatched.append((text, href))
    return mismatched


class UrlAnalyzer(BaseAnalyzer):
    """Checks every link once per root domain."""

    rules = URL_RULES

    @property
    def name(self) -> str:
        return "url"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        extracted = [
            *extract_urls(record.text_body),
            *extract_urls(record.html_body),
            *extract_urls(html_to_text(record.html_body)),
        ]
        unique = list(dict.fromkeys(extracted))[:MAX_URLS]
        parsed = [info for info in (parse_url(u) for u in unique) if info is not None]

        matches: list[RuleMatch] = []
        if len(parsed) > MANY_URLS_THRESHOLD:
            matches.append(self.match("MANY_URLS", f"{len(parsed)} URLs found"))

        checked: set[str] = set()
        for info in parsed:
            root = root_domain(info.domain)
            if root in checked:
                continue
            checked.add(root)
            if root in LEGITIMATE_DOMAINS:
                continue
            matches.extend(self._check_url(info))

        if record.html_body:
            for text, href in find_mismatched_links(record.html_body):
                matches.append(
                    self.match(
                        "MISMATCHED_LINK_TEXT",
                        f'Text: "{text}" -> "{href}"',
                        (text, href),
                    )
                )

        return AnalyzerResult.from_matches(
            self.name,
            matches,
            max_score=self.rules.total_score * 3,
            metadata={
                "url_count": len(parsed),
                "unique_domains": len(checked),
                "shortener_count": sum(1 for u in parsed if u.is_shortener),
                "ip_address_count": sum(1 for u in parsed if u.is_ip_address),
            },
        )

    def _check_url(self, info: UrlInfo) -> list[RuleMatch]:
        evidence = (info.original,)
        matches: list[RuleMatch] = []

        if info.is_ip_address:
            matches.append(self.match("IP_ADDRESS_URL", info.original, evidence))
        if info.is_suspicious_tld:
            matches.append(self.match("SUSPICIOUS_TLD", f".{info.tld}", evidence))
        if info.is_shortener:
            matches.append(self.match("URL_SHORTENER", info.domain, evidence))
        if info.has_port_number:
            matches.append(self.match("URL_WITH_PORT", info.original, evidence))
        if info.encoded_count > 3:
            matches.append(
                self.match("ENCODED_URL", f"{info.encoded_count} encoded chars", evidence)
            )

        for entry in SPAM_DOMAIN_PATTERNS:
            if entry.pattern.search(info.domain):
                rule = AnalysisRule(
                    name=f"PHISHING_DOMAIN_{entry.name}",
                    description=f"Domain matches phishing pattern: {entry.name}",
                    score=entry.score,
                    category=RuleCategory.URL,
                )
                matches.append(RuleMatch(rule=rule, details=info.domain, evidence=evidence))
                break

        target = info.path + info.query
        for entry in SUSPICIOUS_PATH_PATTERNS:
            if entry.pattern.search(target):
                rule = AnalysisRule(
                    name=f"SUSPICIOUS_PATH_{entry.name}",
                    description=f"URL path matches suspicious pattern: {entry.name}",
                    score=entry.score,
                    category=RuleCategory.URL,
                )
                matches.append(RuleMatch(rule=rule, details=info.path, evidence=evidence))
                break

        labels = info.domain.split(".")
        if len(labels) > 4:
            matches.append(self.match("MANY_SUBDOMAINS", info.domain, evidence))
        for label in labels[:-2]:
            if len(label) > 20:
                matches.append(self.match("LONG_SUBDOMAIN", label, evidence))
                break

        return matches
