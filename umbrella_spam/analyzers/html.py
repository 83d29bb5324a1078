"""HTML markup analyzer: concealment, active content and layout tricks."""

from __future__ import annotations

import re

from ..datasets import LanguageDataset
from ..models import AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..rules import RuleCatalog
from ..text import html_to_text
from .base import BaseAnalyzer

HTML_RULES = RuleCatalog.build(
    RuleCategory.HTML,
    [
        ("HIDDEN_TEXT", "Hidden text detected (CSS tricks)", 2.5),
        ("TINY_FONT", "Very small font size detected", 2.0),
        ("INVISIBLE_INK", "Text color matches background", 2.5),
        ("EXCESSIVE_IMAGES", "Email contains many images", 0.8),
        ("IMAGE_ONLY", "Email contains only images (no text)", 2.0),
        ("REMOTE_IMAGES", "Email loads remote images (tracking)", 0.5),
        ("SUSPICIOUS_FORM", "Email contains form elements", 1.5),
        ("JAVASCRIPT_PRESENT", "Email contains JavaScript", 2.0),
        ("IFRAME_PRESENT", "Email contains iframe", 2.5),
        ("OBJECT_EMBED", "Email contains object/embed tags", 2.0),
        ("TRACKING_PIXEL", "Tracking pixel detected", 0.8),
        ("BASE64_IMAGE", "Embedded base64 image", 0.3),
        ("MALFORMED_HTML", "Malformed HTML structure", 0.5),
        ("COMMENT_STUFFING", "Excessive HTML comments", 1.0),
        ("TABLE_SPAM_LAYOUT", "Spam-typical table layout", 0.5),
    ],
)

HIDDEN_PATTERNS = tuple(
    re.compile(p, re.I)
    for p in (
        r"display\s*:\s*none",
        r"visibility\s*:\s*hidden",
        r"opacity\s*:\s*0(?:[^.]|$)",
        r"height\s*:\s*0",
        r"font-size\s*:\s*0",
    )
)
TINY_FONT = re.compile(r"font-size\s*:\s*([0-4]|0?\.[0-9]+)\s*(px|pt|em)", re.I)
INVISIBLE_INK_PATTERNS = tuple(
    re.compile(p, re.I)
    for p in (
        r"color\s*:\s*(#fff(?:fff)?|white|#f{6})\s*;[^}]*background[^}]*:\s*\1",
        r"background[^}]*:\s*(#fff(?:fff)?|white|#f{6})[^}]*color\s*:\s*\1",
        r"color\s*:\s*(#000(?:000)?|black|#0{6})\s*;[^}]*background[^}]*:\s*\1",
    )
)
TRACKING_PIXEL_PATTERNS = tuple(
    re.compile(p, re.I)
    for p in (
        r"""<img[^>]*(?:width|height)\s*=\s*["']?1\b["']?[^>]*(?:width|height)\s*=\s*["']?1\b["']?""",
        r"""<img[^>]*style\s*=\s*["'][^"']*(?:width|height)\s*:\s*1px[^"']*["']""",
    )
)
JAVASCRIPT_PATTERNS = tuple(
    re.compile(p, re.I) for p in (r"<script\b", r"\bon\w+\s*=", r"javascript\s*:")
)

IMG_TAG = re.compile(r"<img\b", re.I)
REMOTE_IMG = re.compile(r"""<img[^>]*src\s*=\s*["']https?://""", re.I)
BASE64_IMG = re.compile(r"""<img[^>]*src\s*=\s*["']data:image""", re.I)
FORM_TAG = re.compile(r"<form\b", re.I)
IFRAME_TAG = re.compile(r"<iframe\b", re.I)
OBJECT_TAG = re.compile(r"<(?:object|embed)\b", re.I)
COMMENT = re.compile(r"<!--[\s\S]*?-->")
TABLE_TAG = re.compile(r"<table\b", re.I)
OPEN_TAG = re.compile(r"<[a-z][a-z0-9]*\b", re.I)
CLOSE_TAG = re.compile(r"</[a-z][a-z0-9]*>", re.I)


def _any(patterns: tuple[re.Pattern[str], ...], html: str) -> bool:
    return any(p.search(html) for p in patterns)


class HtmlAnalyzer(BaseAnalyzer):
    """Scores the raw HTML body. Each rule fires at most once per email."""

    rules = HTML_RULES

    @property
    def name(self) -> str:
        return "html"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        html = record.html_body
        if not html.strip():
            return AnalyzerResult(
                analyzer=self.name,
                score=0.0,
                max_score=self.rules.total_score,
                metadata={"has_html": False},
            )

        matches: list[RuleMatch] = []

        if _any(HIDDEN_PATTERNS, html):
            matches.append(self.match("HIDDEN_TEXT", "CSS hiding technique detected"))
        if TINY_FONT.search(html):
            matches.append(self.match("TINY_FONT", "Very small font size detected"))
        if _any(INVISIBLE_INK_PATTERNS, html):
            matches.append(self.match("INVISIBLE_INK", "Text color matches background"))

        images = len(IMG_TAG.findall(html))
        if images > 10:
            matches.append(self.match("EXCESSIVE_IMAGES", f"{images} images found"))

        text_content = html_to_text(html).strip()
        if images > 0 and len(text_content) < 50:
            matches.append(self.match("IMAGE_ONLY", "Email appears to be image-only"))

        remote_images = len(REMOTE_IMG.findall(html))
        if remote_images > 0:
            matches.append(self.match("REMOTE_IMAGES", f"{remote_images} remote images"))

        if _any(TRACKING_PIXEL_PATTERNS, html):
            matches.append(self.match("TRACKING_PIXEL", "1x1 tracking pixel detected"))
        if BASE64_IMG.search(html):
            matches.append(self.match("BASE64_IMAGE", "Base64 embedded image"))
        if FORM_TAG.search(html):
            matches.append(self.match("SUSPICIOUS_FORM", "Form element in email"))
        if _any(JAVASCRIPT_PATTERNS, html):
            matches.append(self.match("JAVASCRIPT_PRESENT", "JavaScript detected in email"))
        if IFRAME_TAG.search(html):
            matches.append(self.match("IFRAME_PRESENT", "Iframe in email"))
        if OBJECT_TAG.search(html):
            matches.append(self.match("OBJECT_EMBED", "Object/embed tag in email"))

        comments = COMMENT.findall(html)
        comment_chars = sum(len(c) for c in comments)
        if len(comments) > 10 or comment_chars > 1000:
            matches.append(
                self.match("COMMENT_STUFFING", f"{len(comments)} comments, {comment_chars} chars")
            )

        tables = len(TABLE_TAG.findall(html))
        if tables > 5:
            matches.append(self.match("TABLE_SPAM_LAYOUT", f"{tables} nested tables"))

        open_tags = len(OPEN_TAG.findall(html))
        close_tags = len(CLOSE_TAG.findall(html))
        if open_tags > 0 and abs(open_tags - close_tags) / open_tags > 0.3:
            matches.append(self.match("MALFORMED_HTML", f"Open: {open_tags}, Close: {close_tags}"))

        return AnalyzerResult.from_matches(
            self.name,
            matches,
            max_score=self.rules.total_score,
            metadata={
                "has_html": True,
                "image_count": images,
                "remote_image_count": remote_images,
                "table_count": tables,
                "text_length": len(text_content),
            },
        )
