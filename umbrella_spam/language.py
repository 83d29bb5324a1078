"""Language detection used to pick a language dataset.

Detection is delegated to ``langdetect``. Its profiles cover 55 languages;
anything it cannot classify is reported as undetermined and scored with
the English dataset.
"""

from __future__ import annotations

import threading

import structlog
from langdetect import DetectorFactory, detect_langs
from langdetect.detector_factory import init_factory
from langdetect.lang_detect_exception import LangDetectException
from pydantic import BaseModel

from .datasets import available_languages

logger = structlog.get_logger()

UNDETERMINED = "und"

# langdetect samples n-grams randomly; a fixed seed keeps results reproducible
DetectorFactory.seed = 0

_profiles_lock = threading.Lock()
_profiles_loaded = False

# langdetect reports Chinese by script variant
_CODE_ALIASES = {"zh-cn": "zh", "zh-tw": "zh"}


class LanguageDetection(BaseModel):
    """Outcome of a detection run.

    ``code`` is always a usable dataset key candidate; ``raw_code`` keeps
    ``und`` when nothing could be determined.
    """

    model_config = {"frozen": True}

    code: str = "en"
    confidence: float = 0.0
    is_supported: bool = True
    raw_code: str = UNDETERMINED


def _undetermined() -> LanguageDetection:
    return LanguageDetection(code="en", confidence=0.0, is_supported=True, raw_code=UNDETERMINED)


def _ensure_profiles() -> None:
    """Load the langdetect profiles once; concurrent first loads collide."""
    global _profiles_loaded
    if _profiles_loaded:
        return
    with _profiles_lock:
        if not _profiles_loaded:
            init_factory()
            _profiles_loaded = True


def detect_language(text: str, min_length: int = 10) -> LanguageDetection:
    """Detect the dominant language of *text*."""
    text = (text or "").strip()
    if len(text) < min_length:
        return _undetermined()

    _ensure_profiles()
    try:
        candidates = detect_langs(text)
    except LangDetectException as exc:
        logger.debug("language_undetermined", reason=str(exc))
        return _undetermined()
    if not candidates:
        return _undetermined()

    top = candidates[0]
    total = sum(c.prob for c in candidates[:5])
    code = _CODE_ALIASES.get(top.lang, top.lang)
    return LanguageDetection(
        code=code,
        confidence=round(min(1.0, top.prob / total), 3) if total > 0 else 0.0,
        is_supported=code in available_languages(),
        raw_code=top.lang,
    )


def detect_email_language(
    subject: str,
    body: str,
    subject_weight: float = 0.3,
) -> LanguageDetection:
    """Detect the language of an email, weighting the body over the subject."""
    combined = f"{subject or ''} {body or ''}".strip()
    if len(combined) < 50:
        return detect_language(combined)

    from_subject = detect_language(subject or "", min_length=5)
    from_body = detect_language(body or "")

    if from_body.confidence > 0.7:
        return from_body

    if from_subject.code == from_body.code:
        return from_body.model_copy(
            update={"confidence": max(from_subject.confidence, from_body.confidence)}
        )

    if from_subject.confidence * subject_weight > from_body.confidence * (1 - subject_weight):
        return from_subject
    return from_body
