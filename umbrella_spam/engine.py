"""SpamScorer: runs every analyzer over one email and aggregates a verdict."""

from __future__ import annotations

import time

import structlog

from .analyzers.registry import AnalyzerRegistry, default_registry
from .config import ScoringConfig
from .datasets import DatasetProvider, DefaultDatasetProvider, LanguageDataset, PackagedDatasetProvider
from .exceptions import DatasetNotFoundError
from .language import LanguageDetection, detect_email_language
from .models import (
    AnalyzerResult,
    Classification,
    DebugInfo,
    EmailRecord,
    SpamAnalysisResult,
)
from .text import calculate_text_stats, extract_emails, extract_urls, html_to_text

logger = structlog.get_logger()

HAM_CEILING = 1.0
MAX_REASONS = 5


def classify(score: float, config: ScoringConfig) -> Classification:
    """Four-way label. The ham boundary is fixed at 1.0, not configurable."""
    if score >= config.spam_threshold:
        return Classification.SPAM
    if score >= config.probable_spam_threshold:
        return Classification.PROBABLE_SPAM
    if score <= HAM_CEILING:
        return Classification.HAM
    return Classification.PROBABLE_HAM


def confidence_for(results: list[AnalyzerResult], analyzer_count: int) -> float:
    """Share of analyzers that matched anything, plus a 0.2 floor, capped at 1 and rounded to 2 places."""
    if analyzer_count == 0:
        return 0.2
    contributing = sum(1 for r in results if r.contributed)
    return round(min(contributing / analyzer_count + 0.2, 1.0), 2)


def top_reasons(results: list[AnalyzerResult], limit: int = MAX_REASONS) -> list[str]:
    """Positive-scoring matches, highest first, as ``NAME: description (details)``."""
    positive = [m for r in results for m in r.matches if m.score > 0]
    positive.sort(key=lambda m: m.score, reverse=True)
    reasons = []
    for m in positive[:limit]:
        reason = f"{m.rule.name}: {m.rule.description}"
        if m.details:
            reason += f" ({m.details})"
        reasons.append(reason)
    return reasons


class SpamScorer:
    """Scores EmailRecords with the registered analyzers.

    The scorer holds no per-email state; one instance is shared by every
    request and may be called from several threads at once.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        provider: DatasetProvider | None = None,
        registry: AnalyzerRegistry | None = None,
        *,
        default_language: str = "en",
        use_language_detection: bool = True,
    ) -> None:
        self._config = config or ScoringConfig()
        self._provider = provider or PackagedDatasetProvider()
        self._fallback = DefaultDatasetProvider()
        self._registry = registry or default_registry()
        self._default_language = default_language
        self._use_language_detection = use_language_detection

    @property
    def registry(self) -> AnalyzerRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> ScoringConfig:
        return self._config.model_copy()

    def configure(self, **changes) -> None:
        """Validate *changes* and swap in a new config object."""
        self._config = self._config.with_overrides(**changes)
        logger.info("scoring_config_updated", **self._config.model_dump())

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self, record: EmailRecord, config: ScoringConfig | None = None) -> SpamAnalysisResult:
        """Run every analyzer over *record* and derive the verdict."""
        config = config or self._config
        started = time.perf_counter()

        html_text = html_to_text(record.html_body)
        detection = self._detect_language(record, html_text)
        dataset = self._resolve_dataset(detection.code)

        results = [analyzer.analyze(record, dataset) for analyzer in self._registry.analyzers]

        score = round(sum(r.score for r in results), 2)
        classification = classify(score, config)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 3)

        result = SpamAnalysisResult(
            is_spam=score >= config.spam_threshold,
            score=score,
            threshold=config.spam_threshold,
            confidence=confidence_for(results, len(self._registry)),
            classification=classification,
            language_detected=detection.code,
            language_confidence=round(detection.confidence, 2),
            analyzers=results,
            top_reasons=top_reasons(results),
            processing_time_ms=elapsed_ms,
            debug=self._debug_info(record, html_text, detection) if config.enable_debug else None,
        )

        logger.info(
            "analysis_completed",
            message_id=record.message_id,
            score=score,
            classification=classification.value,
            language=detection.code,
            dataset=dataset.language,
            processing_time_ms=elapsed_ms,
        )
        return result

    def is_spam(self, record: EmailRecord) -> bool:
        return self.analyze(record).is_spam

    def get_score(self, record: EmailRecord) -> float:
        return self.analyze(record).score

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _detect_language(self, record: EmailRecord, html_text: str) -> LanguageDetection:
        if not self._use_language_detection:
            return LanguageDetection(
                code=self._default_language,
                confidence=1.0,
                is_supported=True,
                raw_code=self._default_language,
            )
        body = record.text_body if len(record.text_body) > len(html_text) else html_text
        return detect_email_language(record.subject, body)

    def _resolve_dataset(self, code: str) -> LanguageDataset:
        try:
            return self._provider.get(code)
        except DatasetNotFoundError as exc:
            logger.info("dataset_fallback", requested=exc.code)
            return self._fallback.get(self._default_language)

    @staticmethod
    def _debug_info(record: EmailRecord, html_text: str, detection: LanguageDetection) -> DebugInfo:
        all_text = f"{record.subject} {record.text_body} {html_text}"
        return DebugInfo(
            extracted_urls=extract_urls(all_text),
            extracted_emails=extract_emails(all_text),
            language_detected=detection.code,
            language_confidence=detection.confidence,
            language_is_supported=detection.is_supported,
            text_stats=calculate_text_stats(all_text),
        )
