"""Per-language spam vocabularies and the providers that resolve them."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from importlib import resources
from typing import NamedTuple

import structlog
from pydantic import AliasChoices, BaseModel, Field, PrivateAttr, model_validator

from .exceptions import DatasetNotFoundError

logger = structlog.get_logger()

DEFAULT_LANGUAGE = "en"


class SpamWord(BaseModel):
    model_config = {"frozen": True}

    word: str
    score: float
    category: str
    case_sensitive: bool = Field(
        default=False, validation_alias=AliasChoices("case_sensitive", "caseSensitive")
    )


class SubjectPattern(BaseModel):
    model_config = {"frozen": True}

    name: str
    pattern: str
    score: float
    ignore_case: bool = Field(
        default=True, validation_alias=AliasChoices("ignore_case", "ignoreCase")
    )


class TokenProbability(BaseModel):
    model_config = {"frozen": True}

    spam: float = Field(ge=0, description="P(token|spam)")
    ham: float = Field(ge=0, description="P(token|ham)")

    @model_validator(mode="after")
    def _not_both_zero(self) -> TokenProbability:
        if self.spam + self.ham == 0:
            raise ValueError("spam and ham frequencies cannot both be zero")
        return self


class CompiledPattern(NamedTuple):
    name: str
    regex: re.Pattern[str]
    score: float


def _phrase_alternation(phrases: list[str]) -> str:
    # Longest first so "dear valued customer" wins over "dear customer"
    ordered = sorted({p.strip() for p in phrases if p.strip()}, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(part) for part in p.split()) for p in ordered)


class LanguageDataset(BaseModel):
    """Read-only vocabulary for one language.

    Regexes derived from the vocabulary are compiled once, right after
    validation. Subject patterns that fail to compile are dropped with a
    warning so a bad entry never surfaces mid-request.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    language: str
    language_name: str = Field(validation_alias=AliasChoices("language_name", "languageName"))
    spam_words: tuple[SpamWord, ...] = Field(
        default=(), validation_alias=AliasChoices("spam_words", "spamWords")
    )
    spam_single_words: dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("spam_single_words", "spamSingleWords"),
    )
    spam_subject_patterns: tuple[SubjectPattern, ...] = Field(
        default=(),
        validation_alias=AliasChoices("spam_subject_patterns", "spamSubjectPatterns"),
    )
    ham_words: dict[str, float] = Field(
        default_factory=dict, validation_alias=AliasChoices("ham_words", "hamWords")
    )
    bayesian_tokens: dict[str, TokenProbability] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("bayesian_tokens", "bayesianTokens"),
    )
    urgency_words: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("urgency_words", "urgencyWords")
    )
    greeting_words: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("greeting_words", "greetingWords")
    )
    generic_greetings: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("generic_greetings", "genericGreetings")
    )

    _subject_patterns: tuple[CompiledPattern, ...] = PrivateAttr(default=())
    _urgency_pattern: re.Pattern[str] | None = PrivateAttr(default=None)
    _greeting_pattern: re.Pattern[str] | None = PrivateAttr(default=None)
    _generic_greeting_pattern: re.Pattern[str] | None = PrivateAttr(default=None)

    def model_post_init(self, __context) -> None:
        compiled = []
        for entry in self.spam_subject_patterns:
            flags = re.IGNORECASE if entry.ignore_case else 0
            try:
                compiled.append(CompiledPattern(entry.name, re.compile(entry.pattern, flags), entry.score))
            except re.error as exc:
                logger.warning(
                    "subject_pattern_invalid",
                    language=self.language,
                    pattern_name=entry.name,
                    error=str(exc),
                )
        self._subject_patterns = tuple(compiled)

        if self.urgency_words:
            self._urgency_pattern = re.compile(
                rf"\b(?:{_phrase_alternation(list(self.urgency_words))})\b", re.IGNORECASE
            )
        if self.greeting_words:
            self._greeting_pattern = re.compile(
                rf"^(?:{_phrase_alternation(list(self.greeting_words))})\b", re.IGNORECASE
            )
        if self.generic_greetings:
            self._generic_greeting_pattern = re.compile(
                rf"^(?:{_phrase_alternation(list(self.generic_greetings))})", re.IGNORECASE
            )

    @property
    def subject_patterns(self) -> tuple[CompiledPattern, ...]:
        return self._subject_patterns

    @property
    def urgency_pattern(self) -> re.Pattern[str] | None:
        return self._urgency_pattern

    @property
    def greeting_pattern(self) -> re.Pattern[str] | None:
        return self._greeting_pattern

    @property
    def generic_greeting_pattern(self) -> re.Pattern[str] | None:
        return self._generic_greeting_pattern


# ----------------------------------------------------------------------
# Packaged datasets
# ----------------------------------------------------------------------


def _languages_dir():
    return resources.files("umbrella_spam.data").joinpath("languages")


@lru_cache(maxsize=1)
def available_languages() -> frozenset[str]:
    """Codes of every dataset shipped in ``data/languages``."""
    return frozenset(
        entry.name.removesuffix(".json")
        for entry in _languages_dir().iterdir()
        if entry.name.endswith(".json")
    )


@lru_cache(maxsize=None)
def load_dataset(code: str) -> LanguageDataset:
    """Load and cache the packaged dataset for *code*."""
    code = code.lower().strip()
    if code not in available_languages():
        raise DatasetNotFoundError(code)
    raw = json.loads(_languages_dir().joinpath(f"{code}.json").read_text(encoding="utf-8"))
    dataset = LanguageDataset.model_validate(raw)
    logger.info(
        "dataset_loaded",
        language=code,
        spam_words=len(dataset.spam_words),
        subject_patterns=len(dataset.subject_patterns),
        bayesian_tokens=len(dataset.bayesian_tokens),
    )
    return dataset


# ----------------------------------------------------------------------
# Providers
# ----------------------------------------------------------------------


class DatasetProvider(ABC):
    """Resolves a language code to a read-only LanguageDataset."""

    @abstractmethod
    def get(self, code: str) -> LanguageDataset:
        """Return the dataset for *code* or raise DatasetNotFoundError."""


class DefaultDatasetProvider(DatasetProvider):
    """Always resolves to the English dataset."""

    def get(self, code: str = DEFAULT_LANGUAGE) -> LanguageDataset:
        return load_dataset(DEFAULT_LANGUAGE)


class PackagedDatasetProvider(DatasetProvider):
    """Looks datasets up by code among the packaged JSON files."""

    def get(self, code: str) -> LanguageDataset:
        return load_dataset(code)
