"""Header and sender-authentication analyzer."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from ..data.urls import DISPOSABLE_DOMAINS, FREEMAIL_DOMAINS, SUSPICIOUS_MAILERS
from ..datasets import LanguageDataset
from ..models import AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..rules import RuleCatalog
from .base import BaseAnalyzer

AUTH_RULES = RuleCatalog.build(
    RuleCategory.AUTHENTICATION,
    [
        ("SPF_FAIL", "SPF check failed", 2.5),
        ("SPF_SOFTFAIL", "SPF check soft failed", 1.5),
        ("SPF_NONE", "No SPF record", 0.1),
        ("DKIM_FAIL", "DKIM signature invalid", 2.0),
        ("DKIM_NONE", "No DKIM signature", 0.0),
        ("DMARC_FAIL", "DMARC policy failed", 2.5),
    ],
)

HEADER_RULES = RuleCatalog.build(
    RuleCategory.HEADER,
    [
        ("MISSING_FROM", "Missing From header", 2.0),
        ("MISSING_DATE", "Missing Date header", 0.1),
        ("MISSING_MESSAGE_ID", "Missing Message-ID header", 0.1),
        ("INVALID_MESSAGE_ID", "Invalid Message-ID format", 1.0),
        ("FORGED_RECEIVED", "Forged or suspicious Received header", 2.0),
        ("TOO_MANY_RECEIVED", "Unusually many Received headers", 1.0),
        ("FROM_REPLY_TO_MISMATCH", "From and Reply-To domains differ", 1.5),
        ("FROM_RETURN_PATH_MISMATCH", "From and Return-Path differ significantly", 1.0),
        ("SUSPICIOUS_MAILER", "Suspicious X-Mailer header", 1.0),
        ("FUTURE_DATE", "Email date is in the future", 1.5),
        ("VERY_OLD_DATE", "Email date is very old", 1.0),
        ("FREEMAIL_FROM", "From address is from free email provider", 0.3),
        ("DISPOSABLE_EMAIL", "From address is disposable email", 2.0),
        ("TO_NO_RECIPIENT", "No valid To recipient", 1.5),
        ("TO_UNDISCLOSED", "Undisclosed recipients", 0.8),
        ("HIGH_PRIORITY_SPAM", "High priority header often used in spam", 0.5),
    ],
)

MAX_RECEIVED_HOPS = 15

_MESSAGE_ID = re.compile(r"^<[^@]+@[^>]+>$")
_INTERNAL_IP = re.compile(
    r"\b(?:10\.\d+\.\d+\.\d+|172\.(?:1[6-9]|2\d|3[01])\.\d+\.\d+|192\.168\.\d+\.\d+)\b"
)
_PUBLIC_SUFFIX = re.compile(r"\.(com|net|org|edu|gov)")
_RETURN_PATH_DOMAIN = re.compile(r"@([^>]+)")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HeaderAnalyzer(BaseAnalyzer):
    """Checks envelope structure, sender authentication and sender reputation."""

    rules = AUTH_RULES.merged(HEADER_RULES)

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    @property
    def name(self) -> str:
        return "header"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        received_spf = record.header("received-spf")
        dkim_signature = record.header("dkim-signature")

        matches = [
            *self._check_authentication(record, received_spf, dkim_signature),
            *self._check_structure(record),
            *self._check_received(record),
            *self._check_sender(record),
            *self._check_recipients(record),
        ]

        return AnalyzerResult.from_matches(
            self.name,
            matches,
            max_score=self.rules.total_score,
            metadata={
                "from_domain": record.from_address.domain if record.from_address else None,
                "has_spf": bool(received_spf),
                "has_dkim": bool(dkim_signature),
                "received_count": len(record.received_chain),
            },
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_authentication(
        self, record: EmailRecord, received_spf: str, dkim_signature: str
    ) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        spf = received_spf.lower()
        auth_results = record.header("authentication-results").lower()

        if "fail" in spf and "softfail" not in spf:
            matches.append(self.match("SPF_FAIL", "SPF authentication failed"))
        elif "softfail" in spf:
            matches.append(self.match("SPF_SOFTFAIL", "SPF soft fail"))
        elif "none" in spf or not spf:
            matches.append(self.match("SPF_NONE", "No SPF record found"))

        if "dkim=fail" in auth_results:
            matches.append(self.match("DKIM_FAIL", "DKIM signature validation failed"))
        elif not dkim_signature:
            matches.append(self.match("DKIM_NONE", "No DKIM signature present"))

        if "dmarc=fail" in auth_results:
            matches.append(self.match("DMARC_FAIL", "DMARC policy failed"))

        return matches

    def _check_structure(self, record: EmailRecord) -> list[RuleMatch]:
        matches: list[RuleMatch] = []

        if record.from_address is None:
            matches.append(self.match("MISSING_FROM", "No From header"))

        if record.date is None:
            matches.append(self.match("MISSING_DATE", "No Date header"))
        else:
            now = self._clock()
            if record.date > now + timedelta(days=1):
                matches.append(
                    self.match("FUTURE_DATE", f"Date is in the future: {record.date.isoformat()}")
                )
            if record.date < now - timedelta(days=365):
                matches.append(
                    self.match("VERY_OLD_DATE", f"Date is very old: {record.date.isoformat()}")
                )

        if not record.message_id:
            matches.append(self.match("MISSING_MESSAGE_ID", "No Message-ID header"))
        elif not _MESSAGE_ID.match(record.message_id):
            matches.append(
                self.match("INVALID_MESSAGE_ID", f"Invalid Message-ID format: {record.message_id}")
            )

        return matches

    def _check_received(self, record: EmailRecord) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        hops = record.received_chain

        if len(hops) > MAX_RECEIVED_HOPS:
            matches.append(self.match("TOO_MANY_RECEIVED", f"{len(hops)} Received headers"))

        for hop in hops:
            if not hop.from_host:
                continue
            if _INTERNAL_IP.search(hop.from_host) and _PUBLIC_SUFFIX.search(hop.from_host):
                matches.append(
                    self.match("FORGED_RECEIVED", f"Suspicious Received header: {hop.from_host}")
                )
                break

        return matches

    def _check_sender(self, record: EmailRecord) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        sender = record.from_address

        if sender and record.reply_to and sender.domain != record.reply_to.domain:
            matches.append(
                self.match(
                    "FROM_REPLY_TO_MISMATCH",
                    f"From: {sender.domain}, Reply-To: {record.reply_to.domain}",
                )
            )

        if sender and record.return_path:
            found = _RETURN_PATH_DOMAIN.search(record.return_path)
            return_domain = found.group(1).lower() if found else ""
            if return_domain and sender.domain != return_domain:
                matches.append(
                    self.match(
                        "FROM_RETURN_PATH_MISMATCH",
                        f"From: {sender.domain}, Return-Path: {return_domain}",
                    )
                )

        mailer = record.header("x-mailer")
        if mailer and any(p.search(mailer) for p in SUSPICIOUS_MAILERS):
            matches.append(self.match("SUSPICIOUS_MAILER", f"X-Mailer: {mailer}"))

        if sender:
            domain = sender.domain.lower()
            if domain in DISPOSABLE_DOMAINS:
                matches.append(self.match("DISPOSABLE_EMAIL", f"Disposable email: {domain}"))
            elif domain in FREEMAIL_DOMAINS:
                matches.append(self.match("FREEMAIL_FROM", f"Freemail provider: {domain}"))

        return matches

    def _check_recipients(self, record: EmailRecord) -> list[RuleMatch]:
        matches: list[RuleMatch] = []

        if not record.to:
            matches.append(self.match("TO_NO_RECIPIENT", "No valid To recipient"))
        elif "undisclosed" in record.header("to").lower():
            matches.append(self.match("TO_UNDISCLOSED", "Undisclosed recipients"))

        priority = record.header("x-priority") or record.header("importance")
        if priority == "1" or priority.lower() == "high":
            matches.append(self.match("HIGH_PRIORITY_SPAM", "High priority flag set"))

        return matches
