"""Build EmailRecords from structured request input or raw RFC 822 messages."""

from __future__ import annotations

import email
import email.message
import email.policy
import email.utils
import re
from datetime import datetime
from email.errors import HeaderParseError, MessageError
from email.header import decode_header, make_header

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .exceptions import EmailParseError
from .models import AttachmentInfo, EmailAddress, EmailRecord, ReceivedHop

logger = structlog.get_logger()

_BRACKET_ADDRESS = re.compile(r'^(?:"?([^"<]*)"?\s*)?<([^>]+)>')
_SIMPLE_ADDRESS = re.compile(r"^([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})$")
_EMBEDDED_ADDRESS = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

_RECEIVED_FROM = re.compile(r"from\s+(\S+)", re.IGNORECASE)
_RECEIVED_BY = re.compile(r"by\s+(\S+)", re.IGNORECASE)
_RECEIVED_WITH = re.compile(r"with\s+([^\s;]+)", re.IGNORECASE)
_RECEIVED_DATE = re.compile(r";\s*(.+)$")


class EmailInput(BaseModel):
    """Structured email as accepted by the HTTP API.

    Every field accepts its camelCase name, its snake_case name and the
    legacy short keys (``text``/``body``/``html``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_: str | None = Field(default=None, validation_alias=AliasChoices("from", "from_"))
    to: str | list[str] | None = None
    subject: str | None = None
    message_id: str | None = Field(
        default=None, validation_alias=AliasChoices("messageId", "message_id")
    )
    date: str | None = None
    reply_to: str | None = Field(default=None, validation_alias=AliasChoices("replyTo", "reply_to"))
    return_path: str | None = Field(
        default=None, validation_alias=AliasChoices("returnPath", "return_path")
    )
    received_spf: str | None = Field(
        default=None, validation_alias=AliasChoices("receivedSpf", "received_spf")
    )
    dkim_signature: str | None = Field(
        default=None, validation_alias=AliasChoices("dkimSignature", "dkim_signature")
    )
    authentication_results: str | None = Field(
        default=None,
        validation_alias=AliasChoices("authenticationResults", "authentication_results"),
    )
    headers: dict[str, str | list[str]] | None = None
    text_body: str | None = Field(
        default=None, validation_alias=AliasChoices("textBody", "text_body", "text", "body")
    )
    html_body: str | None = Field(
        default=None, validation_alias=AliasChoices("htmlBody", "html_body", "html")
    )
    raw: str | None = None


# ----------------------------------------------------------------------
# Field parsers
# ----------------------------------------------------------------------


def decode_words(value: str) -> str:
    """Decode RFC 2047 encoded words, returning *value* unchanged on failure."""
    try:
        return str(make_header(decode_header(value)))
    except (HeaderParseError, UnicodeError, LookupError):
        return value


def _make_address(name: str | None, address: str) -> EmailAddress | None:
    address = address.strip().lower()
    local, sep, domain = address.partition("@")
    if not sep:
        return None
    return EmailAddress(name=name or None, address=address, local_part=local, domain=domain)


def parse_address(value: str | None) -> EmailAddress | None:
    """Parse ``Name <a@b>``, a bare address, or an address embedded in text."""
    if not value or not value.strip():
        return None
    value = decode_words(value).strip()

    match = _BRACKET_ADDRESS.match(value)
    if match:
        name = (match.group(1) or "").strip()
        return _make_address(name, match.group(2))

    match = _SIMPLE_ADDRESS.match(value)
    if match:
        return _make_address(None, match.group(1))

    match = _EMBEDDED_ADDRESS.search(value)
    if match:
        name = value.replace(match.group(0), "").replace("<", "").replace(">", "").strip()
        return _make_address(name, match.group(1))

    return None


def parse_date(value: str | None) -> datetime | None:
    """Parse an RFC 2822 or ISO 8601 timestamp; None when unparseable."""
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        return email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_received(values: list[str] | tuple[str, ...]) -> tuple[ReceivedHop, ...]:
    """Split each ``Received`` value into relay tokens, keeping source order."""
    hops = []
    for raw in values:
        from_match = _RECEIVED_FROM.search(raw)
        by_match = _RECEIVED_BY.search(raw)
        with_match = _RECEIVED_WITH.search(raw)
        date_match = _RECEIVED_DATE.search(raw)
        hops.append(
            ReceivedHop(
                from_host=from_match.group(1) if from_match else None,
                by=by_match.group(1) if by_match else None,
                with_protocol=with_match.group(1) if with_match else None,
                timestamp=parse_date(date_match.group(1)) if date_match else None,
                raw=raw,
            )
        )
    return tuple(hops)


# ----------------------------------------------------------------------
# Structured input
# ----------------------------------------------------------------------


def build_record(data: EmailInput) -> EmailRecord:
    """Turn request input into the EmailRecord every analyzer consumes."""
    if data.raw:
        return MimeParser().parse(data.raw)

    headers: dict[str, list[str]] = {}
    for key, value in (data.headers or {}).items():
        values = value if isinstance(value, list) else [value]
        headers.setdefault(key.lower(), []).extend(values)

    to_list = data.to if isinstance(data.to, list) else [data.to] if data.to else []

    individual = [
        ("from", [data.from_]),
        ("to", to_list),
        ("subject", [data.subject]),
        ("message-id", [data.message_id]),
        ("date", [data.date]),
        ("reply-to", [data.reply_to]),
        ("return-path", [data.return_path]),
        ("received-spf", [data.received_spf]),
        ("dkim-signature", [data.dkim_signature]),
        ("authentication-results", [data.authentication_results]),
    ]
    for name, values in individual:
        for value in values:
            if value:
                headers.setdefault(name, []).append(value)

    recipients = [addr for addr in (parse_address(t) for t in to_list) if addr is not None]

    return EmailRecord(
        headers=headers,
        subject=data.subject or "",
        from_address=parse_address(data.from_),
        reply_to=parse_address(data.reply_to),
        to=tuple(recipients),
        return_path=data.return_path or None,
        message_id=data.message_id or None,
        date=parse_date(data.date),
        text_body=data.text_body or "",
        html_body=data.html_body or "",
        received_chain=parse_received(headers.get("received", [])),
    )


# ----------------------------------------------------------------------
# Raw MIME input
# ----------------------------------------------------------------------


class MimeParser:
    """Stateless parser: raw RFC 822 message -> EmailRecord."""

    def parse(self, raw: bytes | str) -> EmailRecord:
        try:
            if isinstance(raw, str):
                msg = email.message_from_string(raw, policy=email.policy.default)
            else:
                msg = email.message_from_bytes(raw, policy=email.policy.default)
            if not msg.keys():
                raise EmailParseError("No headers found in raw message")
            return self._to_record(msg)
        except EmailParseError:
            raise
        except (MessageError, LookupError, UnicodeError, ValueError, TypeError) as exc:
            logger.warning("mime_parse_failed", error=str(exc))
            raise EmailParseError(f"Could not parse raw message: {exc}") from exc

    def _to_record(self, msg: email.message.EmailMessage) -> EmailRecord:
        headers: dict[str, list[str]] = {}
        for key, value in msg.items():
            headers.setdefault(key.lower(), []).append(str(value))

        body_text, body_html = self._extract_bodies(msg)

        recipients = []
        for name, addr in email.utils.getaddresses(headers.get("to", [])):
            parsed = _make_address(name, addr) if addr else None
            if parsed is not None:
                recipients.append(parsed)

        def first(name: str) -> str | None:
            values = headers.get(name)
            return values[0] if values else None

        return EmailRecord(
            headers=headers,
            subject=decode_words(first("subject") or ""),
            from_address=parse_address(first("from")),
            reply_to=parse_address(first("reply-to")),
            to=tuple(recipients),
            return_path=first("return-path"),
            message_id=first("message-id"),
            date=parse_date(first("date")),
            text_body=body_text or "",
            html_body=body_html or "",
            received_chain=parse_received(headers.get("received", [])),
            attachments=tuple(self._extract_attachments(msg)),
        )

    def _extract_bodies(self, msg: email.message.EmailMessage) -> tuple[str | None, str | None]:
        """Walk MIME parts and return (plain_text, html_text)."""
        body_text: str | None = None
        body_html: str | None = None

        for part in msg.walk():
            # Skip multipart containers; they have no content of their own
            if part.get_content_maintype() == "multipart":
                continue
            if "attachment" in str(part.get("Content-Disposition", "")):
                continue

            content_type = part.get_content_type()
            if content_type not in ("text/plain", "text/html"):
                continue
            payload = part.get_content()
            if not isinstance(payload, str):
                continue
            if content_type == "text/plain" and body_text is None:
                body_text = payload
            elif content_type == "text/html" and body_html is None:
                body_html = payload

        return body_text, body_html

    def _extract_attachments(self, msg: email.message.EmailMessage) -> list[AttachmentInfo]:
        attachments: list[AttachmentInfo] = []

        for part in msg.walk():
            disposition = str(part.get("Content-Disposition", ""))
            filename = part.get_filename()

            if "attachment" in disposition or (
                filename and part.get_content_maintype() != "multipart"
            ):
                payload = part.get_payload(decode=True) or b""
                attachments.append(
                    AttachmentInfo(
                        filename=filename or "unnamed",
                        content_type=part.get_content_type(),
                        size=len(payload),
                    )
                )

        return attachments
