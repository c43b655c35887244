"""Registry of known header tags and their interpretation."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

from mailingest.models.email_message import EmailMessage
from mailingest.models.field_names import ADDRESS_FIELDS, DATE_FIELDS
from mailingest.utils.unicode_utils import collapse_whitespace, decode_if_necessary

from .address_parser import parse_address, parse_address_list
from .constants import IGNORED_HEADER_TAGS
from .content_type import parse_content_type
from .date_parser import parse_date

logger = structlog.get_logger()


class FieldKind(Enum):
    """How a header field body is interpreted."""

    RAW = "raw"
    ADDRESS = "address"
    ADDRESS_LIST = "address_list"
    DATE = "date"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FieldSpec:
    """
    Interpretation of one header tag.

    Attributes:
        name: Canonical field name the data is stored under
        kind: Interpretation applied to the body
        handler: Callable(message, name, body) for FieldKind.CUSTOM
        target: EmailMessage list attribute filled by FieldKind.ADDRESS_LIST
    """

    name: str
    kind: FieldKind = FieldKind.RAW
    handler: Optional[Callable[[EmailMessage, str, str], None]] = None
    target: Optional[str] = None


# ------------------------------------------------------------ custom handlers

_IN_REPLY_TO_BRACKETED = re.compile(r"^[^<>]*<([^<>]+)>[^<>]*$")
_IN_REPLY_TO_BARE = re.compile(r"^([^<> ]+)$")
_MESSAGE_ID = re.compile(r"^<([^<> ]+)>(\s+.*)?$")
_RESENT_MESSAGE_ID = re.compile(r"^<([^<> ]+)>$")
_LINES = re.compile(r"^([0-9]+)$")
_REFERENCE_RUN = re.compile(r"^[^<>]*(<[^<>]+>)\s*(\S.*)?$", re.DOTALL)
_REFERENCE = re.compile(r"^<([^<>]+)>$")


def _read_comments(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": collapse_whitespace(body)}


def _read_content_transfer_encoding(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body, "encoding": body.lower()}


def _read_content_type(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = parse_content_type(body)


def _read_from(message: EmailMessage, name: str, body: str) -> None:
    sender = {key: collapse_whitespace(value) for key, value in parse_address(body).items()}
    sender["raw"] = body
    message.fields[name] = sender


def _read_in_reply_to(message: EmailMessage, name: str, body: str) -> None:
    # Can be empty
    if not body:
        return

    message.fields[name] = {"raw": body}
    decoded = decode_if_necessary(body)

    match = _IN_REPLY_TO_BRACKETED.match(decoded) or _IN_REPLY_TO_BARE.match(decoded)
    if match:
        message.fields[name]["id"] = match.group(1)
    else:
        logger.warning("unknown_header_format", item=name, raw=body, decoded=decoded)


def _read_keywords(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body, "keywords": body}


def _read_lines(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body}
    match = _LINES.match(body)
    if match:
        message.fields[name]["lines"] = match.group(1)
    else:
        logger.warning("unknown_header_format", item=name, raw=body)


def _read_message_id(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body}
    match = _MESSAGE_ID.match(body)
    if match:
        message.fields[name]["id"] = match.group(1)
    else:
        logger.warning("unknown_header_format", item=name, raw=body)


def _read_resent_message_id(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body}
    match = _RESENT_MESSAGE_ID.match(body)
    if match:
        message.fields[name]["id"] = match.group(1)
    else:
        logger.warning("unknown_header_format", item=name, raw=body)


def _read_subject(message: EmailMessage, name: str, body: str) -> None:
    subject = " ".join(decode_if_necessary(body).split())
    message.fields[name] = {"raw": body, "subject": subject}


def _read_received(message: EmailMessage, name: str, body: str) -> None:
    # Usually there is more than one of these
    message.received.append({"raw": body})


def _read_references(message: EmailMessage, name: str, body: str) -> None:
    message.fields[name] = {"raw": body}
    rest = decode_if_necessary(body).replace("\n\t", " ")

    while rest:
        match = _REFERENCE_RUN.match(rest)
        if not match:
            break
        part = match.group(1)
        part_match = _REFERENCE.match(part)
        if not part_match:
            logger.warning("unknown_reference_format", part=part)
            rest = ""
            break
        message.references.append({"raw": part, "id": part_match.group(1)})
        rest = match.group(2) or ""

    if rest:
        logger.warning("unknown_header_format", item=name, raw=body)


def _read_to(message: EmailMessage, name: str, body: str) -> None:
    # To: unlisted-receipients: ;(no To-header on input)
    if body.startswith("unlisted-receipients"):
        message.fields[name] = {"raw": body}
        return

    message.to_addresses = parse_address_list(body)
    message.fields[name] = {"raw": body}


# ------------------------------------------------------------------ registry

_RAW_FIELDS = [
    ("accept-language", "Accept-Language"),
    ("acceptlanguage", "Accept-Language"),
    ("amq-delivery-message-id", "AMQ-Delivery-Message-ID"),
    ("arc-authentication-results", "ARC-Authentication-Results"),
    ("arc-message-signature", "ARC-Message-Signature"),
    ("arc-seal", "ARC-Seal"),
    ("authentication-results", "Authentication-Results"),
    ("authentication-results-original", "Authentication-Results-Original"),
    ("auto-submitted", "Auto-Submitted"),
    ("campaign_id", "Campaign-ID"),
    ("campaign_token", "Campaign-Token"),
    ("content-class", "Content-Class"),
    ("content-description", "Content-Description"),
    ("content-disposition", "Content-Disposition"),
    ("content-id", "Content-Id"),
    ("content-language", "Content-Language"),
    ("content-length", "Content-Length"),
    ("content-md5", "Content-MD5"),
    ("conversation-id", "Conversation-Id"),
    ("dkim-filter", "DKIM-Filter"),
    ("dkim-signature", "DKIM-Signature"),
    ("domainkey-signature", "DomainKey-Signature"),
    ("encoding", "Encoding"),
    ("errors-to", "Errors-To"),
    ("error-to", "Errors-To"),
    ("feedback-id", "Feedback-ID"),
    ("followup-to", "Followup-To"),
    ("illegal-object", "Illegal-Object"),
    ("importance", "Importance"),
    ("list-archive", "List-Archive"),
    ("list-help", "List-Help"),
    ("list-id", "List-Id"),
    ("list-owner", "List-Owner"),
    ("list-post", "List-Post"),
    ("list-subscribe", "List-Subscribe"),
    ("list-unsubscribe", "List-Unsubscribe"),
    ("list-unsubscribe-post", "List-Unsubscribe-Post"),
    ("mail-followup-to", "Mail-Followup-To"),
    ("mailing-list", "Mailing-List"),
    ("mime-version", "Mime-Version"),
    ("msip_labels", "MSIPLabels"),
    ("newsgroups", "Newsgroups"),
    ("nntp-posting-host", "NNTP-Posting-Host"),
    ("non_standard_tag_header", "Non-Standard Tag Header"),
    ("old-content-type", "Old-Content-Type"),
    ("organization", "Organization"),
    ("organisation", "Organization"),
    ("originator", "Originator"),
    ("orig-to", "Orig-To"),
    ("pp-correlation-id", "PP-Correlation-ID"),
    ("pp-to-mdo-migrated", "PP-To-MDO-Migrated"),
    ("precedence", "Precedence"),
    ("priority", "Priority"),
    ("rcpt_domain", "RCPT-Domain"),
    ("received-spf", "Received-SPF"),
    ("recipient-id", "Recipient-ID"),
    ("require-recipient-valid-since", "Require-Recipient-Valid-Since"),
    ("return-path", "Return-Path"),
    ("return-receipt-to", "Return-Receipt-To"),
    ("return-receipt", "Return-Receipt-To"),
    ("savedfromemail", "Saved-From-Email"),
    ("sensitivity", "Sensitivity"),
    ("sent-on", "Sent-On"),
    ("site-id", "Site-ID"),
    ("spamdiagnosticmetadata", "spamdiagnosticmetadata"),
    ("spamdiagnosticoutput", "spamdiagnosticoutput"),
    ("status", "Status"),
    ("suggested_attachment_session_id", "suggested_attachment_session_id"),
    ("thread-index", "Thread-Index"),
    ("thread-topic", "Thread-Topic"),
    ("ui-outboundreport", "UI-UIOutboundReport"),
    ("user-agent", "User-Agent"),
    ("warnings-to", "Warnings-To"),
    ("x-mailer", "X-Mailer"),
    ("mailer", "X-Mailer"),
]

_CUSTOM_FIELDS = [
    ("comment", "Comments", _read_comments),
    ("comments", "Comments", _read_comments),
    ("content-transfer-encoding", "Content-Transfer-Encoding", _read_content_transfer_encoding),
    ("content-type", "Content-Type", _read_content_type),
    ("from", "From", _read_from),
    ("in-reply-to", "In-Reply-To", _read_in_reply_to),
    ("keywords", "Keywords", _read_keywords),
    ("lines", "Lines", _read_lines),
    ("message-id", "Message-Id", _read_message_id),
    ("old-subject", "Old-Subject", _read_subject),
    ("received", "Received", _read_received),
    (">received", "Received", _read_received),
    ("references", "References", _read_references),
    ("reference", "References", _read_references),
    ("resent-message-id", "Resent-Message-Id", _read_resent_message_id),
    ("subject", "Subject", _read_subject),
    ("to", "To", _read_to),
]

HEADER_FIELDS: dict[str, FieldSpec] = {
    **{tag: FieldSpec(name) for tag, name in _RAW_FIELDS},
    **{tag: FieldSpec(name, FieldKind.ADDRESS) for tag, name in ADDRESS_FIELDS},
    **{tag: FieldSpec(name, FieldKind.DATE) for tag, name in DATE_FIELDS},
    "bcc": FieldSpec("Bcc", FieldKind.ADDRESS_LIST, target="bcc_addresses"),
    "cc": FieldSpec("Cc", FieldKind.ADDRESS_LIST, target="cc_addresses"),
    **{tag: FieldSpec(name, FieldKind.CUSTOM, handler) for tag, name, handler in _CUSTOM_FIELDS},
}


def is_ignored_tag(tag: str) -> bool:
    """Extension headers (x-...) are dropped silently, as are a few known oddities."""
    return tag.startswith("x-") or tag in IGNORED_HEADER_TAGS


def apply_field(message: EmailMessage, spec: FieldSpec, body: str) -> None:
    """
    Store one header item on the message according to its spec.

    Args:
        message: Message being built
        spec: Interpretation of the item's tag
        body: Trimmed item body
    """
    if spec.kind is FieldKind.RAW:
        message.fields[spec.name] = {"raw": body}
    elif spec.kind is FieldKind.ADDRESS:
        address = parse_address(body)
        address["raw"] = body
        message.fields[spec.name] = address
    elif spec.kind is FieldKind.ADDRESS_LIST:
        setattr(message, spec.target, parse_address_list(body))
        message.fields[spec.name] = {"raw": body}
    elif spec.kind is FieldKind.DATE:
        date = parse_date(body)
        date["raw"] = body
        message.fields[spec.name] = date
    else:
        spec.handler(message, spec.name, body)
