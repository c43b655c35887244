"""Encoded-word, transfer-encoding and charset decoding utilities."""

import base64
import binascii
import codecs
import quopri
import re

import structlog

logger = structlog.get_logger()

# Charsets whose bytes are kept as-is instead of being transcoded
_PASSTHROUGH_CHARSETS = frozenset(["", "ascii", "us-ascii", "utf-8", "unknown-8bit", "x-unknown"])

# Python codec names for charset labels that the codec registry does not know
_CHARSET_ALIASES = {"x-roman8": "hp-roman8"}

_ENCODED_WORD = re.compile(
    r"^(?P<prefix>.*)=\?(?P<charset>us-ascii|ascii|iso-8859-15|iso-8859-1|iso-8859-2|utf-8|windows-1252)"
    r"\?(?:(?P<b>B)\?(?P<b_payload>[A-Za-z0-9+/=]+)|(?P<q>Q)\?(?P<q_payload>[^?]*))\?="
    r"(?P<suffix>.*)$",
    re.IGNORECASE | re.DOTALL,
)

_BARE_BASE64 = re.compile(r"^[a-zA-Z0-9]+$")


def _lenient_b64decode(payload: str) -> bytes:
    """Base64-decode tolerating missing padding and a dangling character."""
    data = payload.rstrip("=")
    if len(data) % 4 == 1:
        data = data[:-1]
    data += "=" * (-len(data) % 4)
    return base64.b64decode(data)


def decode_if_necessary(text: str) -> str:
    """
    Resolve RFC 2047 encoded words embedded in a header value.

    Supported charsets are ASCII, ISO-8859-1/2/15, UTF-8 and Windows-1252,
    each with B (base64) or Q (quoted-printable) encoding. The last token is
    replaced first and the scan repeats until no token is left, so adjacent
    encoded words collapse into one run of text. Unsupported combinations
    are left untouched.

    A value made only of base64 alphabet letters and digits is decoded once
    as bare base64 when the result is valid UTF-8 (some mail clients send
    subjects that way).

    Args:
        text: Raw header value

    Returns:
        Decoded Unicode string

    Examples:
        >>> decode_if_necessary("=?UTF-8?B?5Lit5paH?=")
        '中文'
        >>> decode_if_necessary("=?iso-8859-1?Q?H=E9llo?= <a@b.com>")
        'Héllo<a@b.com>'
    """
    if not text:
        return ""

    while True:
        match = _ENCODED_WORD.match(text)
        if match is None:
            break

        charset = match.group("charset").lower()
        try:
            if match.group("b"):
                raw = _lenient_b64decode(match.group("b_payload"))
            else:
                payload = match.group("q_payload").encode("latin-1", errors="replace")
                raw = quopri.decodestring(payload, header=True)
        except (binascii.Error, ValueError):
            logger.warning("encoded_word_undecodable", text=text)
            break

        decoded = raw.decode(charset.replace("us-ascii", "ascii"), errors="replace")
        text = match.group("prefix") + decoded + match.group("suffix").strip()

    if _BARE_BASE64.match(text):
        try:
            candidate = _lenient_b64decode(text)
            return candidate.decode("utf-8")
        except (binascii.Error, ValueError):
            pass

    return text


def decode_transfer_encoding(data: bytes, transfer_encoding: str) -> bytes:
    """
    Undo a Content-Transfer-Encoding.

    Args:
        data: Encoded body bytes
        transfer_encoding: Lower-case encoding name (base64, quoted-printable, 7bit, ...)

    Returns:
        Decoded bytes; unknown encodings pass through unchanged
    """
    if transfer_encoding == "base64":
        compact = re.sub(rb"[^A-Za-z0-9+/=]", b"", data)
        try:
            return _lenient_b64decode(compact.decode("ascii"))
        except (binascii.Error, ValueError):
            logger.warning("base64_body_undecodable", size=len(data))
            return data

    if transfer_encoding == "quoted-printable":
        return quopri.decodestring(data)

    if transfer_encoding not in ("", "7bit", "8bit", "binary"):
        logger.warning("unknown_transfer_encoding", transfer_encoding=transfer_encoding)

    return data


def decode_text(data: bytes, charset: str = "", transfer_encoding: str = "") -> bytes:
    """
    Undo the transfer encoding of a body and transcode its text to UTF-8.

    Args:
        data: Raw body bytes as stored in the message
        charset: Declared charset (lower case, empty if none)
        transfer_encoding: Declared transfer encoding (lower case, empty if none)

    Returns:
        Decoded bytes, UTF-8 encoded when a known charset was declared
    """
    decoded = decode_transfer_encoding(data, transfer_encoding)

    charset = (charset or "").lower()
    if charset in _PASSTHROUGH_CHARSETS:
        return decoded

    codec_name = _CHARSET_ALIASES.get(charset, charset)
    try:
        codecs.lookup(codec_name)
    except LookupError:
        logger.warning("unknown_charset", charset=charset)
        return decoded

    return decoded.decode(codec_name, errors="replace").encode("utf-8")


def collapse_whitespace(text: str) -> str:
    """
    Replace line breaks and tabs with spaces and squeeze runs of spaces.

    Examples:
        >>> collapse_whitespace("Jane\\t Doe")
        'Jane Doe'
    """
    text = text.replace("\n", " ").replace("\r", " ").replace("\t", " ")
    return re.sub(r" {2,}", " ", text)
