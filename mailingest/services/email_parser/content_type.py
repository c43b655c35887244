"""Interpretation of the message-level Content-Type header."""

import re
from typing import Optional

import structlog

from .base import FatalParseError
from .constants import KNOWN_CHARSETS, KNOWN_MESSAGE_CONTENT_TYPES

logger = structlog.get_logger()

_KNOWN_TYPE = re.compile(
    r"^(?P<type>{})(?:;|;\s*(?P<rest>\S.*))?$".format("|".join(KNOWN_MESSAGE_CONTENT_TYPES)),
    re.IGNORECASE,
)

_CHARSETS = "|".join(re.escape(charset) for charset in KNOWN_CHARSETS)


def _pattern(expression: str) -> re.Pattern:
    return re.compile(expression, re.IGNORECASE)


# Each parameter is tried in the listed shapes; the first match is stripped
# from the parameter text and the remaining text is prefix + tail.
_BOUNDARY = (
    _pattern(r'^(?P<head>.*)boundary="(?P<value>[^";]+)"(?:;|\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)boundary=(?P<value>[^";]+)(?:;|\s*;\s+(?P<tail>\S.*))?$'),
)
_REPORT_TYPE = (
    _pattern(r'^(?P<head>.*)report-type="(?P<value>[^"; ]+)"(?:\s*;?)(?:\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)report-type=(?P<value>[^"; ]+)(?:\s*;)?(?:\s+(?P<tail>\S.*))?$'),
)
_REPLY_TYPE = (
    _pattern(r'^(?P<head>.*)reply-type=(?P<value>[^"; ]+)(?:\s*;?)(?:\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)reply-type=(?P<value>[^"; ]+)(?:\s*;)?(?:\s+"(?P<tail>\S[^"]*)")?$'),
)
_PROTOCOL = (_pattern(r'^(?P<head>.*)protocol="(?P<value>[^"; ]+)"(?:\s*;)?(?:\s+(?P<tail>\S.*))?$'),)
_MICALG = (_pattern(r'^(?P<head>.*)micalg=(?P<value>[^"; ]+)(?:\s*;)?(?:\s+(?P<tail>\S.*)?)?$'),)
_METHOD = (
    _pattern(r'^(?P<head>.*)method="(?P<value>[^"; ]+)"(?:\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)method=(?P<value>[^"; ]+)(?:\s*;\s+(?P<tail>\S.*))?$'),
)
_DELSP = (
    _pattern(r'^(?P<head>.*)delsp="(?P<value>[^"; ]+)"(?:\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)delsp=(?P<value>[^"; ]+)(?:\s*;\s+(?P<tail>\S.*))?$'),
)
_MAC_TYPE = (
    _pattern(r'^(?P<head>.*)x-mac-type="(?P<value>[^"; ]+)"(?:\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)x-mac-type=(?P<value>[^"; ]+)(?:\s*;\s+(?P<tail>\S.*))?$'),
)
_MAC_CREATOR = (
    _pattern(r'^(?P<head>.*)x-mac-creator="(?P<value>[^"; ]+)"(?:\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)x-mac-creator=(?P<value>[^"; ]+)(?:\s*;\s+(?P<tail>\S.*))?$'),
)
_ACTION = (
    _pattern(r'^(?P<head>.*)x-action="(?P<value>[^"; ]+)"(?:\s*;\s+(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)x-action=(?P<value>[^"; ]+)(?:\s*;\s+(?P<tail>\S.*))?$'),
)
_UNIX_MODE = (_pattern(r"^(?P<head>.*)x-unix-mode=(?P<value>[0-7]+)(?:\s*;\s+(?P<tail>\S.*))?$"),)
_CHARSET = (
    _pattern(r"^(?P<head>.*)charset=(?P<value>" + _CHARSETS + r")(?:;|\s*;\s*(?P<tail>\S.*))?$"),
    _pattern(r'^(?P<head>.*)charset\s*=\s*"(?P<value>' + _CHARSETS + r')"(?:;|\s*;\s*(?P<tail>\S.*))?$'),
)
_FORMAT = (
    _pattern(r'^(?P<head>.*)format=(?P<value>[^"; ]+)(?:;|\s*;\s*(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)format="(?P<value>[^"; ]+)"(?:\s*;\s*(?P<tail>\S.*))?$'),
)
_NAME = (
    _pattern(r'^(?P<head>.*)name=(?P<value>[^";]+)(?:;|\s*;\s*(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)name="(?P<value>[^"]+)"(?:\s*;\s*(?P<tail>\S.*))?$'),
)
_TYPE = (
    _pattern(r'^(?P<head>.*)type=(?P<value>[^";]+)(?:;|\s*;\s*(?P<tail>\S.*))?$'),
    _pattern(r'^(?P<head>.*)type="(?P<value>[^"]+)"(?:\s*;\s*(?P<tail>\S.*))?$'),
)


def _strip_parameter(rest: str, shapes: tuple) -> tuple[Optional[str], str]:
    """
    Remove the first parameter matching one of shapes from rest.

    Returns:
        Tuple of (value or None, remaining parameter text, trimmed)
    """
    for shape in shapes:
        match = shape.match(rest)
        if match:
            remaining = match.group("head") + (match.group("tail") or "")
            # The separator of the removed parameter may be left at the end
            return match.group("value"), remaining.strip().rstrip(";").rstrip()
    return None, rest


def parse_content_type(body: str) -> dict[str, str]:
    """
    Interpret a message Content-Type header value.

    The type must be one of the known message content types
    (multipart/alternate is read as multipart/alternative). Parameters are
    then stripped one by one: boundary, report-type, reply-type, protocol
    and micalg, method, delsp, x-mac-type, x-mac-creator, x-action,
    x-unix-mode, charset, format, name and a redundant type. Whatever
    remains is reported as residual information.

    Args:
        body: Header value, e.g. 'multipart/mixed; boundary="XYZ"'

    Returns:
        Mapping with 'raw', 'type' and one key per recognized parameter

    Raises:
        FatalParseError: If the type is unknown or a multipart type has no boundary
    """
    result = {"raw": body}

    match = _KNOWN_TYPE.match(body.strip())
    if not match:
        raise FatalParseError(f'Unknown content type "{body}" in email header.')

    content_type = match.group("type").lower()
    if content_type == "multipart/alternate":
        content_type = "multipart/alternative"
    result["type"] = content_type
    rest = (match.group("rest") or "").strip()

    if content_type.startswith("multipart"):
        boundary, rest = _strip_parameter(rest, _BOUNDARY)
        if boundary is None:
            raise FatalParseError(f'Unknown boundary "{body}" in email header content type.')
        result["boundary"] = boundary

    if content_type == "multipart/report":
        report_type, rest = _strip_parameter(rest, _REPORT_TYPE)
        if report_type is not None:
            result["report-type"] = report_type

    reply_type, rest = _strip_parameter(rest, _REPLY_TYPE)
    if reply_type is not None:
        result["reply-type"] = reply_type

    if content_type in ("multipart/signed", "multipart/encrypted"):
        protocol, rest = _strip_parameter(rest, _PROTOCOL)
        if protocol is not None:
            result["protocol"] = protocol
        micalg, rest = _strip_parameter(rest, _MICALG)
        if micalg is not None:
            result["micalg"] = micalg

    if content_type == "text/calendar":
        method, rest = _strip_parameter(rest, _METHOD)
        if method is not None:
            if method.upper() == "CANCEL":
                result["method"] = method.lower()
            else:
                logger.warning("invalid_calendar_method", method=method)

    if content_type == "text/plain":
        delsp, rest = _strip_parameter(rest, _DELSP)
        if delsp is not None:
            if delsp.lower() in ("yes", "no"):
                result["delsp"] = delsp.lower()
            else:
                logger.warning("invalid_delsp", delsp=delsp)

    for key, shapes in (
        ("x-mac-type", _MAC_TYPE),
        ("x-mac-creator", _MAC_CREATOR),
        ("x-action", _ACTION),
        ("x-unix-mode", _UNIX_MODE),
    ):
        value, rest = _strip_parameter(rest, shapes)
        if value is not None:
            result[key] = value

    for key, shapes in (("charset", _CHARSET), ("format", _FORMAT), ("name", _NAME)):
        value, rest = _strip_parameter(rest, shapes)
        if value is not None:
            result[key] = value.lower()

    # Redundant with the content type itself
    _, rest = _strip_parameter(rest, _TYPE)

    if rest:
        logger.warning("residual_content_type_information", residual=rest, content_type=body)

    return result
