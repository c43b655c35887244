"""Parse mailbox strings into address records."""

import re

import structlog

from mailingest.utils.unicode_utils import decode_if_necessary

from .constants import SUPPRESSED_RECIPIENT_PHRASES

logger = structlog.get_logger()

# foo@bar.com
_BARE = re.compile(r"^([^<>, ]*)$")
# <foo@bar.com>
_BRACKETED = re.compile(r"^<(.*)>$")
# snafu <foo@bar.com>, snafu<foo@bar.com>
_NAME_BRACKETED = re.compile(r'^([^,"]*[^," ])\s*<(.*)>$')
# "last, first" <foo@bar.com>
_LAST_FIRST_BRACKETED = re.compile(r'^"([^,]+),\s+(\S[^,]*)"\s+<(.*)>$')
# "foo bar" <foo@bar.com>
_QUOTED_NAME_BRACKETED = re.compile(r'^"([^",]+)"\s+<(.*)>$')
# foo bar foo@bar.com
_NAME_ADDRESS = re.compile(r"^(.+)\s+(\S+@\S+)$")
# john.doe@foo.com (john.doe)
_ADDRESS_COMMENT = re.compile(r"^([^\s]+@[^\s]+)\s+\((.+)\)$")
# foo (Foo Bar), local system mail without a domain
_LOCAL_COMMENT = re.compile(r"^([^\(]+\S)\s+\((.+)\)$")
# "last, first"
_LAST_FIRST_ONLY = re.compile(r'^"([^,]+),\s+(\S[^,]*)"$')

# "name" <address>, rest
_LIST_QUOTED_BRACKETED = re.compile(r'^("[^"]+"\s*<[^>]+>)(,\s*(\S.*))?$', re.DOTALL)
# name <address>, rest / address, rest
_LIST_UNQUOTED = re.compile(r'^([^",]+)(,\s*(\S.*))?$', re.DOTALL)
# "name", rest
_LIST_QUOTED_ONLY = re.compile(r'^("[^<"]+")(,\s*(\S.*))?$', re.DOTALL)

_ESCAPED_QUOTE = "&quot;"


def parse_address(text: str) -> dict[str, str]:
    """
    Parse a single mailbox into an address record.

    Grammars are tried in a fixed order and the first match wins. Names
    that only say the recipient list is hidden map to a name-only record.

    Args:
        text: Raw mailbox text (encoded words allowed)

    Returns:
        Mapping with any of 'email', 'full name', 'first name', 'last name';
        empty if the text could not be interpreted

    Examples:
        >>> parse_address('"Doe, John" <john.doe@foo.com>')['full name']
        'John Doe'
    """
    address = decode_if_necessary(text)

    match = _BARE.match(address)
    if match:
        return {"email": match.group(1).strip()}

    match = _BRACKETED.match(address)
    if match:
        return {"email": match.group(1).strip()}

    match = _NAME_BRACKETED.match(address)
    if match:
        return {"full name": match.group(1).strip(), "email": match.group(2).strip()}

    match = _LAST_FIRST_BRACKETED.match(address)
    if match:
        last, first = match.group(1), match.group(2)
        return {
            "last name": last.strip(),
            "first name": first.strip(),
            "full name": f"{first} {last}",
            "email": match.group(3),
        }

    match = _QUOTED_NAME_BRACKETED.match(address)
    if match:
        return {"full name": match.group(1).strip(), "email": match.group(2).strip()}

    match = _NAME_ADDRESS.match(address)
    if match:
        return {"full name": match.group(1).strip(), "email": match.group(2).strip()}

    match = _ADDRESS_COMMENT.match(address)
    if match:
        return {"full name": match.group(2).strip(), "email": match.group(1).strip()}

    match = _LOCAL_COMMENT.match(address)
    if match:
        return {
            "full name": match.group(2).strip(),
            "email": f"{match.group(1).strip()}@localhost",
        }

    match = _LAST_FIRST_ONLY.match(address)
    if match:
        last, first = match.group(1), match.group(2)
        return {
            "last name": last.strip(),
            "first name": first.strip(),
            "full name": f"{first} {last}",
            "email": "",
        }

    lowered = address.lower()
    for phrase, name in SUPPRESSED_RECIPIENT_PHRASES:
        if phrase in lowered:
            return {"full name": name}

    logger.warning("unknown_address_format", address=address)
    return {}


def parse_address_list(text: str) -> list[dict[str, str]]:
    """
    Parse a comma-separated list of mailboxes.

    Quoted names may contain commas. Escaped quotation marks are protected
    while splitting and restored in the resulting records.

    Args:
        text: Raw header value of To, Cc or Bcc

    Returns:
        Address records in list order; parsing stops at the first entry
        that fits none of the list grammars
    """
    rest = decode_if_necessary(text.replace('\\"', _ESCAPED_QUOTE))

    addresses = []
    while rest:
        for grammar in (_LIST_QUOTED_BRACKETED, _LIST_UNQUOTED, _LIST_QUOTED_ONLY):
            match = grammar.match(rest)
            if match:
                addresses.append(parse_address(match.group(1)))
                rest = match.group(3) or ""
                break
        else:
            logger.warning("unknown_address_list_format", remainder=rest)
            break

    return [
        {key: value.replace(_ESCAPED_QUOTE, '"') for key, value in address.items()}
        for address in addresses
    ]
