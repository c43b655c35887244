"""Static lookup tables shared by the header and body parsers."""

# Content types that are stored as a leaf part without further structure
SIMPLE_CONTENT_TYPES = frozenset(
    [
        "application/applefile",
        "application/ics",
        "application/mac-binhex40",
        "application/ms-tnef",
        "application/msexcel",
        "application/msword",
        "application/octet-stream",
        "application/pkcs7-mime",
        "application/pkcs7-signature",
        "application/pdf",
        "application/pgp",
        "application/pgp-encrypted",
        "application/pgp-signature",
        "application/postscript",
        "application/rtf",
        "application/vnd.ms-excel",
        "application/vnd.ms-excel.sheet.binary.macroenabled.12",
        "application/vnd.ms-excel.sheet.macroenabled.12",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.template",
        "application/x-dvi",
        "application/x-gzip",
        "application/x-macbinary",
        "application/x-msdownload",
        "application/x-pdf",
        "application/x-pkcs7-signature",
        "application/x-rpm",
        "application/x-shar",
        "application/x-stuffit",
        "application/x-tar",
        "application/x-tar-gz",
        "application/x-tex",
        "application/x-zip-compressed",
        "application/zip",
        "audio/mid",
        "audio/mp3",
        "audio/mpeg",
        "audio/x-midi",
        "audio/x-wav",
        "image/bmp",
        "image/gif",
        "image/heif",
        "image/jpeg",
        "image/jpg",
        "image/pjpeg",
        "image/png",
        "image/svg+xml",
        "image/tiff",
        "image/vnd.microsoft.icon",
        "image/x-portable-pixmap",
        "message/delivery-status",
        "message/news",
        "message/rfc822",
        "text",
        "text/calendar",
        "text/csv",
        "text/english",
        "text/enriched",
        "text/html",
        "text/plain",
        "text/rtf",
        "text/rfc822-headers",
        "text/x-aol",
        "text/x-csrc",
        "text/x-gunzip",
        "text/x-tex",
        "text/x-vcard",
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
    ]
)

# Top-level Content-Type values accepted in a message header (regex alternation)
KNOWN_MESSAGE_CONTENT_TYPES = (
    "application/pkcs7-mime",
    "application/pgp",
    "application/x-macbinary",
    "image/heif",
    "image/jpe?g",
    "text/(?:enriched|html|plain|calendar)",
    "text",
    "message/rfc822",
    "multipart/(?:alternate|alternative|encrypted|mixed|related|report|signed)",
)

# Charset spellings accepted in a message header Content-Type (regex alternation)
KNOWN_CHARSETS = (
    "ascii",
    "koi8-r",
    "iso-2022-jp",
    "iso-2022-kr",
    "iso-8859-15",
    "iso-8859-13",
    "iso-8859-1",
    "iso-8859-2",
    "iso-8859-7",
    "unknown-8bit",
    "us-ascii",
    "utf-8",
    "windows-1250",
    "windows-1251",
    "windows-1252",
    "windows-1254",
    "x-roman8",
    "x-unknown",
)

# Case-insensitive phrase -> canonical name for recipients that are not listed
SUPPRESSED_RECIPIENT_PHRASES = (
    ("recipient list suppressed", "Suppressed recipients"),
    ("unlisted-recipients", "Unlisted recipients"),
    ("recipient list not shown", "Recipient list not shown"),
    ("undisclosed recipients", "Undisclosed recipients"),
    ("undisclosed-recipients", "Undisclosed recipients"),
    ("whom it may concern", "Whom it may concern"),
)

MONTHS = {
    "jan": "01",
    "feb": "02",
    "mar": "03",
    "apr": "04",
    "may": "05",
    "jun": "06",
    "jul": "07",
    "aug": "08",
    "sep": "09",
    "oct": "10",
    "nov": "11",
    "dec": "12",
}

# Zone abbreviation -> offset from UTC in minutes. Abbreviations are
# ambiguous ("MET DST" and "MESZ" describe the same zone); collisions are
# kept as listed.
TIMEZONE_OFFSETS = {
    "CDT": -5 * 60,
    "CEST": 2 * 60,
    "CET": 1 * 60,
    "CST": -6 * 60,
    "EDT": -4 * 60,
    "EET": 2 * 60,
    "EET DST": 3 * 60,
    "EST": -5 * 60,
    "GMT": 0,
    "MESZ": 2 * 60,
    "MET DST": 2 * 60,
    "MET": 1 * 60,
    "MEZ": 1 * 60,
    "PDT": -7 * 60,
    "PST": -8 * 60,
}

# Header tags that are dropped without an error
IGNORED_HEADER_TAGS = frozenset(
    [
        "ironport-data",
        "ironport-hdrordr",
        "ironport-phdr",
        "ironport-sdr",
        # Malformed Microsoft header seen in the wild (should be "x-ms-...")
        "-ms-exchange-organization-bypassclutter",
    ]
)

# Lines that open the trailing property list of an Apple Mail .emlx file
EMLX_PLIST_PROLOGUE = (
    '<?XML version="1.0" encoding="UTF-8"?>',
    "<!DOCTYPE plist PUBLIC",
    '<plist version="1.0">',
)
EMLX_PLIST_END = "</plist>"
