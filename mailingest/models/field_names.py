"""Header fields whose bodies are addresses or dates, by lower-case tag."""

ADDRESS_FIELDS = [
    ("apparently-from", "Apparently-From"),
    ("apparently-to", "Apparently-To"),
    ("bounces-to", "Bounces-To"),
    ("delivered-to", "Delivered-To"),
    ("disposition-notification-to", "Disposition-Notification-To"),
    ("envelope-to", "Envelope-To"),
    ("reply-to", "Reply-To"),
    ("resent-cc", "Resent-Cc"),
    ("resent-from", "Resent-From"),
    ("resent-reply-to", "Resent-Reply-To"),
    ("resent-sender", "Resent-Sender"),
    ("resent-to", "Resent-To"),
    ("sender", "Sender"),
]

DATE_FIELDS = [
    ("date", "Date"),
    ("deferred-delivery", "Deferred-Delivery"),
    ("posted-date", "Posted-Date"),
    ("received-date", "Received-Date"),
    ("resent-date", "Resent-Date"),
]
