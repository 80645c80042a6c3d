"""Minimal SMTP/IMAP protocol clients used by the mail health checks."""

from mailprobe.mail.channel import CommandChannel, ReplyRule
from mailprobe.mail.imap import ImapSession, resolve_imap_connection_type
from mailprobe.mail.smtp import SmtpSession, resolve_connection_type
from mailprobe.mail.transport import Transport

__all__ = [
    "CommandChannel",
    "ImapSession",
    "ReplyRule",
    "SmtpSession",
    "Transport",
    "resolve_connection_type",
    "resolve_imap_connection_type",
]
