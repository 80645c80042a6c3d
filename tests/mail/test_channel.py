"""Tests for CommandChannel and reply completion rules."""

import logging
from collections.abc import Callable
from typing import Any

import pytest

from mailprobe.exceptions import TransportError
from mailprobe.mail.channel import (
    CommandChannel,
    ImapGreetingRule,
    ImapTaggedRule,
    SmtpReplyRule,
)


class TestSmtpReplyRule:
    @pytest.mark.parametrize(
        ("line", "final"),
        [
            ("250-smtp.example.com", False),
            ("250-PIPELINING", False),
            ("250 SMTPUTF8", True),
            ("250", True),
            ("", True),
        ],
    )
    def test_is_final(self, line: str, final: bool) -> None:
        assert SmtpReplyRule().is_final(line) is final

    def test_code_of(self) -> None:
        assert SmtpReplyRule().code_of("235 2.7.0 Authentication successful") == "235"


class TestImapRules:
    def test_tagged_rule_matches_own_tag_only(self) -> None:
        rule = ImapTaggedRule("A0002")

        assert rule.is_final("A0002 OK SELECT completed")
        assert not rule.is_final("* 3 EXISTS")
        assert not rule.is_final("A00021 OK other command")

    def test_tagged_rule_code_is_status_keyword(self) -> None:
        assert ImapTaggedRule("A0001").code_of("A0001 no [AUTHENTICATIONFAILED]") == "NO"

    def test_greeting_rule(self) -> None:
        rule = ImapGreetingRule()

        assert rule.is_final("* OK IMAP4rev1 Service Ready")
        assert rule.code_of("* OK IMAP4rev1 Service Ready") == "OK"
        assert rule.code_of("*") == ""


@pytest.mark.asyncio
class TestCommandChannel:
    async def test_execute_accumulates_multiline_smtp_reply(
        self, make_transport: Callable[..., Any]
    ) -> None:
        transport = make_transport(
            greeting=["220 ready"],
            replies=[["250-smtp.example.com", "250-STARTTLS", "250 AUTH LOGIN"]],
        )
        await transport.connect("smtp.example.com", 587)
        channel = CommandChannel(transport, SmtpReplyRule())
        await channel.read_response()

        response = await channel.execute("EHLO smtp.example.com\r\n")

        assert transport.written == ["EHLO smtp.example.com\r\n"]
        assert response.code_or_keyword == "250"
        assert response.lines == ["250-smtp.example.com", "250-STARTTLS", "250 AUTH LOGIN"]
        assert response.full_text == "250-smtp.example.com\n250-STARTTLS\n250 AUTH LOGIN"
        assert response.contains("STARTTLS")

    async def test_execute_reads_until_tagged_line(
        self, make_transport: Callable[..., Any]
    ) -> None:
        transport = make_transport(
            replies=[["* FLAGS (\\Seen)", "* 2 EXISTS", "A0001 OK [READ-WRITE] SELECT completed"]],
        )
        await transport.connect("imap.example.com", 993)
        channel = CommandChannel(transport, ImapGreetingRule())

        response = await channel.execute('A0001 SELECT "INBOX"\r\n', ImapTaggedRule("A0001"))

        assert response.code_or_keyword == "OK"
        assert len(response.lines) == 3

    async def test_reply_exceeding_max_lines_raises(
        self, make_transport: Callable[..., Any]
    ) -> None:
        transport = make_transport(replies=[["250-a", "250-b", "250-c", "250 d"]])
        await transport.connect("smtp.example.com", 25)
        channel = CommandChannel(transport, SmtpReplyRule(), max_lines=3)

        with pytest.raises(TransportError, match="exceeded 3 lines"):
            await channel.execute("EHLO x\r\n")

    async def test_execute_requires_connection(self, make_transport: Callable[..., Any]) -> None:
        channel = CommandChannel(make_transport(), SmtpReplyRule())

        with pytest.raises(RuntimeError, match="Not connected"):
            await channel.execute("EHLO x\r\n")

    async def test_sensitive_commands_are_not_logged(
        self, make_transport: Callable[..., Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        transport = make_transport(replies=[["235 ok"]])
        await transport.connect("smtp.example.com", 25)
        channel = CommandChannel(transport, SmtpReplyRule())

        with caplog.at_level(logging.DEBUG, logger="mailprobe.mail.channel"):
            await channel.execute("c2VjcmV0\r\n", sensitive=True)

        assert "c2VjcmV0" not in caplog.text
        assert "<redacted>" in caplog.text
