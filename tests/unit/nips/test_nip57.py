"""
Unit tests for nips.nip57 module.

Tests:
- bolt11_amount_sats() for every multiplier and malformed input
- parse_zap_receipt() sender, amount and comment extraction
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

import pytest

from herme.models.event import NetworkEvent
from herme.nips.nip57 import ZapReceipt, bolt11_amount_sats, parse_zap_receipt


S1 = "51" * 32


class TestBolt11Amount:
    """Tests for bolt11_amount_sats()."""

    @pytest.mark.parametrize(
        ("invoice", "sats"),
        [
            ("lnbc2500u1pvjluezpp5qqqsyqcyq5rqwzqf", 250_000),
            ("lnbc20m1pvjluezpp5qqqsyqcyq5rqwzqf", 2_000_000),
            ("lnbc10n1pvjluezpp5qqqsyqcyq5rqwzqf", 1),
            ("lnbc210n1pvjluezpp5qqqsyqcyq5rqwzqf", 21),
            ("lnbc250000p1pvjluezpp5qqqsyqcyq5rqwzqf", 25),
            ("lnbc1pvjluezpp5qqqsyqcyq5rqwzqf", None),
            ("lntb1u1pvjluezpp5qqqsyqcyq5rqwzqf", 100),
            ("lnbcrt5u1pvjluezpp5qqqsyqcyq5rqwzqf", 500),
        ],
    )
    def test_amounts(self, invoice: str, sats: int | None) -> None:
        assert bolt11_amount_sats(invoice) == sats

    def test_uppercase_and_scheme(self) -> None:
        assert bolt11_amount_sats("lightning:LNBC2500U1PVJLUEZPP5QQQSYQCYQ5RQWZQF") == 250_000

    @pytest.mark.parametrize("invoice", ["", "notaninvoice", "lnxyz10u1pvjluez", "1abc"])
    def test_malformed(self, invoice: str) -> None:
        assert bolt11_amount_sats(invoice) is None


class TestParseZapReceipt:
    """Tests for parse_zap_receipt()."""

    def test_full_receipt(self, make_event: Callable[..., NetworkEvent]) -> None:
        request = {"kind": 9734, "content": "great thread!", "tags": []}
        event = make_event(
            "zap",
            kind=9735,
            tags=[
                ["p", "00" * 32],
                ["P", S1],
                ["bolt11", "lnbc210n1pvjluezpp5qqqsyqcyq5rqwzqf"],
                ["description", json.dumps(request)],
            ],
        )
        assert parse_zap_receipt(event) == ZapReceipt(
            sender=S1,
            amount_sats=21,
            comment="great thread!",
            bolt11="lnbc210n1pvjluezpp5qqqsyqcyq5rqwzqf",
        )

    def test_missing_sender(self, make_event: Callable[..., NetworkEvent]) -> None:
        event = make_event("zap", kind=9735, tags=[["p", "00" * 32]])
        assert parse_zap_receipt(event) is None

    def test_empty_sender(self, make_event: Callable[..., NetworkEvent]) -> None:
        event = make_event("zap", kind=9735, tags=[["P", ""]])
        assert parse_zap_receipt(event) is None

    def test_minimal_receipt(self, make_event: Callable[..., NetworkEvent]) -> None:
        receipt = parse_zap_receipt(make_event("zap", kind=9735, tags=[["P", S1]]))
        assert receipt == ZapReceipt(sender=S1)

    def test_invalid_description_loses_comment_only(
        self, make_event: Callable[..., NetworkEvent], caplog: pytest.LogCaptureFixture
    ) -> None:
        event = make_event(
            "zap",
            kind=9735,
            tags=[["P", S1], ["description", "{not json"]],
        )
        with caplog.at_level(logging.WARNING):
            receipt = parse_zap_receipt(event)

        assert receipt is not None
        assert receipt.sender == S1
        assert receipt.comment == ""
        assert "zap_description_invalid" in caplog.text

    def test_non_string_comment_ignored(self, make_event: Callable[..., NetworkEvent]) -> None:
        event = make_event(
            "zap",
            kind=9735,
            tags=[["P", S1], ["description", json.dumps({"content": 42})]],
        )
        receipt = parse_zap_receipt(event)
        assert receipt is not None
        assert receipt.comment == ""
