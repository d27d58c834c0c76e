"""Invoice settlement through Nostr Wallet Connect (NIP-47).

The payment queue only knows the [Settler][herme.utils.wallet.Settler]
protocol: ``settle(invoice) -> bool``.
[NwcWallet][herme.utils.wallet.NwcWallet] implements it with
``nostr_sdk.Nwc``; [NullSettler][herme.utils.wallet.NullSettler] is used
when no wallet is configured and records every invoice as unpaid.

Warning:
    The connection URI contains the wallet secret. It is read from an
    environment variable and never logged.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol

from nostr_sdk import NostrSdkError, NostrWalletConnectUri, Nwc, PayInvoiceRequest
from pydantic import BaseModel, Field

from herme.core.exceptions import ConfigurationError, SettlementError


logger = logging.getLogger(__name__)

ENV_NWC_URI = "HERME_NWC_URI"  # pragma: allowlist secret


class Settler(Protocol):
    """Anything able to pay a BOLT-11 invoice."""

    async def settle(self, invoice: str) -> bool: ...


class WalletConfig(BaseModel):
    """Payment collaborator settings.

    The wallet is optional: when the variable named by ``uri_env`` is unset
    invoices are logged and dropped.
    """

    uri_env: str = Field(
        default=ENV_NWC_URI,
        min_length=1,
        description="Environment variable holding the nostr+walletconnect:// URI",
    )


class NwcWallet:
    """Pays invoices via a NIP-47 wallet service."""

    def __init__(self, uri: str) -> None:
        try:
            self._nwc = Nwc(NostrWalletConnectUri.parse(uri))
        except NostrSdkError as e:
            raise ConfigurationError("invalid Nostr Wallet Connect URI") from e

    async def settle(self, invoice: str) -> bool:
        """Pay *invoice*; a returned preimage means success.

        Raises:
            SettlementError: If the wallet service rejects the payment.
        """
        try:
            response = await self._nwc.pay_invoice(
                PayInvoiceRequest(invoice=invoice, id=None, amount=None)
            )
        except NostrSdkError as e:
            raise SettlementError(f"wallet rejected payment: {e}") from e
        return bool(getattr(response, "preimage", None))


class NullSettler:
    """Settler used without a wallet: never pays."""

    async def settle(self, invoice: str) -> bool:
        logger.warning("wallet_not_configured invoice=%s...", invoice[:20])
        return False


def create_settler(config: WalletConfig) -> Settler:
    """Build the configured settler, falling back to
    [NullSettler][herme.utils.wallet.NullSettler]."""
    uri = os.getenv(config.uri_env)
    if not uri:
        logger.info("wallet_disabled env=%s", config.uri_env)
        return NullSettler()
    return NwcWallet(uri)
