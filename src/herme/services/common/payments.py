"""Decoupled settlement of inference invoices.

Monitors never wait for a payment: they
[enqueue()][herme.services.common.payments.PaymentQueue.enqueue] the invoice
returned with a generation and move on. A single background drain pays
invoices in FIFO order through the configured
[Settler][herme.utils.wallet.Settler]. Invoices are single-use, so a failed
settlement is logged and dropped rather than retried.
"""

from __future__ import annotations

import asyncio
from collections import deque

from herme.core.exceptions import SettlementError
from herme.core.logger import Logger
from herme.core.metrics import PAYMENT_QUEUE_DEPTH, SETTLEMENTS_TOTAL
from herme.utils.wallet import Settler


class PaymentQueue:
    """FIFO invoice queue with at most one drain running.

    Args:
        settler: Payment collaborator.
        timeout: Upper bound in seconds for one settlement.
        metrics_enabled: Update the queue depth and settlement metrics.
    """

    def __init__(
        self,
        settler: Settler,
        *,
        timeout: float = 60.0,  # noqa: ASYNC109
        metrics_enabled: bool = False,
    ) -> None:
        self._settler = settler
        self._timeout = timeout
        self._metrics_enabled = metrics_enabled
        self._queue: deque[str] = deque()
        self._draining = False
        self._task: asyncio.Task[None] | None = None
        self._logger = Logger("payments")

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def draining(self) -> bool:
        return self._draining

    def enqueue(self, invoice: str) -> None:
        """Append *invoice* and start a background drain if none is running."""
        self._queue.append(invoice)
        self._update_depth()
        self._logger.info("payment_queued", invoice=invoice[:20], depth=len(self._queue))
        if not self._draining and (self._task is None or self._task.done()):
            self._task = asyncio.get_running_loop().create_task(self.drain())

    async def drain(self) -> None:
        """Settle queued invoices one at a time until the queue is empty.

        Returns immediately when another drain is already running.
        """
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue:
                invoice = self._queue.popleft()
                self._update_depth()
                await self._settle(invoice)
        finally:
            self._draining = False

    async def drain_remaining(self) -> None:
        """Wait for the running drain, then settle anything left. Used at shutdown."""
        if self._task is not None and not self._task.done():
            await self._task
        if self._queue:
            self._logger.info("payments_draining_remaining", count=len(self._queue))
            await self.drain()

    async def _settle(self, invoice: str) -> None:
        try:
            paid = await asyncio.wait_for(self._settler.settle(invoice), timeout=self._timeout)
        except (SettlementError, TimeoutError, OSError) as e:
            self._record("failed")
            self._logger.error(
                "payment_failed",
                invoice=invoice[:20],
                error=str(e) or type(e).__name__,
            )
            return
        except Exception as e:  # Intentionally broad: one wallet fault must not stop the drain
            self._record("failed")
            self._logger.error(
                "payment_failed",
                invoice=invoice[:20],
                error=str(e) or type(e).__name__,
                error_type=type(e).__name__,
            )
            return

        if paid:
            self._record("paid")
            self._logger.info("payment_settled", invoice=invoice[:20])
        else:
            self._record("unpaid")
            self._logger.warning("payment_not_settled", invoice=invoice[:20])

    def _update_depth(self) -> None:
        if self._metrics_enabled:
            PAYMENT_QUEUE_DEPTH.set(len(self._queue))

    def _record(self, outcome: str) -> None:
        if self._metrics_enabled:
            SETTLEMENTS_TOTAL.labels(outcome=outcome).inc()
