"""Herme exception hierarchy.

Provides typed exceptions for every fault class the agent distinguishes, so
that monitors can catch exactly the failures they are allowed to absorb and
let ``CancelledError`` propagate untouched.

Exception hierarchy:

```text
HermeError (base -- never raised directly)
├── ConfigurationError      -- config validation, missing keys, bad YAML
├── ConnectivityError        -- relay unreachable, subscription closed
│   └── RelayTimeoutError    -- connection or response timed out
├── ProtocolError            -- malformed events, tags or payloads
├── PublishingError          -- no relay accepted an outbound event
├── InferenceError           -- language-model backend failures
└── SettlementError          -- invoice could not be paid
```

See Also:
    [StreamMonitor][herme.services.common.monitor.StreamMonitor]: Absorbs
        [InferenceError][herme.core.exceptions.InferenceError] and
        [PublishingError][herme.core.exceptions.PublishingError] per event.
    [PaymentQueue][herme.services.common.payments.PaymentQueue]: Absorbs
        [SettlementError][herme.core.exceptions.SettlementError] per entry.
"""

from __future__ import annotations


class HermeError(Exception):
    """Base exception for all Herme errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(HermeError):
    """Invalid or missing configuration (YAML, env vars, CLI flags, key files)."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(HermeError):
    """Base for relay/network connectivity errors.

    Raised by a [Subscription][herme.utils.relays.Subscription] stream when
    the relay side closes it or the notification pump dies. Monitors treat
    it as a signal to re-establish the subscription.
    """


class RelayTimeoutError(ConnectivityError):
    """Connection or response timed out."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(HermeError):
    """Malformed event, tag, or payload received from the network."""


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishingError(HermeError):
    """No relay accepted an outbound event.

    The triggering event must stay un-recorded in the dedup store so it is
    retried on a later scan or restart.
    """


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------


class InferenceError(HermeError):
    """The language-model backend failed or returned an unusable answer."""


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


class SettlementError(HermeError):
    """An invoice could not be paid by the payment collaborator.

    Invoices are single-use: the queue drops the entry instead of retrying.
    """
