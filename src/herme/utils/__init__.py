"""Relay, inference, wallet and key utilities.

The utils layer depends on [herme.models][herme.models] and on
``herme.core.exceptions`` only. It holds every piece of network I/O used by
[herme.services][herme.services].

Attributes:
    relays: Shared relay gateway with live subscriptions, publishing and
        bounded one-shot queries.
    inference: OpenAI-compatible chat-completion client returning text and
        an optional invoice.
    wallet: NIP-47 invoice settlement.
    keys: Identity loading from an environment variable or a key file.
    http: Bounded JSON reading for HTTP responses.

Examples:
    ```python
    from herme.utils.relays import RelayGateway
    from herme.utils.keys import KeysConfig
    ```
"""
