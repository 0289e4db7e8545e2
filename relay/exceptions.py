"""
Custom exception classes for the chat relay.

Transport failures are not represented here: a failed delivery is reported
by the connection as a ``False`` send result and handled by pruning, and
undecodable payloads surface as pydantic ``ValidationError``.
"""


class RelayError(Exception):
    """Base class for chat relay errors."""

    pass


class DuplicateConnectionError(RelayError):
    """
    Connection is already registered.

    Raised when a connection is inserted into the registry a second time
    without an intervening removal.
    """

    pass
