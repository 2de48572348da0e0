"""Poster protocol for outbound delivery.

The RetryingSender only needs to POST bytes and read back a status code.
Keeping that behind a protocol lets tests and alternative HTTP stacks plug
in without touching the retry logic.
"""

from typing import Mapping, Protocol


class Poster(Protocol):
    """Protocol for a single outbound POST.

    Implementations are responsible for:
    - Sending the body with the given headers to the configured endpoint
    - Enforcing the per-request timeout
    - Returning the HTTP status code

    Transport-level failures (connection refused, timeouts) are raised as
    exceptions; the sender counts them as failed attempts.
    """

    def post(self, body: bytes, headers: Mapping[str, str]) -> int:
        """POST body and return the response status code.

        Args:
            body: Already-serialized request body.
            headers: Complete header set for the request.

        Returns:
            The HTTP status code of the response.
        """
        ...

    def close(self) -> None:
        """Release any pooled connections."""
        ...
