"""Request builder protocol.

A request builder turns (source_id, offset, page_size) into the
PageRequest for one page. It is the only source-specific piece the
ingestion engine needs.
"""

from typing import Protocol, runtime_checkable

from core.types import PageRequest


@runtime_checkable
class RequestBuilder(Protocol):
    """Protocol for source adapters.

    The protocol is runtime checkable, so you can use isinstance() to verify.
    """

    @property
    def name(self) -> str:
        """Builder name (e.g., 'jira', 'template')."""
        ...

    def build(self, source_id: str, offset: int, page_size: int) -> PageRequest:
        """Build the request for one page.

        Args:
            source_id: Source to page through
            offset: Index of the first record wanted
            page_size: Maximum records per page

        Returns:
            PageRequest with URL and query parameters
        """
        ...
