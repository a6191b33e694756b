"""Base source interfaces and the adapter failure boundary.

Two roles exist:

    - ``PrimarySource``: a round-based aggregator that can report its latest
      round and any earlier round by id.
    - ``SecondarySource``: a reference-data provider reporting a rate and the
      time it was last updated.

Subclasses implement the ``_fetch_*`` hooks and are free to raise. The
public methods on the base classes never raise: any exception is logged and
turned into ``Quote.failed()``, so the failover logic only classifies data.

.. code-block:: python

    @register_source
    class MyPrimary(PrimarySource):
        name = "mine"

        def _fetch_current(self) -> Quote:
            return Quote(value=..., precision=8, round_id=..., observed_at=...)

        def _fetch_round(self, round_id: int) -> Quote:
            ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

import httpx

from ..Quote import Quote

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Base exception for source adapter errors."""

    pass


class SourceConfigError(SourceError):
    """Raised when a source is misconfigured (e.g., missing contract address)."""

    pass


class SourceHTTPError(SourceError):
    """Raised when an HTTP request to a source fails.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, message: str):
        """Initialize the HTTP error.

        :param status_code: HTTP status code.
        :param message: Error message from response.
        """
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class BaseSource(ABC):
    """Common base of primary and secondary sources.

    :cvar name: Unique identifier used by the registry and in logs.
    :cvar role: Either ``"primary"`` or ``"secondary"``.
    """

    name: ClassVar[str] = ""
    role: ClassVar[str] = ""

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""
        return f"{type(self).__name__}(name={self.name!r})"


class PrimarySource(BaseSource):
    """A round-based price source (e.g., a Chainlink aggregator)."""

    role = "primary"

    @abstractmethod
    def _fetch_current(self) -> Quote:
        """Read the latest round. May raise."""
        pass

    @abstractmethod
    def _fetch_round(self, round_id: int) -> Quote:
        """Read a specific round. May raise."""
        pass

    def current_reading(self) -> Quote:
        """Read the latest round, converting any failure into a failed quote.

        :returns: Latest Quote, or ``Quote.failed()`` if the call failed.
        """
        try:
            return self._fetch_current()
        except Exception as e:
            logger.warning(f"[{self.name}] Failed to read latest round: {e}")
            return Quote.failed()

    def reading_at(self, round_id: int) -> Quote:
        """Read a specific round, converting any failure into a failed quote.

        :param round_id: Round identifier to read.
        :returns: Quote for that round, or ``Quote.failed(round_id)``.
        """
        try:
            return self._fetch_round(round_id)
        except Exception as e:
            logger.warning(f"[{self.name}] Failed to read round {round_id}: {e}")
            return Quote.failed(round_id)

    def latest_rounds(self) -> tuple[Quote, Quote]:
        """Read the latest round and the one immediately before it.

        The previous round is only requested when the latest read succeeded
        with a positive round id.

        :returns: Tuple of (current, previous) quotes.
        """
        current = self.current_reading()
        if not current.retrieved or not current.round_id or current.round_id <= 0:
            return current, Quote.failed()
        return current, self.reading_at(current.round_id - 1)


class SecondarySource(BaseSource):
    """A reference-data price source for a fixed base/quote pair.

    :ivar base: Base currency symbol (lowercase).
    :ivar quote: Quote currency symbol (lowercase).
    """

    role = "secondary"

    def __init__(self, base: str, quote: str) -> None:
        """Initialize the source.

        :param base: Base currency symbol (e.g., "eth").
        :param quote: Quote currency symbol (e.g., "usd").
        """
        self.base = base.lower()
        self.quote = quote.lower()

    @abstractmethod
    def _fetch_reference(self) -> Quote:
        """Read the current reference rate. May raise."""
        pass

    def reference_data(self) -> Quote:
        """Read the reference rate, converting any failure into a failed quote.

        :returns: Quote with the rate, or ``Quote.failed()``.
        """
        try:
            return self._fetch_reference()
        except Exception as e:
            logger.warning(
                f"[{self.name}] Failed to read {self.base}/{self.quote}: {e}"
            )
            return Quote.failed()


class HTTPSourceMixin:
    """Synchronous HTTP helper for sources backed by a web API.

    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar timeout: Request timeout in seconds.
    """

    DEFAULT_TIMEOUT = 10.0

    client: httpx.Client
    timeout: float

    def _get(self, url: str, *, params: dict | list | None = None) -> httpx.Response:
        """Make an HTTP GET request.

        :param url: Request URL.
        :param params: Optional query parameters.
        :returns: httpx.Response object.
        :raises SourceHTTPError: On non-2xx response.
        :raises SourceError: On network/timeout errors.
        """
        try:
            response = self.client.get(url, params=params, timeout=self.timeout)
            if not response.is_success:
                logger.debug(
                    "HTTP GET %s failed with status %s: %s",
                    url,
                    response.status_code,
                    response.text[:200],
                )
                raise SourceHTTPError(response.status_code, response.text[:200])
            return response
        except httpx.TimeoutException as e:
            raise SourceError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise SourceError(f"Request failed: {e}") from e


# Registry of available sources (populated by subclass imports)
SOURCE_REGISTRY: dict[str, type[BaseSource]] = {}


def register_source(cls: type[BaseSource]) -> type[BaseSource]:
    """Decorator to register a source class in the global registry.

    :param cls: Source class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If the source has no name or no role defined.
    """
    if not cls.name:
        raise ValueError(f"Source {cls.__name__} must define a 'name' class variable")
    if cls.role not in ("primary", "secondary"):
        raise ValueError(f"Source {cls.__name__} has invalid role {cls.role!r}")
    SOURCE_REGISTRY[cls.name] = cls
    return cls


def get_source_class(name: str, role: str) -> type[BaseSource]:
    """Look up a registered source class by name and role.

    :param name: Source name (e.g., "chainlink", "band").
    :param role: Expected role, "primary" or "secondary".
    :returns: The source class.
    :raises ValueError: If the name is unknown or registered for another role.
    """
    cls = SOURCE_REGISTRY.get(name)
    if cls is None or cls.role != role:
        available = ", ".join(get_available_sources(role))
        raise ValueError(f"Unknown {role} source '{name}'. Available: {available}")
    return cls


def get_available_sources(role: str | None = None) -> list[str]:
    """Get list of registered source names.

    :param role: Optional role filter.
    :returns: Sorted list of source names.
    """
    return sorted(
        name
        for name, cls in SOURCE_REGISTRY.items()
        if role is None or cls.role == role
    )
