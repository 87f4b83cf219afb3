"""HTTP content fetcher with manual redirect handling and private-source auth."""

from __future__ import annotations

import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from docsync import __version__

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 307, 308})
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = f"docsync/{__version__}"


class FetchErrorKind(enum.Enum):
    AUTH_REQUIRED = "auth_required"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    MALFORMED_REDIRECT = "malformed_redirect"
    HTTP_STATUS = "http_status"
    NETWORK = "network"
    TIMEOUT = "timeout"


class FetchError(Exception):
    """Base class for every way a fetch can fail."""

    kind: FetchErrorKind = FetchErrorKind.NETWORK


class AuthRequiredError(FetchError):
    """A private source was requested without a token."""

    kind = FetchErrorKind.AUTH_REQUIRED


class TooManyRedirectsError(FetchError):
    kind = FetchErrorKind.TOO_MANY_REDIRECTS


class MalformedRedirectError(FetchError):
    """A redirect response carried no ``Location`` header."""

    kind = FetchErrorKind.MALFORMED_REDIRECT


class HttpStatusError(FetchError):
    """Terminal response with a status other than 200."""

    kind = FetchErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, reason: str, url: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"HTTP {status_code}: {reason} for {url}")


class NetworkError(FetchError):
    kind = FetchErrorKind.NETWORK


class RequestTimeoutError(FetchError):
    kind = FetchErrorKind.TIMEOUT


@dataclass(frozen=True)
class FetchResult:
    """Body of a successful GET, after redirects."""

    content: str
    status_code: int
    final_url: str


@dataclass(frozen=True)
class FetchFailure:
    """Failed fetch, returned by :meth:`ContentFetcher.try_fetch`."""

    kind: FetchErrorKind
    message: str


@contextlib.contextmanager
def _translate_errors(url: str, timeout: float) -> Iterator[None]:
    """Map httpx exceptions onto the :class:`FetchError` hierarchy."""
    try:
        yield
    except httpx.TimeoutException as exc:
        msg = f"Request timeout after {timeout:g}s for {url}"
        raise RequestTimeoutError(msg) from exc
    except httpx.TransportError as exc:
        detail = str(exc) or type(exc).__name__
        msg = f"Request error: {detail} for {url}"
        raise NetworkError(msg) from exc
    except httpx.RequestError as exc:
        # Undecodable body and other request-level failures.
        detail = str(exc) or type(exc).__name__
        msg = f"Request error: {detail} for {url}"
        raise NetworkError(msg) from exc
    except httpx.InvalidURL as exc:
        msg = f"Invalid URL {url!r}: {exc}"
        raise NetworkError(msg) from exc


class ContentFetcher:
    """Download remote text content one URL at a time.

    Redirects are followed by hand so that the hop count is bounded and
    every intermediate response is drained before the next request.
    Authentication is attached only for sources marked private, so a
    configured token never reaches hosts serving public content.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        client: httpx.Client | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.token = token or None
        self.user_agent = user_agent
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=False)

    def __enter__(self) -> ContentFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _headers(self, token: str | None, *, is_private: bool) -> dict[str, str]:
        if is_private and token:
            return {
                "Authorization": f"token {token}",
                "User-Agent": self.user_agent,
            }
        return {}

    def fetch(
        self,
        url: str,
        *,
        token: str | None = None,
        is_private: bool = False,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> FetchResult:
        """GET *url*, following up to *max_redirects* redirects.

        Parameters
        ----------
        token:
            Overrides the fetcher's token for this call.
        is_private:
            Send ``Authorization: token ...`` on every hop. Without a
            token the call fails before any request is made.
        timeout:
            Seconds allowed for each hop; the chain as a whole has no
            deadline.

        Raises
        ------
        FetchError
            One of its subclasses, depending on what went wrong.
        """
        token = token or self.token
        if is_private and not token:
            msg = f"GitHub token is required for private repositories ({url})"
            raise AuthRequiredError(msg)

        headers = self._headers(token, is_private=is_private)
        logger.debug(
            "Downloading from %s (private=%s, max_redirects=%d)",
            url,
            is_private,
            max_redirects,
        )

        current = url
        redirects = 0
        while True:
            with _translate_errors(current, timeout):
                request = self._client.build_request(
                    "GET", current, headers=headers, timeout=timeout
                )
                response = self._client.send(request, stream=True)
                try:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            msg = (
                                f"Redirect without location header "
                                f"({response.status_code}) for {current}"
                            )
                            raise MalformedRedirectError(msg)
                        if redirects >= max_redirects:
                            msg = f"Too many redirects (max: {max_redirects}) for {url}"
                            raise TooManyRedirectsError(msg)
                        response.read()
                        redirects += 1
                        next_url = str(response.url.join(location))
                        logger.debug(
                            "Following redirect to %s (status=%d, hop=%d)",
                            next_url,
                            response.status_code,
                            redirects,
                        )
                        current = next_url
                        continue

                    if response.status_code != 200:
                        response.read()
                        raise HttpStatusError(
                            response.status_code, response.reason_phrase, current
                        )

                    body = response.read()
                finally:
                    response.close()

            content = body.decode("utf-8", errors="replace")
            logger.debug("Downloaded %d bytes from %s", len(body), current)
            return FetchResult(content=content, status_code=200, final_url=current)

    def try_fetch(
        self,
        url: str,
        *,
        token: str | None = None,
        is_private: bool = False,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> FetchResult | FetchFailure:
        """Like :meth:`fetch`, but failures come back as :class:`FetchFailure`."""
        try:
            return self.fetch(
                url,
                token=token,
                is_private=is_private,
                max_redirects=max_redirects,
                timeout=timeout,
            )
        except FetchError as exc:
            return FetchFailure(kind=exc.kind, message=str(exc))

    def is_accessible(
        self,
        url: str,
        *,
        is_private: bool = False,
        timeout: float = 10.0,
    ) -> bool:
        """Return True if a HEAD request for *url* answers 200.

        Redirects are not followed: a source that moved counts as
        unreachable so its configured URL gets updated.
        """
        if is_private and not self.token:
            return False
        headers = self._headers(self.token, is_private=is_private)
        try:
            response = self._client.head(
                url, headers=headers, timeout=timeout, follow_redirects=False
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return False
        return response.status_code == 200
