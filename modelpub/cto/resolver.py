"""Download external models referenced by `import ... from <uri>`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Set
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger
from .errors import ModelResolutionError

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..stores import ModelCache


@dataclass
class FetchRequest:
    """Represents one download of an external model."""

    uri: str
    timeout: float


class ModelResolver:
    """Fetches model text for a URI, consulting an optional on-disk cache."""

    DEFAULT_TIMEOUT = 30.0
    USER_AGENT = "modelpub-resolver"

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        cache: "ModelCache | None" = None,
        fetcher: Callable[[FetchRequest], str] | None = None,
    ) -> None:
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.cache = cache
        self._fetcher = fetcher or self._urllib_fetcher
        self.logger = get_logger("resolver")
        # Every URI asked for since construction, cached or not.
        self.requested: Set[str] = set()

    def __call__(self, uri: str) -> str:
        return self.resolve(uri)

    def resolve(self, uri: str) -> str:
        self.requested.add(uri)
        if self.cache is not None:
            cached = self.cache.get(uri)
            if cached is not None:
                self.logger.debug("Using cached model for %s", uri)
                return cached

        self.logger.debug("Downloading external model %s", uri)
        text = self._fetcher(FetchRequest(uri=uri, timeout=self.timeout))
        if self.cache is not None:
            self.cache.store(uri, text)
            self.cache.persist()
        return text

    @classmethod
    def _urllib_fetcher(cls, request: FetchRequest) -> str:
        http_request = Request(
            request.uri, headers={"Accept": "text/plain", "User-Agent": cls.USER_AGENT}
        )
        try:
            with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            raise ModelResolutionError(
                f"Download of {request.uri} failed with status {exc.code}: {exc.reason}",
                uri=request.uri,
            ) from exc
        except URLError as exc:
            raise ModelResolutionError(
                f"Download of {request.uri} failed: {exc.reason}", uri=request.uri
            ) from exc
        except (OSError, ValueError) as exc:
            raise ModelResolutionError(
                f"Download of {request.uri} failed: {exc}", uri=request.uri
            ) from exc

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ModelResolutionError(
                f"Model downloaded from {request.uri} is not valid UTF-8", uri=request.uri
            ) from exc


__all__ = ["FetchRequest", "ModelResolver"]
