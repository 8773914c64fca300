"""Minimal REST client for the hosting platform (GitHub-compatible API)."""

from __future__ import annotations

import http.client
import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import BaseModel, ValidationError

from ..logging import get_logger
from .schemas import Comment, Fork, Issue, PullCommit, PullRequest, Review

ModelT = TypeVar("ModelT", bound=BaseModel)
Transport = Callable[[str, Mapping[str, str], float], Any]


class PlatformError(RuntimeError):
    """Raised for network failures, HTTP errors and malformed platform payloads."""


class PlatformClient:
    """Fetches repository activity page by page until an empty page is returned."""

    def __init__(
        self,
        repository: str,
        *,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        per_page: int = 100,
        timeout: float = 30.0,
        retries: int = 1,
        transport: Transport | None = None,
    ) -> None:
        if "/" not in repository:
            raise ValueError(f"Repository must be given as owner/name, got {repository!r}")
        self.repository = repository
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self.retries = max(0, retries)
        self._transport = transport or self._urllib_transport
        self.logger = get_logger("ingest.platform")

    def list_issues(self, state: str = "all") -> List[Issue]:
        return self._paginate("issues", Issue, {"state": state})

    def list_issue_comments(self, number: int) -> List[Comment]:
        return self._paginate(f"issues/{number}/comments", Comment)

    def list_pulls(self, state: str = "all") -> List[PullRequest]:
        return self._paginate("pulls", PullRequest, {"state": state})

    def list_reviews(self, number: int) -> List[Review]:
        return self._paginate(f"pulls/{number}/reviews", Review)

    def list_review_comments(self, number: int) -> List[Comment]:
        return self._paginate(f"pulls/{number}/comments", Comment)

    def list_pull_commits(self, number: int) -> List[PullCommit]:
        return self._paginate(f"pulls/{number}/commits", PullCommit)

    def list_forks(self) -> List[Fork]:
        return self._paginate("forks", Fork)

    # ------------------------------------------------------------------
    # Internal helpers

    def _paginate(
        self,
        path: str,
        model: Type[ModelT],
        params: Mapping[str, str] | None = None,
    ) -> List[ModelT]:
        results: List[ModelT] = []
        page = 1
        while True:
            query: Dict[str, Any] = dict(params or {})
            query.update({"per_page": self.per_page, "page": page})
            payload = self._get(path, query)
            if not isinstance(payload, list):
                raise PlatformError(f"Expected a list from {path}, got {type(payload).__name__}")
            if not payload:
                break
            try:
                results.extend(model.model_validate(item) for item in payload)
            except ValidationError as exc:
                raise PlatformError(f"Unexpected payload from {path}: {exc}") from exc
            page += 1
        self.logger.debug("Fetched %d item(s) from %s", len(results), path)
        return results

    def _get(self, path: str, query: Mapping[str, Any]) -> Any:
        url = f"{self.api_url}/repos/{self.repository}/{path}?{urlencode(query)}"
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "distillmeta",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        last_error: PlatformError | None = None
        for attempt in range(self.retries + 1):
            try:
                return self._transport(url, headers, self.timeout)
            except PlatformError as exc:
                last_error = exc
                self.logger.debug("Request %s failed on attempt %d: %s", path, attempt + 1, exc)
        assert last_error is not None
        raise last_error

    @staticmethod
    def _urllib_transport(url: str, headers: Mapping[str, str], timeout: float) -> Any:
        request = Request(url, headers=dict(headers), method="GET")
        try:
            with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise PlatformError(f"Platform request failed with status {exc.code}: {message}") from exc
        except URLError as exc:
            raise PlatformError(f"Platform request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise PlatformError("Platform request timed out") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise PlatformError(f"Platform connection failed: {exc!r}") from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PlatformError("Platform returned invalid JSON") from exc


__all__ = ["PlatformClient", "PlatformError", "Transport"]
