"""Async GitHub client for repository listings and raw file content.

The analysis pipeline needs two things from the remote repository: the
recursive tree listing (to resolve the faulty file) and the text of one file
(to build code context). Both calls either return a value or raise
``RepositoryFetchError``; callers decide how to degrade.

Example:
    ```python
    async with GitHubRepository("https://github.com/acme/app/tree/main") as repo:
        tree = await repo.fetch_tree()
        content = await repo.fetch_file_content("force-app/main/default/classes/Foo.cls")
    ```
"""

from __future__ import annotations

import logging
import re
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

import httpx

from error_analyzer import config
from error_analyzer.models import RepositoryEntry, RepositoryInfo

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

REPO_URL_PATTERN = re.compile(r'github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/tree/([^/]+))?/?$')


class RepositoryFetchError(Exception):
    """Raised when the tree listing or a file cannot be retrieved."""


def parse_repo_url(url: str, default_branch: str = config.DEFAULT_BRANCH) -> RepositoryInfo:
    """Parse `https://github.com/<owner>/<repo>[/tree/<branch>]`.

    Raises:
        ValueError: If the URL is not a GitHub repository URL
    """
    match = REPO_URL_PATTERN.search(url.strip()) if url else None
    if not match:
        raise ValueError(f"Invalid GitHub repository URL: {url!r}")
    return RepositoryInfo(
        owner=match.group(1),
        name=match.group(2),
        branch=match.group(3) or default_branch
    )


class FileContentCache:
    """Maps file path to content with insert-if-absent semantics."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def put_if_absent(self, key: str, content: str) -> str:
        """Store content unless the key exists; return the stored value."""
        with self._lock:
            return self._entries.setdefault(key, content)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class GitHubRepository:
    """Fetches tree listings and file content for one repository branch."""

    def __init__(
        self,
        repo_url: str,
        token: Optional[str] = config.GITHUB_TOKEN,
        cache: Optional[FileContentCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        api_url: str = config.GITHUB_API_URL,
        raw_url: str = config.GITHUB_RAW_URL,
        timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.info = parse_repo_url(repo_url)
        self.cache = cache if cache is not None else FileContentCache()
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._raw_url = raw_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def tree_url(self) -> str:
        info = self.info
        return f"{self._api_url}/repos/{info.owner}/{info.name}/git/trees/{info.branch}?recursive=1"

    def raw_file_url(self, path: str) -> str:
        info = self.info
        return f"{self._raw_url}/{info.owner}/{info.name}/{info.branch}/{path.lstrip('/')}"

    async def __aenter__(self) -> GitHubRepository:
        self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_tree(self) -> List[RepositoryEntry]:
        """Fetch the recursive tree listing of the branch.

        Raises:
            RepositoryFetchError: On transport errors, non-200 responses or
                an unexpected payload
        """
        response = await self._get(self.tree_url, headers={"Accept": "application/vnd.github.v3+json"})
        try:
            payload = response.json()
            items = payload["tree"]
        except (ValueError, KeyError, TypeError) as exc:
            raise RepositoryFetchError(f"Unexpected tree payload from GitHub: {exc}") from exc

        if payload.get("truncated"):
            logger.warning("GitHub tree listing for %s/%s is truncated", self.info.owner, self.info.name)

        entries = [
            RepositoryEntry(path=item["path"], type=item.get("type", "blob"))
            for item in items
            if isinstance(item, dict) and item.get("path")
        ]
        logger.debug("Fetched %d tree entries from %s/%s", len(entries), self.info.owner, self.info.name)
        return entries

    async def fetch_file_content(self, path: str) -> str:
        """Fetch one file's text, memoised in the cache.

        Raises:
            RepositoryFetchError: If the file cannot be retrieved
        """
        cached = self.cache.get(path)
        if cached is not None:
            logger.debug("Cache hit for %s", path)
            return cached

        response = await self._get(self.raw_file_url(path))
        return self.cache.put_if_absent(path, response.text)

    async def _get(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        client = self._ensure_client()
        request_headers = {"User-Agent": "Error-Analyzer-Python"}
        if self._token:
            request_headers["Authorization"] = f"Bearer {self._token}"
        if headers:
            request_headers.update(headers)

        try:
            response = await client.get(url, headers=request_headers)
        except httpx.HTTPError as exc:
            raise RepositoryFetchError(f"Request to {url} failed: {exc}") from exc

        if response.status_code != 200:
            raise RepositoryFetchError(
                f"GitHub returned status {response.status_code} for {url}: {response.text[:200]}"
            )
        return response

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds))
            self._owns_client = True
        return self._client
