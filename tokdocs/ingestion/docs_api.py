"""Client for the vendor documentation API with retries and caching.

The API serves a documentation tree and individual markdown nodes. Every
response is wrapped in an envelope ``{"code": int, "msg": str, "data": ...}``
where a non-zero ``code`` signals an application-level error.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

# Constants
DEFAULT_BASE_URL = "https://business-api.tiktok.com/gateway/api/doc/client"
DEFAULT_LANGUAGE = "ENGLISH"
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 2
CACHE_DEFAULT_TTL = 300  # 5 minutes
MAX_RATE_LIMIT_RETRIES = 3

TREE_ENDPOINT = "platform/tree/get/"
NODE_ENDPOINT = "node/get/"

MARKDOWN_NODE_TYPE = "MARKDOWN"

# Error messages
MSG_API_ERROR = "API returned error: {msg}"
MSG_RATE_LIMIT_EXCEEDED = "Rate limit exceeded. Waiting {wait_time}s"
MSG_REQUEST_FAILED = "Request failed after {attempts} attempts: {error}"
MSG_INVALID_RESPONSE = "Invalid response from docs API: {error}"


class DocsAPIError(Exception):
    """Raised for documentation API errors."""


class RateLimitError(DocsAPIError):
    """Raised when the API keeps answering 429."""


@dataclass
class DocNode:
    """One node of the documentation tree."""

    doc_id: int
    title: str
    parent_id: int = 0
    status: bool = True
    type: str = MARKDOWN_NODE_TYPE
    child_docs: list["DocNode"] = field(default_factory=list)

    @property
    def is_markdown(self) -> bool:
        return self.type == MARKDOWN_NODE_TYPE

    @property
    def has_children(self) -> bool:
        return bool(self.child_docs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DocNode":
        """Build a node (and its subtree) from the API JSON."""
        return cls(
            doc_id=int(data["doc_id"]),
            title=str(data.get("title", "")),
            parent_id=int(data.get("parent_id") or 0),
            status=bool(data.get("status", True)),
            type=str(data.get("type", MARKDOWN_NODE_TYPE)),
            child_docs=[cls.from_dict(child) for child in data.get("child_docs") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "title": self.title,
            "parent_id": self.parent_id,
            "status": self.status,
            "type": self.type,
            "child_docs": [child.to_dict() for child in self.child_docs],
        }


@dataclass
class DocTree:
    """Documentation tree returned by the tree endpoint."""

    platform_name: str
    main_language: str
    nodes: list[DocNode] = field(default_factory=list)


@dataclass
class DocContent:
    """Title and markdown body of one documentation node."""

    title: str
    content: str


class CacheEntry:
    """Represents a cached API response."""

    def __init__(self, data: Any, ttl: int = CACHE_DEFAULT_TTL):
        """Initialize cache entry.

        Args:
            data: Data to cache
            ttl: Time to live in seconds
        """
        self.data = data
        self.expires_at = datetime.now(tz=timezone.utc) + timedelta(seconds=ttl)

    def is_expired(self) -> bool:
        """Check if cache entry is expired."""
        return datetime.now(tz=timezone.utc) > self.expires_at


class DocsAPIClient:
    """Documentation API client with retries, rate-limit handling and caching."""

    def __init__(
        self,
        identify_key: str,
        base_url: str = DEFAULT_BASE_URL,
        language: str = DEFAULT_LANGUAGE,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        logger: logging.Logger | None = None,
    ):
        """Initialize the client.

        Args:
            identify_key: Documentation platform identify key
            base_url: Base URL of the documentation API
            language: Default document language
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for 5xx responses
            backoff_factor: Backoff factor for exponential backoff
            logger: Logger instance
        """
        self.identify_key = identify_key
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        self._cache: dict[str, CacheEntry] = {}

    def _get_cache_key(self, endpoint: str, params: dict | None = None) -> str:
        param_str = ""
        if params:
            param_str = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
        return f"{endpoint}?{param_str}" if param_str else endpoint

    def _get_from_cache(self, cache_key: str) -> Any | None:
        entry = self._cache.get(cache_key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[cache_key]
            self.logger.debug("Cache expired: %s", cache_key)
            return None
        self.logger.debug("Cache hit: %s", cache_key)
        return entry.data

    def clear_cache(self) -> None:
        """Clear all cached data."""
        self._cache.clear()
        self.logger.info("Cache cleared")

    def _request(self, endpoint: str, params: dict[str, str], attempt: int = 0) -> Any:
        """GET an endpoint and unwrap the response envelope.

        Args:
            endpoint: Endpoint path relative to the base URL
            params: Query parameters (identify key is added here)
            attempt: Number of 429 retries already made

        Returns:
            The envelope's ``data`` member

        Raises:
            DocsAPIError: On transport errors, invalid JSON or non-zero code
            RateLimitError: If rate limiting persists
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = {**params, "identify_key": self.identify_key}

        try:
            response = self.session.get(url, params=query, timeout=self.timeout)

            if response.status_code == 429:
                if attempt >= MAX_RATE_LIMIT_RETRIES:
                    msg = f"Rate limit persisted after {attempt} retries"
                    raise RateLimitError(msg)
                wait_time = int(response.headers.get("Retry-After", "60"))
                self.logger.warning(MSG_RATE_LIMIT_EXCEEDED.format(wait_time=wait_time))
                time.sleep(wait_time)
                return self._request(endpoint, params, attempt + 1)

            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            adapter = self.session.adapters["https://"]
            max_retries = getattr(adapter, "max_retries", None)
            attempts = max_retries.total + 1 if max_retries else 1
            error_msg = MSG_REQUEST_FAILED.format(attempts=attempts, error=str(e))
            self.logger.exception(error_msg)
            raise DocsAPIError(error_msg) from e
        except ValueError as e:
            error_msg = MSG_INVALID_RESPONSE.format(error=str(e))
            self.logger.exception(error_msg)
            raise DocsAPIError(error_msg) from e

        if not isinstance(payload, dict) or "code" not in payload:
            raise DocsAPIError(MSG_INVALID_RESPONSE.format(error="missing response envelope"))
        if payload["code"] != 0:
            raise DocsAPIError(MSG_API_ERROR.format(msg=payload.get("msg", "unknown error")))
        return payload.get("data") or {}

    def get(self, endpoint: str, params: dict[str, str], use_cache: bool = True) -> Any:
        """GET with response caching.

        Args:
            endpoint: Endpoint path
            params: Query parameters
            use_cache: Whether to serve and store cached responses

        Returns:
            Unwrapped response data
        """
        cache_key = self._get_cache_key(endpoint, params)
        if use_cache:
            cached = self._get_from_cache(cache_key)
            if cached is not None:
                return cached

        data = self._request(endpoint, params)

        if use_cache:
            self._cache[cache_key] = CacheEntry(data)
        return data

    def get_doc_tree(self, language: str | None = None, use_cache: bool = True) -> DocTree:
        """Fetch the documentation tree (titles and structure, no content).

        Args:
            language: Document language (defaults to the client language)
            use_cache: Whether to use caching

        Returns:
            DocTree with the top-level nodes
        """
        data = self.get(
            TREE_ENDPOINT,
            {"language": language or self.language, "is_need_content": "false"},
            use_cache=use_cache,
        )
        return DocTree(
            platform_name=str(data.get("doc_platform_name", "")),
            main_language=str(data.get("main_language", language or self.language)),
            nodes=[DocNode.from_dict(node) for node in data.get("primary_doc_list") or []],
        )

    def get_doc_node(
        self,
        doc_id: int | str,
        language: str | None = None,
        include_content: bool = True,
        use_cache: bool = True,
    ) -> DocContent:
        """Fetch one documentation node.

        Args:
            doc_id: Document ID
            language: Document language (defaults to the client language)
            include_content: Ask the API to include the markdown body
            use_cache: Whether to use caching

        Returns:
            DocContent with the node title and markdown body
        """
        params = {"language": language or self.language, "doc_id": str(doc_id)}
        if include_content:
            params["is_need_content"] = "true"
        data = self.get(NODE_ENDPOINT, params, use_cache=use_cache)
        return DocContent(title=str(data.get("title", "")), content=str(data.get("content", "")))
