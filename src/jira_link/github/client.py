"""GitHub REST client for the pull request conversation.

Two calls are needed by a run: reading every comment on the pull request
(they may reference issues too) and posting the reminder comment. Each
call is a single attempt. An exhausted rate limit is reported as
RateLimitError so the failure message says when the quota resets.

Source:
- src/jira_link/config.py (github_token, github_api_url)
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx


logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """A GitHub call failed.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status, or None when no response arrived.
        response_body: Raw response text.
        request_url: URL of the failed call.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class RateLimitError(GitHubAPIError):
    """The token ran out of API quota.

    Attributes:
        reset_at: Unix time at which the quota is restored.
        retry_after: Seconds until a new attempt may succeed.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


def _int_header(response: httpx.Response, name: str) -> Optional[int]:
    try:
        return int(response.headers[name])
    except (KeyError, ValueError):
        return None


def _rate_limit_error(response: httpx.Response) -> Optional[RateLimitError]:
    """Return a RateLimitError if the response is a quota rejection.

    GitHub answers 429 for secondary limits and 403 with
    ``x-ratelimit-remaining: 0`` for the primary limit.
    """
    exhausted = response.status_code == 403 and (
        _int_header(response, "x-ratelimit-remaining") == 0
    )
    if response.status_code != 429 and not exhausted:
        return None

    reset_at = _int_header(response, "x-ratelimit-reset")
    retry_after = _int_header(response, "retry-after")
    if retry_after is None and reset_at is not None:
        retry_after = max(0, reset_at - int(time.time()))

    return RateLimitError(
        message=(
            f"GitHub API rate limit exceeded, retry in {retry_after}s"
            if retry_after is not None
            else "GitHub API rate limit exceeded"
        ),
        status_code=response.status_code,
        response_body=response.text,
        request_url=str(response.url),
        reset_at=reset_at,
        retry_after=retry_after,
    )


class GitHubClient:
    """Async GitHub REST client authenticated with a token.

    ``base_url`` comes from GITHUB_API_URL, so GitHub Enterprise Server
    works without extra configuration.

    Example:
        >>> async with GitHubClient(token="ghp_xxx") as github:
        ...     comments = await github.list_issue_comments("acme", "widgets", 42)
    """

    # GitHub's maximum page size
    PER_PAGE = 100

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "jira-link/1.0",
        }

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send one request and fail on any non-2xx answer.

        Raises:
            RateLimitError: If the quota is exhausted.
            GitHubAPIError: On transport failures and other error statuses.
        """
        try:
            response = await self.client.request(
                method, path, json=json_data, params=params
            )
        except httpx.RequestError as e:
            logger.error(
                "GitHub request %s %s failed: %s",
                method,
                path,
                e,
                extra={"path": path, "method": method},
            )
            raise GitHubAPIError(
                message=f"GitHub API request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        rate_limited = _rate_limit_error(response)
        if rate_limited is not None:
            logger.warning(
                "GitHub rate limit exhausted",
                extra={
                    "reset_at": rate_limited.reset_at,
                    "retry_after": rate_limited.retry_after,
                },
            )
            raise rate_limited

        if response.is_error:
            logger.error(
                "GitHub %s %s answered %s",
                method,
                path,
                response.status_code,
                extra={
                    "status_code": response.status_code,
                    "response_body": response.text[:500],
                },
            )
            raise GitHubAPIError(
                message=f"GitHub API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.url),
            )

        return response

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        issue_number: int,
    ) -> List[Dict[str, Any]]:
        """All conversation comments of a pull request, oldest first.

        The conversation of a pull request lives on its issue, so this is
        the issue comments endpoint. Pages are followed until GitHub stops
        sending a ``next`` link.
        """
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        comments: List[Dict[str, Any]] = []
        page = 1

        while True:
            response = await self._request(
                "GET", path, params={"per_page": self.PER_PAGE, "page": page}
            )
            batch = response.json()
            comments.extend(batch)
            if len(batch) < self.PER_PAGE or "next" not in response.links:
                break
            page += 1

        logger.debug(
            "Fetched %d comment(s) for #%s",
            len(comments),
            issue_number,
            extra={"repository": f"{owner}/{repo}", "pages": page},
        )
        return comments

    async def create_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> Dict[str, Any]:
        """Post a markdown comment on a pull request.

        Returns:
            The comment object GitHub created.
        """
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            json_data={"body": body},
        )
        comment = response.json()
        logger.info(
            "Commented on %s/%s#%s",
            owner,
            repo,
            issue_number,
            extra={"comment_id": comment.get("id")},
        )
        return comment
