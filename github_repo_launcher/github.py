"""GitHub REST client for the two repository listings the launcher needs."""

import logging
from urllib.parse import quote

import httpx

from .coordinator import CancelToken, error_from_exception
from .models import Err, ErrorKind, FetchResult, Ok, Repository
from .settings import DEFAULT_API_URL, MIN_RESULT_NUMBER

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
USER_AGENT = "github-repo-launcher"
DEFAULT_TIMEOUT = 10.0


class GitHubClient:
    """Thin httpx client; every call returns a FetchResult and never raises.

    Credentials and the API base URL are passed per call so that a settings
    update never changes the headers of a request already on the wire.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )
        self.requests = 0

    def _get(self, url: str, params: dict, credential: str | None, token: CancelToken | None):
        headers = {"Authorization": f"Bearer {credential}"} if credential else {}
        if token is not None:
            token.raise_if_cancelled()
        self.requests += 1
        resp = self._client.get(url, params=params, headers=headers)
        if token is not None:
            token.raise_if_cancelled()
        resp.raise_for_status()
        return resp.json()

    def _fetch(self, what: str, url: str, params: dict, credential, token, items_key=None) -> FetchResult:
        try:
            body = self._get(url, params, credential, token)
            if items_key is not None:
                body = body[items_key]
            if not isinstance(body, list):
                raise TypeError(f"expected a list of repositories, got {type(body).__name__}")
            return Ok(tuple(Repository.from_api(item) for item in body))
        except Exception as e:
            error = error_from_exception(e)
            if error.kind is ErrorKind.CANCELLED:
                logger.debug("%s cancelled", what)
            else:
                logger.error("%s failed: %s", what, error.message)
            return Err(error)

    def fetch_user_repositories(
        self,
        user: str,
        page_size: int = MIN_RESULT_NUMBER,
        credential: str | None = None,
        token: CancelToken | None = None,
        api_url: str = DEFAULT_API_URL,
        own_token: bool = False,
    ) -> FetchResult:
        """List `user`'s repositories, most recently updated first.

        With `own_token` the credential belongs to `user`, so the
        authenticated listing is used and private repositories show up too.
        """
        if own_token and credential:
            url = f"{api_url}/user/repos"
        else:
            url = f"{api_url}/users/{quote(user, safe='')}/repos"
        params = {"sort": "updated", "per_page": page_size}
        return self._fetch(f"repositories of {user}", url, params, credential, token)

    def fetch_search_repositories(
        self,
        query: str,
        page_size: int = MIN_RESULT_NUMBER,
        credential: str | None = None,
        token: CancelToken | None = None,
        api_url: str = DEFAULT_API_URL,
    ) -> FetchResult:
        """Full-text repository search, most starred first."""
        url = f"{api_url}/search/repositories"
        params = {"q": query, "sort": "stars", "order": "desc", "per_page": page_size}
        return self._fetch(f"search for {query!r}", url, params, credential, token, items_key="items")

    def close(self):
        self._client.close()
