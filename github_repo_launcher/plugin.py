"""Launcher adapter: turns host queries into ranked repository results."""

import logging
import threading
import webbrowser
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from .cache import KeyedCache
from .coordinator import SEARCH_STREAM, USER_REPOS_STREAM, CancelToken, RequestCoordinator
from .fuzzy import rank
from .github import GitHubClient
from .models import (
    GITHUB_WEB_URL,
    ActionKind,
    ContextAction,
    DefaultUserShorthand,
    Empty,
    Err,
    ErrorInfo,
    ErrorKind,
    ExplicitUserRepo,
    FetchResult,
    FullTextSearch,
    IconKind,
    LauncherResult,
    Ok,
    Repository,
)
from .planner import ConfigurationMissingError, plan
from .settings import ClientConfig, Settings, get_settings

logger = logging.getLogger(__name__)

MAX_WORKERS = 4


class GitHubRepoPlugin:
    """Owns the client, cache and coordinator for one launcher session.

    `query` serves the immediate keystroke path (empty input, `/repo` and
    `owner/repo`); `query(..., delayed=True)` serves the debounced full-text
    search. Neither raises: failures come back as pseudo-results.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: GitHubClient | None = None,
        cache: KeyedCache | None = None,
        coordinator: RequestCoordinator | None = None,
        opener: Callable[[str], bool] = webbrowser.open,
        copier: Callable[[str], None] | None = None,
        max_workers: int = MAX_WORKERS,
    ):
        self._client = client or GitHubClient()
        self._cache = cache or KeyedCache()
        self._coordinator = coordinator or RequestCoordinator()
        self._opener = opener
        self._copier = copier
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gh-repo")
        self._config_lock = threading.Lock()
        self._config = ClientConfig.from_settings(settings if settings is not None else get_settings())

    @property
    def config(self) -> ClientConfig:
        return self._config

    def update_settings(self, settings: Settings) -> None:
        """Swap in a new config snapshot; requests already issued keep the old one."""
        config = ClientConfig.from_settings(settings)
        with self._config_lock:
            previous = self._config
            self._config = config
        if (previous.tokens, previous.fallback_token, previous.api_url) != (
            config.tokens,
            config.fallback_token,
            config.api_url,
        ):
            logger.info("credentials or API URL changed, clearing repository cache")
            self._cache.clear()

    def query(self, raw_input: str, delayed: bool = False) -> list[LauncherResult]:
        config = self._config
        try:
            intent = plan(raw_input, config.default_users)
        except ConfigurationMissingError:
            return [] if delayed else [_configuration_missing()]

        match intent:
            case Empty():
                return [] if delayed else [_open_github()]
            case FullTextSearch(raw_query=search):
                return self._search(search, config) if delayed else []
            case DefaultUserShorthand(target=target):
                return [] if delayed else self._browse(
                    config.default_users, target, raw_input, config, authenticated=True
                )
            case ExplicitUserRepo(user=user, target=target):
                return [] if delayed else self._browse((user,), target, raw_input, config)

    def _browse(
        self,
        users: Sequence[str],
        target: str,
        raw_input: str,
        config: ClientConfig,
        authenticated: bool = False,
    ) -> list[LauncherResult]:
        result = self._coordinator.issue(
            USER_REPOS_STREAM,
            lambda token: self._collect(users, config, token, authenticated),
        )
        match result:
            case Err(error=error) if error.kind is ErrorKind.CANCELLED:
                return []
            case Err(error=error):
                return [_error_result(error, raw_input)]
            case Ok(repositories=repositories):
                return _rank_repositories(repositories, target, raw_input)

    def _collect(
        self,
        users: Sequence[str],
        config: ClientConfig,
        token: CancelToken,
        authenticated: bool = False,
    ) -> FetchResult:
        """Fetch every user's repositories through the cache and merge them in user order."""
        futures = [
            self._executor.submit(self._user_repositories, user, config, token, authenticated)
            for user in dict.fromkeys(users)
        ]
        merged: list[Repository] = []
        for future in futures:
            match future.result():
                case Ok(repositories=repositories):
                    merged.extend(repositories)
                case Err(error=error) if error.kind is ErrorKind.CANCELLED:
                    continue
                case Err(error=error):
                    merged.append(Repository.placeholder(error))
        token.raise_if_cancelled()
        return Ok(tuple(merged))

    def _user_repositories(
        self,
        user: str,
        config: ClientConfig,
        token: CancelToken,
        authenticated: bool = False,
    ) -> FetchResult:
        """Owner listing through the cache.

        `authenticated` (default-user shorthand only) lets a user with their own
        token list through `/user/repos`, which also returns private and
        organization repositories; it is cached apart from the public listing.
        """
        own_token = authenticated and config.owns_token(user)
        key = f"{user.lower()}:own" if own_token else user.lower()
        return self._cache.get_or_fetch(
            key,
            lambda: self._client.fetch_user_repositories(
                user,
                page_size=config.page_size,
                credential=config.credential_for(user),
                token=token,
                api_url=config.api_url,
                own_token=own_token,
            ),
            token,
        )

    def _search(self, search: str, config: ClientConfig) -> list[LauncherResult]:
        result = self._coordinator.issue(
            SEARCH_STREAM,
            lambda token: self._client.fetch_search_repositories(
                search,
                page_size=config.page_size,
                credential=config.credential_for(None),
                token=token,
                api_url=config.api_url,
            ),
        )
        match result:
            case Err(error=error) if error.kind is ErrorKind.CANCELLED:
                return []
            case Err(error=error):
                return [_error_result(error, search)]
            case Ok(repositories=repositories):
                # Already ordered by stars; keep that order
                total = len(repositories)
                return [
                    _repository_result(repo, search, score=total - i)
                    for i, repo in enumerate(repositories)
                ]

    def cancel(self) -> None:
        """The user moved on: drop whatever is still in flight."""
        self._coordinator.cancel_all()

    def context_menu(self, result: LauncherResult) -> list[ContextAction]:
        if result.url is None or result.icon is IconKind.GITHUB:
            return []
        url = result.url
        return [
            ContextAction(ActionKind.COPY_LINK, "Copy link", url, shortcut="Ctrl+C"),
            ContextAction(ActionKind.OPEN_ISSUES, "Open issues", f"{url}/issues", shortcut="Ctrl+I"),
            ContextAction(ActionKind.OPEN_PULLS, "Open pull requests", f"{url}/pulls", shortcut="Ctrl+P"),
        ]

    def open(self, result: LauncherResult) -> bool:
        if result.url is None:
            return True
        return self._open_url(result.url)

    def perform(self, action: ContextAction) -> bool:
        if action.kind is ActionKind.COPY_LINK:
            if self._copier is None:
                logger.warning("no clipboard available to copy %s", action.url)
                return False
            self._copier(action.url)
            return True
        return self._open_url(action.url)

    def _open_url(self, url: str) -> bool:
        if not self._opener(url):
            logger.error("failed to open %s in the default browser", url)
            return False
        return True

    def close(self) -> None:
        self._coordinator.cancel_all()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._client.close()


def _rank_repositories(
    repositories: Sequence[Repository],
    target: str,
    raw_input: str,
) -> list[LauncherResult]:
    """Error placeholders first, then de-duplicated repositories ranked against `target`."""
    errors = [
        _placeholder_result(repo, raw_input) for repo in repositories if repo.is_placeholder
    ]
    seen: set[str] = set()
    candidates = []
    for repo in repositories:
        if repo.is_placeholder or repo.full_name.lower() in seen:
            continue
        seen.add(repo.full_name.lower())
        candidates.append(repo)

    ranked = []
    for repo, match in rank(target, candidates, key=lambda r: r.name):
        # Matching ran on the bare name; highlights index into the full title
        offset = len(repo.owner) + 1
        ranked.append(
            _repository_result(
                repo,
                raw_input,
                score=match.score,
                highlights=tuple(pos + offset for pos in match.highlight_positions),
            )
        )
    return errors + ranked


def _repository_result(
    repo: Repository,
    query_text: str,
    score: int = 0,
    highlights: tuple[int, ...] = (),
) -> LauncherResult:
    return LauncherResult(
        title=repo.full_name,
        subtitle=repo.description,
        icon=IconKind.FORK if repo.is_fork else IconKind.REPO,
        score=score,
        highlights=highlights,
        url=repo.url,
        query_text=query_text,
    )


def _placeholder_result(repo: Repository, query_text: str) -> LauncherResult:
    return LauncherResult(
        title=repo.full_name,
        subtitle=repo.description,
        icon=IconKind.REPO,
        query_text=query_text,
    )


def _error_result(error: ErrorInfo, query_text: str) -> LauncherResult:
    return _placeholder_result(Repository.placeholder(error), query_text)


def _open_github() -> LauncherResult:
    return LauncherResult(
        title="Open GitHub",
        subtitle=f"Open {GITHUB_WEB_URL} in the default browser",
        icon=IconKind.GITHUB,
        url=GITHUB_WEB_URL,
    )


def _configuration_missing() -> LauncherResult:
    return LauncherResult(
        title="Default user not set",
        subtitle="Configure a default GitHub user in the plugin settings to use the /repo form",
        icon=IconKind.GITHUB,
    )
