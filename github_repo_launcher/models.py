"""Data models and constants for repository lookup."""

from dataclasses import dataclass, field
from enum import Enum

CACHE_TTL_SECONDS = 60
GITHUB_WEB_URL = "https://github.com"


@dataclass(frozen=True)
class Repository:
    """A repository as returned by the GitHub REST API."""

    full_name: str
    url: str
    description: str = ""
    is_fork: bool = False

    @classmethod
    def from_api(cls, item: dict) -> "Repository":
        # KeyError/TypeError here surface as decode failures
        return cls(
            full_name=item["full_name"],
            url=item["html_url"],
            description=item.get("description") or "",
            is_fork=bool(item.get("fork", False)),
        )

    @classmethod
    def placeholder(cls, error: "ErrorInfo") -> "Repository":
        """Pseudo-repository that carries an error into a result list."""
        return cls(full_name=error.title, url="", description=error.message, is_fork=False)

    @property
    def is_placeholder(self) -> bool:
        return not self.url or self.full_name.count("/") != 1

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        parts = self.full_name.split("/", 1)
        return parts[1] if len(parts) == 2 else parts[0]


class ErrorKind(Enum):
    NETWORK_FAILURE = "NetworkFailure"
    HTTP_STATUS_FAILURE = "HttpStatusFailure"
    DECODE_FAILURE = "DecodeFailure"
    CANCELLED = "Cancelled"
    CONFIGURATION_MISSING = "ConfigurationMissing"


@dataclass(frozen=True)
class ErrorInfo:
    kind: ErrorKind
    message: str
    status_code: int | None = None

    @property
    def title(self) -> str:
        if self.kind is ErrorKind.HTTP_STATUS_FAILURE and self.status_code is not None:
            return f"{self.kind.value}({self.status_code})"
        return self.kind.value


@dataclass(frozen=True)
class Ok:
    repositories: tuple[Repository, ...]


@dataclass(frozen=True)
class Err:
    error: ErrorInfo

    @property
    def cancelled(self) -> bool:
        return self.error.kind is ErrorKind.CANCELLED


FetchResult = Ok | Err

CANCELLED = Err(ErrorInfo(ErrorKind.CANCELLED, "Request was superseded"))


@dataclass(frozen=True)
class MatchResult:
    score: int
    highlight_positions: tuple[int, ...] = ()

    @property
    def matched(self) -> bool:
        return self.score > 0


NO_MATCH = MatchResult(score=0)


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class DefaultUserShorthand:
    target: str


@dataclass(frozen=True)
class ExplicitUserRepo:
    user: str
    target: str


@dataclass(frozen=True)
class FullTextSearch:
    raw_query: str


QueryIntent = Empty | DefaultUserShorthand | ExplicitUserRepo | FullTextSearch


class IconKind(Enum):
    GITHUB = "GitHub.png"
    REPO = "Repo.png"
    FORK = "Fork.png"


@dataclass(frozen=True)
class LauncherResult:
    """One row handed to the host launcher."""

    title: str
    subtitle: str
    icon: IconKind
    score: int = 0
    highlights: tuple[int, ...] = ()
    # Web URL of the repository; None for pseudo-results
    url: str | None = None
    query_text: str = ""


class ActionKind(Enum):
    COPY_LINK = "copy_link"
    OPEN_ISSUES = "open_issues"
    OPEN_PULLS = "open_pulls"


@dataclass(frozen=True)
class ContextAction:
    kind: ActionKind
    title: str
    url: str
    shortcut: str = field(default="", compare=False)
