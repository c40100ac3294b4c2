"""Interpret raw launcher input as a repository query."""

from collections.abc import Sequence

from .models import DefaultUserShorthand, Empty, ExplicitUserRepo, FullTextSearch, QueryIntent


class ConfigurationMissingError(Exception):
    """Shorthand `/repo` form used with no default user configured."""


def plan(raw_input: str, default_users: Sequence[str]) -> QueryIntent:
    """Decide what `raw_input` asks for.

    - empty or whitespace: Empty
    - no slash: FullTextSearch (the host runs it after its debounce delay)
    - leading slash: DefaultUserShorthand, which needs a default user
    - `user/fragment`: ExplicitUserRepo, split on the first slash
    """
    if not raw_input or not raw_input.strip():
        return Empty()
    raw_input = raw_input.lstrip()

    if "/" not in raw_input:
        return FullTextSearch(raw_input)

    if raw_input.startswith("/"):
        if not default_users:
            raise ConfigurationMissingError("No default user configured")
        return DefaultUserShorthand(raw_input[1:])

    user, target = raw_input.split("/", 1)
    return ExplicitUserRepo(user=user.strip(), target=target)
