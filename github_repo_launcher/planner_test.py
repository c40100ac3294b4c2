"""Unit tests for input planning."""

import pytest

from .models import DefaultUserShorthand, Empty, ExplicitUserRepo, FullTextSearch
from .planner import ConfigurationMissingError, plan


def describe_plan():
    def it_treats_blank_input_as_empty():
        assert plan("", []) == Empty()
        assert plan("   ", ["alice"]) == Empty()

    def it_requires_a_default_user_for_the_shorthand():
        with pytest.raises(ConfigurationMissingError):
            plan("/foo", [])

    def it_plans_the_shorthand():
        assert plan("/foo", ["alice"]) == DefaultUserShorthand("foo")
        assert plan("/", ["alice"]) == DefaultUserShorthand("")

    def it_splits_explicit_user_and_repo():
        assert plan("alice/foo", ["bob"]) == ExplicitUserRepo("alice", "foo")
        assert plan("alice/", []) == ExplicitUserRepo("alice", "")

    def it_splits_on_the_first_slash_only():
        assert plan("alice/foo/bar", []) == ExplicitUserRepo("alice", "foo/bar")

    def it_ignores_whitespace_around_the_user():
        assert plan(" alice/foo", []) == ExplicitUserRepo("alice", "foo")
        assert plan("alice /foo", []) == ExplicitUserRepo("alice", "foo")

    def it_plans_the_shorthand_after_leading_whitespace():
        assert plan("  /foo", ["alice"]) == DefaultUserShorthand("foo")

    def it_searches_input_without_a_slash():
        assert plan("foobar", ["alice"]) == FullTextSearch("foobar")
        assert plan("linux kernel", []) == FullTextSearch("linux kernel")
