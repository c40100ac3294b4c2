"""Unit tests for the CLI."""

import json
from unittest.mock import MagicMock, patch

from .cli import main
from .models import ActionKind, ContextAction, IconKind, LauncherResult
from .settings import Settings

RESULT = LauncherResult(
    title="octocat/Spoon-Knife",
    subtitle="This repo is for demonstration purposes only.",
    icon=IconKind.FORK,
    score=42,
    highlights=(8, 9, 10),
    url="https://github.com/octocat/Spoon-Knife",
    query_text="/spo",
)


def describe_main():
    def _run(argv, results):
        plugin = MagicMock()
        plugin.query.side_effect = [results, []]
        plugin.context_menu.return_value = [
            ContextAction(ActionKind.OPEN_ISSUES, "Open issues", f"{RESULT.url}/issues", "Ctrl+I"),
        ]
        with patch("github_repo_launcher.plugin.GitHubRepoPlugin", return_value=plugin) as cls, patch(
            "github_repo_launcher.settings.get_settings", return_value=Settings(_env_file=None)
        ):
            main(argv)
        return plugin, cls

    def it_runs_both_query_paths(capsys):
        plugin, _ = _run(["query", "/spo"], [RESULT])

        assert [c.args for c in plugin.query.call_args_list] == [("/spo",), ("/spo",)]
        assert plugin.query.call_args_list[1].kwargs == {"delayed": True}
        out = capsys.readouterr().out
        assert "octocat/Spoon-Knife" in out
        assert "demonstration" in out
        plugin.close.assert_called_once()

    def it_prints_json_with_actions(capsys):
        _run(["query", "/spo", "--json", "--actions"], [RESULT])

        payload = json.loads(capsys.readouterr().out)
        assert payload[0]["title"] == "octocat/Spoon-Knife"
        assert payload[0]["icon"] == "Fork.png"
        assert payload[0]["highlights"] == [8, 9, 10]
        assert payload[0]["actions"][0]["kind"] == "open_issues"

    def it_overrides_default_users_and_tokens():
        _, cls = _run(["query", "/spo", "--default-user", "octocat", "--token", "tok-1"], [])

        settings = cls.call_args.kwargs["settings"]
        assert settings.default_users == ["octocat"]
        assert settings.auth_tokens == ["tok-1"]

    def it_prints_help_without_a_command(capsys):
        main([])
        assert "query" in capsys.readouterr().out
