"""Unit tests for the local scheduled runner."""

import os
from unittest.mock import patch

import pytest

from rss_slack_bot.main import main


class TestMainUnit:
    """Unit tests for the rss-slack-bot command."""

    def test_once_runs_a_single_pass(self):
        env = {"RSS_FEED_URLS": "https://a.example.com/feed"}
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch("rss_slack_bot.main.execute", return_value={"errors": []}) as mock_execute,
            patch("rss_slack_bot.main.time.sleep") as mock_sleep,
        ):
            assert main(["--once"]) == 0

        assert mock_execute.call_count == 1
        mock_sleep.assert_not_called()

    def test_schedule_runs_again_after_interval(self):
        env = {"RSS_FEED_URLS": "https://a.example.com/feed"}
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch("rss_slack_bot.main.execute", return_value={"errors": []}) as mock_execute,
            patch(
                "rss_slack_bot.main.time.sleep", side_effect=[None, KeyboardInterrupt]
            ) as mock_sleep,
        ):
            try:
                main(["--interval-hours", "0.5"])
            except KeyboardInterrupt:
                pass

        assert mock_execute.call_count == 2
        assert mock_sleep.call_args_list[0].args[0] == 1800

    def test_configuration_error_exits_with_status_1(self, tmp_path):
        env = {"FEEDS_FILE": str(tmp_path / "missing.json")}
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch("rss_slack_bot.main.execute") as mock_execute,
        ):
            assert main(["--once"]) == 1

        mock_execute.assert_not_called()

    def test_failed_scheduled_pass_does_not_stop_the_loop(self):
        env = {"RSS_FEED_URLS": "https://a.example.com/feed"}
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch(
                "rss_slack_bot.main.execute",
                side_effect=[
                    {"errors": []},
                    RuntimeError("Failed to retrieve secret slack-webhook"),
                    {"errors": []},
                ],
            ) as mock_execute,
            patch(
                "rss_slack_bot.main.time.sleep",
                side_effect=[None, None, KeyboardInterrupt],
            ),
        ):
            with pytest.raises(KeyboardInterrupt):
                main(["--interval-hours", "1"])

        assert mock_execute.call_count == 3

    def test_initial_run_failure_exits_with_status_1(self):
        env = {"RSS_FEED_URLS": "https://a.example.com/feed"}
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch(
                "rss_slack_bot.main.execute",
                side_effect=RuntimeError("Failed to retrieve secret slack-webhook"),
            ),
            patch("rss_slack_bot.main.time.sleep") as mock_sleep,
        ):
            assert main([]) == 1

        mock_sleep.assert_not_called()

    @pytest.mark.parametrize(
        ("env_value", "argv"),
        [("abc", ["--once"]), ("6", ["--once", "--interval-hours", "0"])],
    )
    def test_invalid_interval_exits_with_status_1(self, env_value, argv):
        env = {
            "RSS_FEED_URLS": "https://a.example.com/feed",
            "SCHEDULE_INTERVAL_HOURS": env_value,
        }
        with (
            patch.dict(os.environ, env, clear=True),
            patch("rss_slack_bot.main.load_dotenv"),
            patch("rss_slack_bot.main.execute") as mock_execute,
        ):
            assert main(argv) == 1

        mock_execute.assert_not_called()
