"""Tests for CLI interface components."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from sitewatch.cli.main import cli, resolve_target, short
from sitewatch.cli.types import CLIContext, CLIError, CommandResult
from sitewatch.monitor import MonitorOrchestrator
from sitewatch.notification import NotifyError
from sitewatch.scraper import compute_fingerprint
from sitewatch.storage import CheckState, StateStore

PAGE_URL = "https://example.com/"
TOPIC = "my-topic"


@pytest.fixture
def cli_runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_orchestrator_factory(fake_site, make_fetcher, make_notifier):
    """Replacement for create_orchestrator talking to the fake site."""

    def factory(settings, state_path=None):
        transport = fake_site.transport()
        return MonitorOrchestrator(
            fetcher=make_fetcher(transport),
            state_store=StateStore(state_path or settings.state.path),
            notifier=make_notifier(transport),
        )

    with patch("sitewatch.cli.main.create_orchestrator", side_effect=factory) as mock:
        yield mock


@pytest.fixture
def monitor_env(monkeypatch):
    monkeypatch.setenv("MONITOR_URL", PAGE_URL)
    monkeypatch.setenv("NTFY_TOPIC", TOPIC)


class TestCheckCommand:
    """Test the check command."""

    def test_first_run(self, cli_runner, fake_orchestrator_factory, monitor_env):
        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 0
        assert f"Checking: {PAGE_URL}" in result.output
        assert "First run - baseline fingerprint stored:" in result.output

    def test_unchanged_then_changed(
        self, cli_runner, fake_orchestrator_factory, fake_site, monitor_env
    ):
        cli_runner.invoke(cli, ["check"])

        unchanged = cli_runner.invoke(cli, ["check"])

        fake_site.html = fake_site.html.replace("Paragraph content.", "Sold out.")
        changed = cli_runner.invoke(cli, ["check"])

        assert unchanged.exit_code == 0
        assert "No change detected (fingerprint:" in unchanged.output
        assert changed.exit_code == 0
        assert "CHANGE DETECTED!" in changed.output
        assert "Previous fingerprint:" in changed.output
        assert "Current fingerprint:" in changed.output
        assert f"Notification sent to topic: {TOPIC}" in changed.output
        assert len(fake_site.notifications) == 1

    def test_arguments_override_environment(
        self, cli_runner, fake_orchestrator_factory, fake_site, tmp_path
    ):
        state_file = tmp_path / "custom" / "state.json"

        result = cli_runner.invoke(
            cli,
            [
                "check",
                "https://example.org/page",
                "--topic",
                "other-topic",
                "--state-file",
                str(state_file),
            ],
        )

        assert result.exit_code == 0
        assert str(fake_site.page_requests[0].url) == "https://example.org/page"
        assert StateStore(state_file).load().url == "https://example.org/page"

    def test_timeout_option(self, cli_runner, monitor_env):
        orchestrator = MagicMock()
        orchestrator.run_once = AsyncMock(
            return_value=MagicMock(
                is_first_run=True, changed=False, current_fingerprint="a" * 32
            )
        )

        with patch("sitewatch.cli.main.create_orchestrator", return_value=orchestrator):
            result = cli_runner.invoke(cli, ["check", "--timeout-ms", "1500"])

        assert result.exit_code == 0
        orchestrator.run_once.assert_awaited_once_with(PAGE_URL, TOPIC, 1500)

    def test_missing_url(self, cli_runner, monkeypatch):
        monkeypatch.setenv("NTFY_TOPIC", TOPIC)

        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "MONITOR_URL environment variable or URL argument is required" in (
            result.output
        )
        assert "Usage: MONITOR_URL=" in result.output
        assert "Usage: MONITOR_URL=" in result.stderr
        assert result.stdout == ""

    def test_missing_topic(self, cli_runner, monkeypatch):
        monkeypatch.setenv("MONITOR_URL", PAGE_URL)

        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "NTFY_TOPIC environment variable" in result.output

    def test_invalid_url(self, cli_runner, fake_orchestrator_factory):
        result = cli_runner.invoke(
            cli, ["check", "ftp://example.com", "--topic", TOPIC]
        )

        assert result.exit_code == 1
        assert "must use HTTP or HTTPS protocol" in result.stderr
        assert "Usage: MONITOR_URL=" in result.stderr
        assert "Usage" not in result.stdout
        fake_orchestrator_factory.assert_not_called()

    def test_fetch_failure(
        self, cli_runner, fake_orchestrator_factory, fake_site, monitor_env
    ):
        fake_site.status_code = 503

        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Monitor failed:" in result.stderr
        assert "HTTP 503: Service Unavailable" in result.stderr
        assert "Monitor failed" not in result.stdout
        assert "Checking: https://example.com/" in result.stdout

    def test_notification_failure(
        self, cli_runner, fake_orchestrator_factory, fake_site, monitor_env
    ):
        cli_runner.invoke(cli, ["check"])
        fake_site.html = fake_site.html.replace("Title", "Other")
        fake_site.ntfy_status_code = 502

        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Monitor failed:" in result.output
        assert "Notification failed: HTTP 502" in result.output

    def test_verbose_prints_outcome(
        self, cli_runner, fake_orchestrator_factory, monitor_env
    ):
        result = cli_runner.invoke(cli, ["--verbose", "check"])

        assert result.exit_code == 0
        assert '"is_first_run": true' in result.output

    def test_invalid_settings(self, cli_runner, monkeypatch):
        monkeypatch.setenv("FETCH_TIMEOUT_MS", "-5")

        result = cli_runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Failed to load settings" in result.output


class TestNotifyTestCommand:
    """Test the test-notify command."""

    @patch("sitewatch.cli.main.NtfyNotifier")
    def test_sends_test_notification(self, mock_notifier_class, cli_runner):
        notifier = mock_notifier_class.return_value
        notifier.send_test_notification = AsyncMock()
        notifier.topic_url.return_value = f"https://ntfy.sh/{TOPIC}"

        result = cli_runner.invoke(cli, ["test-notify", "--topic", TOPIC])

        assert result.exit_code == 0
        assert f"Test notification sent to topic: {TOPIC}" in result.output
        notifier.send_test_notification.assert_awaited_once_with(TOPIC)

    @patch("sitewatch.cli.main.NtfyNotifier")
    def test_uses_topic_from_environment(
        self, mock_notifier_class, cli_runner, monkeypatch
    ):
        monkeypatch.setenv("NTFY_TOPIC", "env-topic")
        notifier = mock_notifier_class.return_value
        notifier.send_test_notification = AsyncMock()
        notifier.topic_url.return_value = "https://ntfy.sh/env-topic"

        result = cli_runner.invoke(cli, ["test-notify"])

        assert result.exit_code == 0
        notifier.send_test_notification.assert_awaited_once_with("env-topic")

    @patch("sitewatch.cli.main.NtfyNotifier")
    def test_failure(self, mock_notifier_class, cli_runner):
        notifier = mock_notifier_class.return_value
        notifier.send_test_notification = AsyncMock(
            side_effect=NotifyError("Notification failed: HTTP 403 - forbidden")
        )

        result = cli_runner.invoke(cli, ["test-notify", "--topic", TOPIC])

        assert result.exit_code == 1
        assert "Notification failed: HTTP 403" in result.output

    def test_missing_topic(self, cli_runner):
        result = cli_runner.invoke(cli, ["test-notify"])

        assert result.exit_code == 1
        assert "NTFY_TOPIC environment variable" in result.output


class TestStateCommand:
    """Test the state command."""

    def test_no_baseline(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            cli, ["state", "--state-file", str(tmp_path / "missing.json")]
        )

        assert result.exit_code == 0
        assert "No baseline stored" in result.output

    def test_shows_baseline(self, cli_runner, state_path):
        StateStore(state_path).save(
            CheckState(
                fingerprint="5d41402abc4b2a76b9719d911017c592",
                last_checked_at=datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc),
                url=PAGE_URL,
            )
        )

        result = cli_runner.invoke(cli, ["state", "--state-file", str(state_path)])

        assert result.exit_code == 0
        assert "Stored baseline" in result.output
        assert "5d41402abc4b2a76b9719d911017c592" in result.output
        assert "2024-01-15T14:30:00+00:00" in result.output


class TestNormalizeCommand:
    """Test the normalize command."""

    def test_prints_canonical_text_and_fingerprint(self, cli_runner, tmp_path):
        page = tmp_path / "page.html"
        page.write_text(
            "<div>\n  <script>x()</script>\n  <p>Hello [world]</p>\n</div>",
            encoding="utf-8",
        )

        result = cli_runner.invoke(cli, ["normalize", str(page)])

        canonical = "<div><p>Hello [world]</p></div>"
        assert result.exit_code == 0
        assert canonical in result.output
        assert f"Fingerprint (md5): {compute_fingerprint(canonical)}" in result.output

    def test_hash_type_option(self, cli_runner, tmp_path):
        page = tmp_path / "page.html"
        page.write_text("<p>Hello</p>", encoding="utf-8")

        result = cli_runner.invoke(
            cli, ["normalize", str(page), "--hash-type", "sha256"]
        )

        assert result.exit_code == 0
        assert compute_fingerprint("<p>Hello</p>", "sha256") in result.output

    def test_rules_file_option(self, cli_runner, tmp_path):
        page = tmp_path / "page.html"
        page.write_text("<p>Seen 1705329000</p>", encoding="utf-8")
        rules = tmp_path / "rules.yaml"
        rules.write_text("disable: [epoch-timestamps]\n", encoding="utf-8")

        result = cli_runner.invoke(
            cli, ["normalize", str(page), "--rules-file", str(rules)]
        )

        assert result.exit_code == 0
        assert "<p>Seen 1705329000</p>" in result.output

    def test_invalid_rules_file(self, cli_runner, tmp_path):
        page = tmp_path / "page.html"
        page.write_text("<p>Hello</p>", encoding="utf-8")
        rules = tmp_path / "rules.yaml"
        rules.write_text("disable: [no-such-rule]\n", encoding="utf-8")

        result = cli_runner.invoke(
            cli, ["normalize", str(page), "--rules-file", str(rules)]
        )

        assert result.exit_code == 1
        assert "Unknown noise rules" in result.output

    def test_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["normalize", str(tmp_path / "nope.html")])

        assert result.exit_code == 2


class TestRulesCommand:
    """Test the rules command."""

    def test_lists_builtin_rules(self, cli_runner):
        result = cli_runner.invoke(cli, ["rules"])

        assert result.exit_code == 0
        assert "script-blocks" in result.output
        assert "collapse-whitespace" in result.output
        assert result.output.index("script-blocks") < result.output.index("trim")

    def test_lists_custom_rules(self, cli_runner, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text(
            "rules:\n  - name: banner-ads\n    category: tracking\n"
            "    pattern: '<aside class=\"ad\">[\\s\\S]*?</aside>'\n",
            encoding="utf-8",
        )

        result = cli_runner.invoke(cli, ["rules", "--rules-file", str(rules)])

        assert result.exit_code == 0
        assert "banner-ads" in result.output


class TestCLIHelpers:
    """Test CLI helper types."""

    def test_short_fingerprint(self):
        assert short("5d41402abc4b2a76b9719d911017c592") == "5d41402a..."
        assert short(None) == "..."

    def test_resolve_target(self):
        assert resolve_target(PAGE_URL, TOPIC) == (PAGE_URL, TOPIC)

    @pytest.mark.parametrize(
        "url, topic, message",
        [
            (None, TOPIC, "MONITOR_URL"),
            (PAGE_URL, "", "NTFY_TOPIC"),
            ("file:///etc/passwd", TOPIC, "HTTP or HTTPS"),
        ],
    )
    def test_resolve_target_errors(self, url, topic, message):
        with pytest.raises(CLIError, match=message):
            resolve_target(url, topic)

    def test_command_result(self):
        assert CommandResult(success=True)
        assert not CommandResult(success=False, exit_code=1)
        assert CommandResult(success=True).data == {}

    def test_cli_context(self):
        settings = MagicMock()

        ctx = CLIContext(settings=settings, verbose=True)

        assert ctx.settings is settings
        assert ctx.verbose is True
        assert ctx.debug is False

    def test_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("check", "test-notify", "state", "normalize", "rules"):
            assert command in result.output

    def test_json_logs(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            cli,
            [
                "--json-logs",
                "--verbose",
                "state",
                "--state-file",
                str(tmp_path / "missing.json"),
            ],
        )

        assert result.exit_code == 0
        log_lines = [
            line for line in result.output.splitlines() if line.startswith("{")
        ]
        assert any(
            json.loads(line)["event"] == "No previous state found" for line in log_lines
        )
