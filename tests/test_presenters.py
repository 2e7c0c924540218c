"""Tests for staticguard.notifications."""

from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from staticguard.analysis.result import (
    FailedWithCount,
    Passed,
    ResultKind,
    TransportError,
    Undetermined,
)
from staticguard.core.config import NotificationConfig
from staticguard.notifications import (
    ConsolePresenter,
    DesktopPresenter,
    MockPresenter,
    PresenterManager,
    ResultPresenter,
    create_presenters_from_config,
)
from staticguard.notifications.desktop import (
    MAX_MESSAGE_LENGTH,
    format_desktop_message,
    is_desktop_notification_available,
)


def _recording_console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


class TestPresenterProtocol:
    """All presenters satisfy the runtime-checkable protocol."""

    def test_implementations(self):
        assert isinstance(ConsolePresenter(), ResultPresenter)
        assert isinstance(DesktopPresenter(), ResultPresenter)
        assert isinstance(MockPresenter(), ResultPresenter)
        assert isinstance(PresenterManager(), ResultPresenter)


class TestPresenterManager:
    """Fan-out and failure isolation."""

    @pytest.mark.asyncio
    async def test_fans_out_to_subscribers(self):
        everything = MockPresenter()
        failures_only = MockPresenter(results={ResultKind.FAILED})
        manager = PresenterManager([everything, failures_only])

        assert await manager.present(Passed()) is True
        assert await manager.present(FailedWithCount("2 issues")) is True

        assert everything.presented == [Passed(), FailedWithCount("2 issues")]
        assert failures_only.presented == [FailedWithCount("2 issues")]

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_others(self):
        class Broken(MockPresenter):
            async def present(self, result):
                raise RuntimeError("no display")

        after = MockPresenter()
        manager = PresenterManager([Broken(), after])

        outcomes = await manager.present_all(Passed())

        assert outcomes == {"Broken": False, "MockPresenter": True}
        assert after.presented == [Passed()]

    @pytest.mark.asyncio
    async def test_reports_unsuccessful_presenter(self):
        flaky = MockPresenter()
        flaky.set_fail_next()
        manager = PresenterManager([flaky])

        assert await manager.present(Passed()) is False
        assert await manager.present(Passed()) is True

    @pytest.mark.asyncio
    async def test_close_closes_all(self):
        first, second = MockPresenter(), MockPresenter()
        manager = PresenterManager([first])
        manager.add_presenter(second)

        await manager.close()

        assert manager.presenter_count == 2
        assert first.closed and second.closed


class TestConsolePresenter:
    """Rich panel rendering."""

    @pytest.mark.asyncio
    async def test_passed_panel(self):
        console, buffer = _recording_console()
        await ConsolePresenter(console=console).present(Passed())
        out = buffer.getvalue()
        assert "Static Analysis" in out
        assert "Overall: PASSED!" in out

    @pytest.mark.asyncio
    async def test_failed_panel_has_report(self):
        console, buffer = _recording_console()
        result = FailedWithCount("3 issues", "file:///tmp/report/full_report.html")
        await ConsolePresenter(console=console).present(result)
        out = buffer.getvalue()
        assert "Analysis failed: 3 issues" in out
        assert "file:///tmp/report/full_report.html" in out

    @pytest.mark.asyncio
    async def test_report_path_with_brackets(self):
        console, buffer = _recording_console()
        result = FailedWithCount("3 issues", "file:///tmp/[build]/report/full_report.html")
        await ConsolePresenter(console=console).present(result)
        out = buffer.getvalue()
        assert "Analysis failed: 3 issues" in out
        assert "file:///tmp/[build]/report/full_report.html" in out

    @pytest.mark.asyncio
    async def test_bracketed_descriptor_is_literal(self):
        console, buffer = _recording_console()
        await ConsolePresenter(console=console).present(FailedWithCount("[bold]2[/] issues"))
        assert "Analysis failed: [bold]2[/] issues" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_undetermined_has_hint(self):
        console, buffer = _recording_console()
        presenter = ConsolePresenter(console=console)
        await presenter.present(Undetermined("Can't detect analysis result"))
        assert "Try to run it manually." in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_transport_error_is_verbatim(self):
        console, buffer = _recording_console()
        message = "FAILURE: Build failed with an exception.\n[ERROR] Task 'staticAnalys' not found"
        await ConsolePresenter(console=console).present(TransportError(message))
        out = buffer.getvalue()
        assert "FAILURE: Build failed with an exception." in out
        assert "[ERROR] Task 'staticAnalys' not found" in out

    @pytest.mark.asyncio
    async def test_long_transport_error_keeps_tail(self):
        console, buffer = _recording_console()
        message = "\n".join(f"line {i}" for i in range(100))
        await ConsolePresenter(console=console).present(TransportError(message))
        out = buffer.getvalue()
        assert "60 earlier lines omitted" in out
        assert "line 99" in out
        assert "line 10 " not in out

    @pytest.mark.asyncio
    async def test_empty_subscription_shows_nothing(self):
        console, buffer = _recording_console()
        presenter = ConsolePresenter(results=set(), console=console)
        assert presenter.subscribed_results == set()
        await presenter.present(FailedWithCount("1 issue"))
        assert buffer.getvalue() == ""

    @pytest.mark.asyncio
    async def test_unsubscribed_result_is_skipped(self):
        console, buffer = _recording_console()
        presenter = ConsolePresenter(results={ResultKind.FAILED}, console=console)
        assert await presenter.present(Passed()) is True
        assert buffer.getvalue() == ""


class TestDesktopPresenter:
    """plyer-backed notifications."""

    def test_message_includes_report(self):
        message = format_desktop_message(FailedWithCount("3 issues", "file:///r/full_report.html"))
        assert message == "Analysis failed: 3 issues\nReport: file:///r/full_report.html"

    def test_message_truncated(self):
        message = format_desktop_message(TransportError("x" * 1000))
        assert len(message) == MAX_MESSAGE_LENGTH
        assert message.endswith("...")

    @pytest.mark.asyncio
    async def test_sends_notification(self):
        fake_notification = MagicMock()
        with (
            patch("staticguard.notifications.desktop._PLYER_AVAILABLE", True),
            patch("staticguard.notifications.desktop._notification_module", fake_notification),
        ):
            presenter = DesktopPresenter(app_name="staticguard-test", timeout=3)
            assert await presenter.present(FailedWithCount("1 issue")) is True

        fake_notification.notify.assert_called_once_with(
            title="Static Analysis",
            message="Analysis failed: 1 issue",
            app_name="staticguard-test",
            timeout=3,
        )

    @pytest.mark.asyncio
    async def test_notify_error_reports_failure(self):
        fake_notification = MagicMock()
        fake_notification.notify.side_effect = NotImplementedError("no backend")
        with (
            patch("staticguard.notifications.desktop._PLYER_AVAILABLE", True),
            patch("staticguard.notifications.desktop._notification_module", fake_notification),
        ):
            assert await DesktopPresenter().present(Passed()) is False

    @pytest.mark.asyncio
    async def test_empty_subscription_sends_nothing(self):
        fake_notification = MagicMock()
        with (
            patch("staticguard.notifications.desktop._PLYER_AVAILABLE", True),
            patch("staticguard.notifications.desktop._notification_module", fake_notification),
        ):
            assert await DesktopPresenter(results=set()).present(FailedWithCount("1 issue"))
        fake_notification.notify.assert_not_called()

    def test_availability_reflects_plyer(self):
        with patch("staticguard.notifications.desktop._PLYER_AVAILABLE", False):
            assert is_desktop_notification_available() is False
        with patch("staticguard.notifications.desktop._PLYER_AVAILABLE", True):
            assert is_desktop_notification_available() is True

    @pytest.mark.asyncio
    async def test_unavailable_degrades(self):
        with patch("staticguard.notifications.desktop._PLYER_AVAILABLE", False):
            presenter = DesktopPresenter()
            assert await presenter.present(Passed()) is False
            assert await presenter.present(Passed()) is False

    def test_from_config(self):
        presenter = DesktopPresenter.from_config(
            on_results=["failed", "TRANSPORT_ERROR", "bogus"],
            config={"timeout": 20},
        )
        assert presenter.subscribed_results == {ResultKind.FAILED, ResultKind.TRANSPORT_ERROR}


class TestFactory:
    """Presenter creation from configuration."""

    def test_creates_configured_presenters(self):
        configs = [
            NotificationConfig(type="console"),
            NotificationConfig(type="desktop", on_results=["failed"]),
        ]
        presenters = create_presenters_from_config(configs)

        assert [type(p) for p in presenters] == [ConsolePresenter, DesktopPresenter]
        assert presenters[1].subscribed_results == {ResultKind.FAILED}

    def test_empty_config(self):
        assert create_presenters_from_config([]) == []
