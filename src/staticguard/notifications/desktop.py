"""Desktop notification presenter using plyer.

Shows a sticky-style OS notification titled "Static Analysis" when a run
finishes, so a developer who switched windows notices the verdict.
Degrades gracefully when plyer cannot be loaded on the host.
"""

from typing import Any

from staticguard.analysis.result import (
    AnalysisResult,
    FailedWithCount,
    ResultKind,
)
from staticguard.core.logging import get_logger

_logger = get_logger("notifications.desktop")

MAX_MESSAGE_LENGTH = 256  # Windows toast limit; other platforms truncate anyway


def _get_plyer_notification() -> tuple[bool, Any]:
    """Load the plyer notification facade if the platform supports it."""
    try:
        from plyer import notification  # type: ignore[import-untyped,unused-ignore]

        return True, notification
    except ImportError:
        _logger.debug("plyer unavailable - desktop notifications disabled")
        return False, None


_PLYER_AVAILABLE, _notification_module = _get_plyer_notification()


def is_desktop_notification_available() -> bool:
    return _PLYER_AVAILABLE


def format_desktop_message(result: AnalysisResult) -> str:
    """Notification body, including the report location for failures."""
    message = result.format_message()
    if isinstance(result, FailedWithCount) and result.report_location:
        message = f"{message}\nReport: {result.report_location}"
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[: MAX_MESSAGE_LENGTH - 3] + "..."
    return message


class DesktopPresenter:
    """Presents results as desktop notifications.

    Configuration from YAML:
        notifications:
          - type: desktop
            on_results: [failed, transport_error]
            config:
              timeout: 15
              app_name: "staticguard"
    """

    def __init__(
        self,
        results: set[ResultKind] | None = None,
        app_name: str = "staticguard",
        timeout: int = 10,
    ) -> None:
        self._results = set(ResultKind) if results is None else results
        self._app_name = app_name
        self._timeout = timeout
        self._warned_unavailable = False

    @classmethod
    def from_config(
        cls,
        on_results: list[str],
        config: dict[str, Any] | None = None,
    ) -> "DesktopPresenter":
        config = config or {}
        results: set[ResultKind] = set()
        for name in on_results:
            try:
                results.add(ResultKind(name.lower()))
            except ValueError:
                _logger.warning("unknown_result_kind", result_kind=name)
        return cls(
            results=results,
            app_name=config.get("app_name", "staticguard"),
            timeout=config.get("timeout", 10),
        )

    @property
    def subscribed_results(self) -> set[ResultKind]:
        return self._results

    async def present(self, result: AnalysisResult) -> bool:
        if not _PLYER_AVAILABLE:
            if not self._warned_unavailable:
                _logger.warning("desktop_notifications_unavailable", hint="pip install plyer")
                self._warned_unavailable = True
            return False

        if result.kind not in self._results:
            return True

        title = result.format_title()
        try:
            _notification_module.notify(
                title=title,
                message=format_desktop_message(result),
                app_name=self._app_name,
                timeout=self._timeout,
            )
        except Exception as e:
            # Missing notification daemon, dbus errors and similar host issues
            _logger.warning("desktop_notification_failed", error=str(e))
            return False

        _logger.debug("desktop_notification_sent", title=title, result_kind=result.kind.value)
        return True

    async def close(self) -> None:
        pass


class MockPresenter:
    """Records presented results without displaying them. Used by tests."""

    def __init__(self, results: set[ResultKind] | None = None) -> None:
        self._results = set(ResultKind) if results is None else results
        self.presented: list[AnalysisResult] = []
        self._fail_next = False
        self.closed = False

    @property
    def subscribed_results(self) -> set[ResultKind]:
        return self._results

    def set_fail_next(self, should_fail: bool = True) -> None:
        """Make the next present() call report failure."""
        self._fail_next = should_fail

    async def present(self, result: AnalysisResult) -> bool:
        if self._fail_next:
            self._fail_next = False
            return False
        self.presented.append(result)
        return True

    async def close(self) -> None:
        self.closed = True
