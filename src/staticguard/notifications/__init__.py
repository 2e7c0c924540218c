"""Result presenters for staticguard.

Presenters receive the verdict of each completed (not cancelled) run:

- ConsolePresenter: rich panel on the terminal
- DesktopPresenter: OS notification via plyer
- MockPresenter: records results, for tests

PresenterManager fans one result out to several presenters.
"""

from staticguard.notifications.base import ALL_RESULT_KINDS, PresenterManager, ResultPresenter
from staticguard.notifications.console import ConsolePresenter, render_result_panel
from staticguard.notifications.desktop import (
    DesktopPresenter,
    MockPresenter,
    is_desktop_notification_available,
)
from staticguard.notifications.factory import create_presenters_from_config

__all__ = [
    "ALL_RESULT_KINDS",
    "ConsolePresenter",
    "DesktopPresenter",
    "MockPresenter",
    "PresenterManager",
    "ResultPresenter",
    "create_presenters_from_config",
    "is_desktop_notification_available",
    "render_result_panel",
]
