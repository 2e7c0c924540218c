"""Factory for creating presenters from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from staticguard.core.logging import get_logger

if TYPE_CHECKING:
    from rich.console import Console

    from staticguard.core.config import NotificationConfig
    from staticguard.notifications.base import ResultPresenter

_logger = get_logger("notifications.factory")


def create_presenters_from_config(
    notification_configs: list[NotificationConfig],
    console: Console | None = None,
) -> list[ResultPresenter]:
    """Create ResultPresenter instances from notification configuration.

    Args:
        notification_configs: Entries from StaticGuardConfig.notifications.
        console: Console handed to console presenters.

    Returns:
        List of configured presenters, in configuration order.
    """
    from staticguard.notifications.console import ConsolePresenter
    from staticguard.notifications.desktop import DesktopPresenter

    presenters: list[ResultPresenter] = []

    for config in notification_configs:
        results: list[str] = list(config.on_results)

        if config.type == "console":
            presenters.append(
                ConsolePresenter.from_config(
                    on_results=results, config=config.config, console=console
                )
            )
        elif config.type == "desktop":
            presenters.append(
                DesktopPresenter.from_config(on_results=results, config=config.config)
            )
        else:
            _logger.warning("unknown_notification_type", type=config.type)

    return presenters


__all__ = ["create_presenters_from_config"]
