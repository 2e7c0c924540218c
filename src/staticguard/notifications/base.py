"""Result presentation protocol and fan-out manager.

The analysis core never renders anything itself. It hands each verdict to a
ResultPresenter, the capability interface behind which console output,
desktop notifications or an IDE integration live.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from staticguard.analysis.result import AnalysisResult, ResultKind
from staticguard.core.logging import get_logger

_logger = get_logger("notifications")

ALL_RESULT_KINDS: frozenset[ResultKind] = frozenset(ResultKind)


@runtime_checkable
class ResultPresenter(Protocol):
    """Protocol for result presentation backends.

    Each presenter:
    - Declares which result kinds it wants
    - Receives the AnalysisResult once per completed run
    - Reports failure by returning False rather than raising
    """

    @property
    def subscribed_results(self) -> set[ResultKind]:
        """Result kinds this presenter handles."""
        ...

    async def present(self, result: AnalysisResult) -> bool:
        """Present ``result``.

        Returns:
            True if the result was presented (or deliberately ignored),
            False if presentation failed.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the presenter."""
        ...


class PresenterManager:
    """Routes each result to every subscribed presenter.

    A failing presenter is logged and skipped; it never prevents the others
    from running and never propagates into the analysis run.

    Example usage:
        manager = PresenterManager([
            ConsolePresenter(),
            DesktopPresenter(results={ResultKind.FAILED}),
        ])
        await manager.present(result)
    """

    def __init__(self, presenters: list[ResultPresenter] | None = None) -> None:
        self._presenters: list[ResultPresenter] = presenters or []

    def add_presenter(self, presenter: ResultPresenter) -> None:
        self._presenters.append(presenter)

    @property
    def presenter_count(self) -> int:
        return len(self._presenters)

    @property
    def subscribed_results(self) -> set[ResultKind]:
        return set(ALL_RESULT_KINDS)

    async def present(self, result: AnalysisResult) -> bool:
        """Present ``result`` through every subscribed presenter.

        Returns:
            True when every subscribed presenter succeeded.
        """
        outcomes = await self.present_all(result)
        return all(outcomes.values())

    async def present_all(self, result: AnalysisResult) -> dict[str, bool]:
        """Present ``result`` and report success per presenter class name."""
        outcomes: dict[str, bool] = {}
        for presenter in self._presenters:
            if result.kind not in presenter.subscribed_results:
                continue
            name = type(presenter).__name__
            try:
                outcomes[name] = await presenter.present(result)
            except Exception as e:
                _logger.warning(
                    "presenter_failed",
                    presenter=name,
                    result_kind=result.kind.value,
                    error=str(e),
                )
                outcomes[name] = False
        return outcomes

    async def close(self) -> None:
        for presenter in self._presenters:
            try:
                await presenter.close()
            except Exception as e:
                _logger.warning(
                    "presenter_close_failed",
                    presenter=type(presenter).__name__,
                    error=str(e),
                )


__all__ = ["ALL_RESULT_KINDS", "PresenterManager", "ResultPresenter"]
