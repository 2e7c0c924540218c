"""Exception hierarchy for staticguard.

All staticguard-specific exceptions inherit from StaticGuardError, enabling
callers to catch broad (StaticGuardError) or narrow (e.g., ProcessSpawnError).

Transport exceptions never escape the AnalysisTask boundary: they are
converted into a ``TransportError`` result there.
"""

from __future__ import annotations


class StaticGuardError(Exception):
    """Base exception for all staticguard errors."""


class ProcessTransportError(StaticGuardError):
    """Raised when the analysis subprocess cannot be spawned or read.

    Distinct from a verdict: the build tool never got a chance to report one.
    """


class ProcessSpawnError(ProcessTransportError):
    """Raised when the build tool process cannot be started.

    Examples: missing ``gradlew`` wrapper, wrapper not executable,
    nonexistent project root.
    """


class ProcessStreamError(ProcessTransportError):
    """Raised when reading the merged output stream fails mid-run."""


class AnalysisAlreadyRunningError(StaticGuardError):
    """Raised when a run is triggered while another one is still active."""


class ConfigurationError(StaticGuardError):
    """Raised when a configuration file cannot be loaded or validated."""
