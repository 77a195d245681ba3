"""Resolution Loop: drive Probe -> Detect -> Remediate -> Verify to a verdict.

State machine::

    PROBING -> DETECTING -> CLEAN -> RESOLVED
                         -> REMEDIATING -> USER_DECLINED
                                        -> VERIFYING -> RESOLVED
                                                     -> REMEDIATING (retry)
                                                     -> RETRY_EXHAUSTED

A failed verification and a failed probe each count as one failed attempt.
After ``max_retries`` failed attempts the loop stops in RETRY_EXHAUSTED, so
termination does not depend on the remediator ever converging. Waiting
between attempts goes through an injected ``sleep`` so tests need no real
time.

Only one loop runs per process at a time (``RESOLUTION_LOCK``).
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from modwarden.core.lifecycle.detector import ConflictDetector
from modwarden.core.lifecycle.models import (
    ConflictReport,
    ResolutionResult,
    ResolutionState,
)
from modwarden.core.lifecycle.prober import AvailabilityProber
from modwarden.core.lifecycle.remediator import Remediator
from modwarden.core.versions import CapabilitySpec
from modwarden.exceptions import EnvironmentUnavailableError

logger = logging.getLogger(__name__)

RESOLUTION_LOCK = threading.Lock()

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_MAX_RETRY_DELAY = 30.0

RESTART_RECOMMENDATION = "Restart the process, then run the resolution again"


class CancellationToken:
    """Cooperative cancellation signal, checked between loop steps."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class _Run:
    """Mutable bookkeeping for one ``ResolutionLoop.run`` call."""

    specs: list[CapabilitySpec]
    auto_approve: bool
    failures: int = 0
    report: ConflictReport | None = None
    errors: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)


class ResolutionLoop:
    """Bounded retry state machine over prober, detector and remediator.

    Args:
        prober: Produces capability states.
        detector: Turns states into a conflict report.
        remediator: Applies corrective actions.
        max_retries: Failed attempts allowed before RETRY_EXHAUSTED.
        retry_delay: Delay after the first failed attempt (seconds);
            doubles per further failure.
        max_retry_delay: Upper bound for the delay.
        sleep: Called with the delay in seconds.
    """

    def __init__(
        self,
        prober: AvailabilityProber,
        detector: ConflictDetector,
        remediator: Remediator,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self._prober = prober
        self._detector = detector
        self._remediator = remediator
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._max_retry_delay = max_retry_delay
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def run(
        self,
        specs: Iterable[CapabilitySpec],
        *,
        auto_approve: bool = False,
        cancel: CancellationToken | None = None,
    ) -> ResolutionResult:
        """Drive the environment to a consistent state, or explain why not.

        Args:
            specs: Capabilities to resolve.
            auto_approve: Allow unloads and source trust without asking.
            cancel: Optional cancellation token.

        Returns:
            The terminal ``ResolutionResult``.
        """
        with RESOLUTION_LOCK:
            run = _Run(specs=list(specs), auto_approve=auto_approve)
            state = ResolutionState.PROBING
            while not state.is_terminal:
                if cancel is not None and cancel.cancelled:
                    logger.info("Resolution cancelled in state %s", state.value)
                    run.errors.append("cancelled")
                    state = ResolutionState.CANCELLED
                    break
                logger.debug("Resolution state: %s", state.value)
                state = self._step(state, run, cancel)
            return self._finish(state, run)

    # -- Transitions -------------------------------------------------------

    def _step(
        self,
        state: ResolutionState,
        run: _Run,
        cancel: CancellationToken | None,
    ) -> ResolutionState:
        if state is ResolutionState.PROBING:
            return self._probe_and_detect(run, cancel, verifying=False)
        if state is ResolutionState.DETECTING:
            if run.report is not None and run.report.needs_remediation:
                return ResolutionState.REMEDIATING
            return ResolutionState.CLEAN
        if state is ResolutionState.CLEAN:
            return ResolutionState.RESOLVED
        if state is ResolutionState.REMEDIATING:
            outcome = self._remediator.remediate(run.report, run.auto_approve)
            run.actions.extend(outcome.actions_performed)
            run.errors.extend(outcome.errors)
            if outcome.declined:
                return ResolutionState.USER_DECLINED
            return ResolutionState.VERIFYING
        if state is ResolutionState.VERIFYING:
            return self._probe_and_detect(run, cancel, verifying=True)
        raise AssertionError(f"Unhandled resolution state: {state}")

    def _probe_and_detect(
        self,
        run: _Run,
        cancel: CancellationToken | None,
        *,
        verifying: bool,
    ) -> ResolutionState:
        try:
            states = self._prober.probe(run.specs)
        except EnvironmentUnavailableError as exc:
            run.errors.append(str(exc))
            logger.warning("Probe failed: %s", exc)
            return self._after_failure(run, cancel, ResolutionState.PROBING)

        run.report = self._detector.detect(run.specs, states)
        if not verifying:
            return ResolutionState.DETECTING
        if run.report.is_resolved:
            return ResolutionState.RESOLVED
        residual = [c.name for c in run.report.high_conflicts]
        residual += [m.name for m in run.report.missing]
        run.errors.append(f"unresolved after remediation: {', '.join(residual)}")
        return self._after_failure(run, cancel, ResolutionState.REMEDIATING)

    def _after_failure(
        self,
        run: _Run,
        cancel: CancellationToken | None,
        retry_state: ResolutionState,
    ) -> ResolutionState:
        run.failures += 1
        if run.failures >= self._max_retries:
            logger.warning("Giving up after %d failed attempts", run.failures)
            return ResolutionState.RETRY_EXHAUSTED
        delay = min(
            self._retry_delay * 2 ** (run.failures - 1), self._max_retry_delay,
        )
        logger.info(
            "Attempt %d/%d failed; retrying in %.1fs",
            run.failures, self._max_retries, delay,
        )
        self._sleep(delay)
        if cancel is not None and cancel.cancelled:
            run.errors.append("cancelled")
            return ResolutionState.CANCELLED
        return retry_state

    # -- Result ------------------------------------------------------------

    def _finish(self, state: ResolutionState, run: _Run) -> ResolutionResult:
        recommendations = list(run.report.recommendations) if run.report else []
        requires_restart = state in (
            ResolutionState.RETRY_EXHAUSTED,
            ResolutionState.USER_DECLINED,
        )
        if requires_restart:
            recommendations.append(RESTART_RECOMMENDATION)
        if state is ResolutionState.RESOLVED:
            recommendations = []
            logger.info("Resolution succeeded after %d failed attempts", run.failures)
        return ResolutionResult(
            success=state is ResolutionState.RESOLVED,
            retry_count=run.failures,
            errors=run.errors,
            requires_restart=requires_restart,
            final_state=state,
            recommendations=recommendations,
            actions=run.actions,
            report=run.report,
        )
