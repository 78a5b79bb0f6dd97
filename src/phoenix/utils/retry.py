"""Bounded retry executor with a fixed delay."""

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, Type, TypeVar

from phoenix.errors import FatalError, ProvisioningError, SpecValidationError, TransientExecError
from phoenix.models.retry import AttemptOutcome, ExecutionAttempt, RetryPolicy


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that abort the loop on first sight
NEVER_RETRY: Tuple[Type[BaseException], ...] = (SpecValidationError, FatalError)


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a retried operation."""
    value: Optional[T] = None
    error: Optional[BaseException] = None
    attempts: List[ExecutionAttempt] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def attempt_number(self) -> int:
        """Number of attempts made."""
        return len(self.attempts)

    @property
    def delays(self) -> int:
        """Number of delays slept between attempts."""
        return sum(1 for attempt in self.attempts if attempt.attempt_number > 1)

    def unwrap(self, description: str = "operation") -> T:
        """Return the value or raise the failure as a provisioning error."""
        if self.success:
            return self.value

        error = self.error
        if isinstance(error, ProvisioningError):
            raise error
        if isinstance(error, subprocess.CalledProcessError):
            raise TransientExecError(
                f"{description} failed after {self.attempt_number} attempts (exit {error.returncode})",
                stdout=error.stdout or "",
                stderr=error.stderr or "",
                attempts=self.attempt_number,
            ) from error
        raise TransientExecError(
            f"{description} failed after {self.attempt_number} attempts: {error}",
            attempts=self.attempt_number,
        ) from error


class RetryEngine:
    """Runs an async operation up to ``max_attempts`` times with a fixed delay.

    No backoff, no jitter. The delay is slept between attempts only, so an
    operation that always fails with three attempts sleeps twice.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.sleep = sleep

    async def execute(
        self,
        op: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        description: str = "operation",
        between_attempts: Optional[Callable[[int], Awaitable[None]]] = None,
    ) -> RetryOutcome[T]:
        """Execute ``op`` under ``policy``.

        ``between_attempts`` runs after each delay, before the next attempt,
        with the upcoming attempt number. If it raises, the loop stops and the
        outcome carries that error.
        """
        outcome: RetryOutcome[T] = RetryOutcome()

        for attempt in range(1, policy.max_attempts + 1):
            delay = 0.0
            if attempt > 1:
                delay = policy.delay_seconds
                await self.sleep(delay)
                if between_attempts:
                    try:
                        await between_attempts(attempt)
                    except Exception as e:
                        logger.error(f"{description}: aborting retries: {e}")
                        outcome.error = e
                        return outcome

            logger.debug(f"Attempt {attempt}/{policy.max_attempts}: {description}")
            try:
                value = await op()
            except NEVER_RETRY as e:
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt,
                    delay_seconds=delay,
                    outcome=AttemptOutcome.FAILURE,
                    error=str(e),
                ))
                outcome.error = e
                return outcome
            except Exception as e:
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt,
                    delay_seconds=delay,
                    outcome=AttemptOutcome.FAILURE,
                    error=str(e),
                ))
                outcome.error = e
                if attempt < policy.max_attempts:
                    logger.warning(
                        f"{description} failed (attempt {attempt}/{policy.max_attempts}). "
                        f"Retrying in {policy.delay_seconds:g} seconds: {e}"
                    )
                else:
                    logger.error(f"{description} failed after {policy.max_attempts} attempts: {e}")
                continue

            outcome.attempts.append(ExecutionAttempt(
                attempt_number=attempt,
                delay_seconds=delay,
                outcome=AttemptOutcome.SUCCESS,
            ))
            outcome.value = value
            outcome.error = None
            logger.debug(f"{description} succeeded on attempt {attempt}")
            return outcome

        return outcome
