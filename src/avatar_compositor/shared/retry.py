"""Retry utilities with exponential backoff."""

import time
import random
from typing import Callable, TypeVar, Optional, Type, Tuple

T = TypeVar('T')


class RetryStrategy:
    """Configurable retry strategy."""

    def __init__(
        self,
        max_attempts: int = 1,
        backoff_seconds: float = 1.0,
        exponential: bool = True,
        jitter: bool = True,
        max_backoff: float = 60.0,
        give_up_on: Tuple[Type[Exception], ...] = (),
        sleep: Callable[[float], None] = time.sleep
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.exponential = exponential
        self.jitter = jitter
        self.max_backoff = max_backoff
        self.give_up_on = give_up_on
        self._sleep = sleep

    def execute(
        self,
        func: Callable[..., T],
        *args,
        **kwargs
    ) -> T:
        """
        Execute a function with retry logic.

        Exceptions listed in ``give_up_on`` are raised immediately.

        Raises:
            Last exception if all attempts fail
        """
        last_exception: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except self.give_up_on:
                raise
            except Exception as e:
                last_exception = e

                if attempt == self.max_attempts:
                    raise

                self._sleep(self._calculate_backoff(attempt))

        if last_exception:
            raise last_exception
        raise RuntimeError("Retry logic failed unexpectedly")

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate backoff time for given attempt number."""
        if self.exponential:
            wait_time = self.backoff_seconds * (2 ** (attempt - 1))
        else:
            wait_time = self.backoff_seconds * attempt

        wait_time = min(wait_time, self.max_backoff)

        if self.jitter:
            wait_time = wait_time * (0.5 + random.random())

        return wait_time
