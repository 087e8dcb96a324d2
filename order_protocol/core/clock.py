import time
from typing import Final

MICROSECONDS: Final[int] = 1_000_000

class Clock:
    """
    Wall clock source for order expiration checks.
    Expiration is compared against epoch seconds, the unit of expirationTimeSeconds.
    """

    @staticmethod
    def now_seconds() -> int:
        """
        Returns current epoch time in whole seconds.
        """
        return time.time_ns() // 1_000_000_000

    @staticmethod
    def now_epoch_us() -> int:
        """
        Returns current epoch time in microseconds (int64).
        Used for journal timestamps.
        """
        return time.time_ns() // 1000

    @staticmethod
    def is_expired(expiration_time_seconds: int, now_seconds: int) -> bool:
        """
        An order is expired once the clock reaches its expiration second.
        """
        return now_seconds >= expiration_time_seconds
