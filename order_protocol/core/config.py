"""
Runtime configuration.

Values come from constructor defaults, overridden by ORDER_PROTOCOL_* environment variables.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "ORDER_PROTOCOL_"

@dataclass(frozen=True)
class ProtocolConfig:
    """
    Immutable configuration for one verifying instance.
    """
    exchange_address: Optional[str] = None   # verifying instance identifier
    redis_url: str = "redis://localhost:6379/0"
    journal_path: str = "order_journal.jsonl"
    log_level: str = "INFO"
    log_format: str = "json"
    orderbook_url: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProtocolConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            exchange_address=env.get(f"{ENV_PREFIX}EXCHANGE_ADDRESS", defaults.exchange_address),
            redis_url=env.get(f"{ENV_PREFIX}REDIS_URL", defaults.redis_url),
            journal_path=env.get(f"{ENV_PREFIX}JOURNAL_PATH", defaults.journal_path),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level),
            log_format=env.get(f"{ENV_PREFIX}LOG_FORMAT", defaults.log_format),
            orderbook_url=env.get(f"{ENV_PREFIX}ORDERBOOK_URL", defaults.orderbook_url),
        )
