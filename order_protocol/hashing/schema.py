"""
Process-wide schema constants, computed once on first use.
"""
from functools import lru_cache

from eth_utils import keccak

from .encoder import order_type_string

DOMAIN_SEPARATOR_SCHEMA = "DomainSeparator(address contract)"


@lru_cache(maxsize=None)
def domain_separator_schema_hash() -> bytes:
    return keccak(text=DOMAIN_SEPARATOR_SCHEMA)


@lru_cache(maxsize=None)
def order_schema_hash() -> bytes:
    # Any change to the Order field table changes this tag
    return keccak(text=order_type_string())
