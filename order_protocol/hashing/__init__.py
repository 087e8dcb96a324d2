"""
Canonical order encoding and hash composition.
"""
from .encoder import encode_fixed_fields, encode_order, leaf_hash, order_type_string, parse_order
from .order_hasher import (
    OrderHasher,
    compute_domain_separator_hash,
    compute_order_hash,
    is_valid_order_hash,
    to_hex,
)
from .schema import DOMAIN_SEPARATOR_SCHEMA, domain_separator_schema_hash, order_schema_hash

__all__ = [
    "encode_fixed_fields",
    "encode_order",
    "leaf_hash",
    "order_type_string",
    "parse_order",
    "OrderHasher",
    "compute_domain_separator_hash",
    "compute_order_hash",
    "is_valid_order_hash",
    "to_hex",
    "DOMAIN_SEPARATOR_SCHEMA",
    "domain_separator_schema_hash",
    "order_schema_hash",
]
