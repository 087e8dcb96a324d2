import unittest

from order_protocol.core.errors import InvalidAddressError, MalformedOrderError
from order_protocol.hashing.order_hasher import (
    OrderHasher,
    compute_domain_separator_hash,
    compute_order_hash,
    is_valid_order_hash,
    to_hex,
)
from order_protocol.hashing.schema import domain_separator_schema_hash, order_schema_hash
from order_fixtures import (
    DOMAIN_SCHEMA_HASH,
    DOMAIN_SEPARATOR_HASH,
    EXCHANGE,
    FEE_RECIPIENT,
    MAKER,
    ORDER_SCHEMA_HASH,
    OTHER_DOMAIN_SEPARATOR_HASH,
    OTHER_EXCHANGE,
    SAMPLE_ORDER_HASH,
    SAMPLE_ORDER_HASH_OTHER_EXCHANGE,
    sample_order,
    sample_order_wire,
)


def _flip_first_byte(data: bytes) -> bytes:
    return bytes([data[0] ^ 0x01]) + data[1:]


class TestSchemaConstants(unittest.TestCase):
    def test_domain_schema_hash(self):
        self.assertEqual(to_hex(domain_separator_schema_hash()), DOMAIN_SCHEMA_HASH)

    def test_order_schema_hash(self):
        self.assertEqual(to_hex(order_schema_hash()), ORDER_SCHEMA_HASH)

    def test_constants_are_computed_once(self):
        self.assertIs(order_schema_hash(), order_schema_hash())
        self.assertIs(domain_separator_schema_hash(), domain_separator_schema_hash())


class TestGoldenVectors(unittest.TestCase):
    def test_domain_separator(self):
        self.assertEqual(to_hex(compute_domain_separator_hash(EXCHANGE)), DOMAIN_SEPARATOR_HASH)
        self.assertEqual(to_hex(compute_domain_separator_hash(OTHER_EXCHANGE)), OTHER_DOMAIN_SEPARATOR_HASH)

    def test_sample_order_hash(self):
        self.assertEqual(to_hex(compute_order_hash(sample_order(), EXCHANGE)), SAMPLE_ORDER_HASH)

    def test_sample_order_hash_other_exchange(self):
        self.assertEqual(
            to_hex(compute_order_hash(sample_order(), OTHER_EXCHANGE)),
            SAMPLE_ORDER_HASH_OTHER_EXCHANGE,
        )

    def test_wire_form_hashes_identically(self):
        self.assertEqual(to_hex(compute_order_hash(sample_order_wire(), EXCHANGE)), SAMPLE_ORDER_HASH)

    def test_exchange_address_case_and_bytes_form(self):
        checksum_style = "0x48BaCB9266a570d521063EF5dD96e61686DbE788"
        raw = bytes.fromhex(EXCHANGE[2:])
        self.assertEqual(to_hex(compute_order_hash(sample_order(), checksum_style)), SAMPLE_ORDER_HASH)
        self.assertEqual(to_hex(compute_order_hash(sample_order(), raw)), SAMPLE_ORDER_HASH)


class TestHashProperties(unittest.TestCase):
    def test_determinism(self):
        order = sample_order()
        self.assertEqual(compute_order_hash(order, EXCHANGE), compute_order_hash(order, EXCHANGE))
        self.assertEqual(len(compute_order_hash(order, EXCHANGE)), 32)

    def test_every_field_changes_the_hash(self):
        base = compute_order_hash(sample_order(), EXCHANGE)
        variants = {
            "maker_address": FEE_RECIPIENT,
            "taker_address": MAKER,
            "fee_recipient_address": MAKER,
            "sender_address": MAKER,
            "maker_asset_amount": 1001,
            "taker_asset_amount": 2001,
            "maker_fee": 1,
            "taker_fee": 1,
            "expiration_time_seconds": 1700000001,
            "salt": 43,
        }
        seen = {base}
        for field_name, value in variants.items():
            with self.subTest(field=field_name):
                digest = compute_order_hash(sample_order(**{field_name: value}), EXCHANGE)
                self.assertNotIn(digest, seen)
                seen.add(digest)

    def test_single_byte_of_asset_data_changes_the_hash(self):
        order = sample_order()
        base = compute_order_hash(order, EXCHANGE)
        maker_flipped = sample_order(maker_asset_data=_flip_first_byte(order.maker_asset_data))
        taker_flipped = sample_order(taker_asset_data=order.taker_asset_data[:-1] + b"\x00")
        self.assertNotEqual(compute_order_hash(maker_flipped, EXCHANGE), base)
        self.assertNotEqual(compute_order_hash(taker_flipped, EXCHANGE), base)

    def test_swapping_asset_data_changes_the_hash(self):
        order = sample_order()
        swapped = sample_order(maker_asset_data=order.taker_asset_data, taker_asset_data=order.maker_asset_data)
        self.assertNotEqual(compute_order_hash(swapped, EXCHANGE), compute_order_hash(order, EXCHANGE))

    def test_domain_separation(self):
        order = sample_order()
        exchanges = [EXCHANGE, OTHER_EXCHANGE, MAKER, FEE_RECIPIENT]
        digests = {compute_order_hash(order, exchange) for exchange in exchanges}
        self.assertEqual(len(digests), len(exchanges))


class TestPreconditions(unittest.TestCase):
    def test_missing_field_rejected_before_hashing(self):
        wire = sample_order_wire()
        del wire["makerAssetData"]
        with self.assertRaises(MalformedOrderError):
            compute_order_hash(wire, EXCHANGE)

    def test_bad_exchange_address_rejected(self):
        for bad in ("0x1234", "48bacb9266a570d521063ef5dd96e61686dbe788", b"\x00" * 19, None):
            with self.subTest(exchange=bad):
                with self.assertRaises(InvalidAddressError):
                    OrderHasher(bad)


class TestOrderHasher(unittest.TestCase):
    def setUp(self):
        self.hasher = OrderHasher(EXCHANGE)

    def test_matches_module_function(self):
        order = sample_order()
        self.assertEqual(self.hasher.hash_order(order), compute_order_hash(order, EXCHANGE))
        self.assertEqual(self.hasher.hash_order_hex(order), SAMPLE_ORDER_HASH)
        self.assertEqual(to_hex(self.hasher.domain_separator_hash), DOMAIN_SEPARATOR_HASH)

    def test_verify(self):
        order = sample_order()
        self.assertTrue(self.hasher.verify(order, SAMPLE_ORDER_HASH))
        self.assertTrue(self.hasher.verify(order, SAMPLE_ORDER_HASH.upper().replace("0X", "0x")))
        self.assertTrue(self.hasher.verify(order, bytes.fromhex(SAMPLE_ORDER_HASH[2:])))
        # Same order, hash from another deployment
        self.assertFalse(self.hasher.verify(order, SAMPLE_ORDER_HASH_OTHER_EXCHANGE))
        self.assertFalse(self.hasher.verify(sample_order(salt=43), SAMPLE_ORDER_HASH))

    def test_verify_rejects_malformed_expected_hash(self):
        with self.assertRaises(ValueError):
            self.hasher.verify(sample_order(), SAMPLE_ORDER_HASH[:-2])
        with self.assertRaises(ValueError):
            self.hasher.verify(sample_order(), b"\x00" * 31)


class TestOrderHashFormat(unittest.TestCase):
    def test_is_valid_order_hash(self):
        self.assertTrue(is_valid_order_hash(SAMPLE_ORDER_HASH))
        self.assertFalse(is_valid_order_hash(SAMPLE_ORDER_HASH[2:]))
        self.assertFalse(is_valid_order_hash(SAMPLE_ORDER_HASH + "00"))
        self.assertFalse(is_valid_order_hash(None))


if __name__ == '__main__':
    unittest.main()
