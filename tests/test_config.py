import unittest
from order_protocol.core.config import ProtocolConfig

class TestProtocolConfig(unittest.TestCase):
    def test_defaults(self):
        config = ProtocolConfig.from_env({})
        self.assertIsNone(config.exchange_address)
        self.assertEqual(config.redis_url, "redis://localhost:6379/0")
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.log_format, "json")

    def test_environment_overrides(self):
        config = ProtocolConfig.from_env({
            "ORDER_PROTOCOL_EXCHANGE_ADDRESS": "0x48bacb9266a570d521063ef5dd96e61686dbe788",
            "ORDER_PROTOCOL_REDIS_URL": "redis://cache:6379/2",
            "ORDER_PROTOCOL_LOG_LEVEL": "DEBUG",
            "ORDER_PROTOCOL_ORDERBOOK_URL": "wss://api.relayer.test/v0/ws",
        })
        self.assertEqual(config.exchange_address, "0x48bacb9266a570d521063ef5dd96e61686dbe788")
        self.assertEqual(config.redis_url, "redis://cache:6379/2")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.orderbook_url, "wss://api.relayer.test/v0/ws")
        self.assertEqual(config.journal_path, "order_journal.jsonl")

if __name__ == '__main__':
    unittest.main()
