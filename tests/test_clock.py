import time
import unittest
from order_protocol.core.clock import Clock

class TestClock(unittest.TestCase):
    def test_now_seconds_tracks_epoch(self):
        now = Clock.now_seconds()
        self.assertIsInstance(now, int)
        self.assertLessEqual(abs(now - int(time.time())), 1)

    def test_epoch_microseconds(self):
        self.assertGreater(Clock.now_epoch_us(), Clock.now_seconds() * 1_000_000 - 1_000_000)

    def test_expiration_boundary(self):
        # Expired from the expiration second onward
        self.assertFalse(Clock.is_expired(1000, 999))
        self.assertTrue(Clock.is_expired(1000, 1000))
        self.assertTrue(Clock.is_expired(1000, 1001))

if __name__ == '__main__':
    unittest.main()
