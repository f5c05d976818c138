"""Thread-safe generators of RTP sequence numbers."""

from __future__ import annotations

import random
import threading

# Only half the sequence space is used for a random start so SRTP decryption
# does not trip over an early rollover combined with packet loss.
MAX_INITIAL_RANDOM_SEQUENCE_NUMBER = (1 << 15) - 1

_random = random.SystemRandom()


class Sequencer:
    """Hands out consecutive 16-bit sequence numbers and counts wraparounds."""

    def __init__(self, last_sequence_number: int = 0) -> None:
        self._sequence_number = last_sequence_number & 0xFFFF
        self._roll_over_count = 0
        self._lock = threading.Lock()

    def next_sequence_number(self) -> int:
        with self._lock:
            self._sequence_number = (self._sequence_number + 1) & 0xFFFF
            if self._sequence_number == 0:
                self._roll_over_count += 1
            return self._sequence_number

    def roll_over_count(self) -> int:
        """Number of times the sequence number has wrapped to zero."""
        with self._lock:
            return self._roll_over_count


def new_random_sequencer() -> Sequencer:
    """Return a sequencer starting from a random point in the lower half of the range."""
    return Sequencer(_random.randrange(MAX_INITIAL_RANDOM_SEQUENCE_NUMBER))


def new_fixed_sequencer(start: int) -> Sequencer:
    """Return a sequencer whose first number is ``start``."""
    return Sequencer((start - 1) & 0xFFFF)