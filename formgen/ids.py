#!/usr/bin/env python3
"""Element ID generation for presentation markup.

Every generation pass owns one IdGenerator; no counter is shared between
passes or threads. IDs are ``<base><counter:03d>`` where the base defaults
to the creation time in milliseconds.
"""

import time


class IdGenerator:
    """Sequential element-id source for one generation pass."""

    def __init__(self, base=None):
        if base is None:
            base = int(time.time() * 1000)
        self.base = str(base)
        self.counter = 0

    def next_id(self) -> str:
        self.counter += 1
        return f"{self.base}{self.counter:03d}"

    def reset(self):
        self.counter = 0


def ensure_generator(id_generator=None) -> IdGenerator:
    """Return ``id_generator`` or a fresh time-based generator."""
    return id_generator if id_generator is not None else IdGenerator()
