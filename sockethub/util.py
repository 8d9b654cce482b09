"""Helpers for cluster adapters: option encoding, identifiers and timers."""

from __future__ import annotations

import base64
import secrets
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from .types import BroadcastFlags, BroadcastOptions, Room


@dataclass
class PacketOptions:
    """Serialisable form of broadcast options sent across the cluster."""

    rooms: list[Room] = field(default_factory=list)
    except_rooms: list[Room] = field(default_factory=list)
    flags: BroadcastFlags | None = None


class Timer:
    """A cancellable, refreshable timer running its callback on a thread.

    The delay is in seconds. A repeating timer fires every ``delay`` seconds
    until cancelled.
    """

    def __init__(self, callback: Callable[[], Any], delay: float, repeat: bool = False) -> None:
        self._callback = callback
        self._delay = max(0.0, float(delay))
        self._repeat = repeat
        self._lock = threading.Lock()
        self._generation = 0
        self._cancelled = False
        self._thread: threading.Timer | None = None
        with self._lock:
            self._schedule()

    def _schedule(self) -> None:
        self._generation += 1
        generation = self._generation
        thread = threading.Timer(self._delay, self._fire, args=(generation,))
        thread.daemon = True
        self._thread = thread
        thread.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._cancelled or generation != self._generation:
                return
            if self._repeat:
                self._schedule()
            else:
                self._thread = None
        self._callback()

    @property
    def active(self) -> bool:
        """Whether the timer is still scheduled to fire."""
        with self._lock:
            return not self._cancelled and self._thread is not None

    def refresh(self) -> Timer:
        """Restart the countdown, re-arming the timer even if it already fired."""
        with self._lock:
            if self._cancelled:
                return self
            if self._thread is not None:
                self._thread.cancel()
            self._schedule()
        return self

    def cancel(self) -> None:
        """Stop the timer for good."""
        with self._lock:
            self._cancelled = True
            if self._thread is not None:
                self._thread.cancel()
                self._thread = None


def set_timeout(callback: Callable[[], Any], delay: float) -> Timer:
    """Call ``callback`` once after ``delay`` seconds."""
    return Timer(callback, delay, repeat=False)


def set_interval(callback: Callable[[], Any], delay: float) -> Timer:
    """Call ``callback`` every ``delay`` seconds."""
    return Timer(callback, delay, repeat=True)


def clear_timer(timer: Timer | None) -> None:
    """Cancel a timer; ``None`` is accepted and ignored."""
    if timer is not None:
        timer.cancel()


def encode_options(opts: BroadcastOptions | None) -> PacketOptions:
    """Turn broadcast options into their serialisable form."""
    if opts is None:
        return PacketOptions()
    return PacketOptions(
        rooms=list(opts.rooms) if opts.rooms is not None else [],
        except_rooms=list(opts.except_rooms) if opts.except_rooms is not None else [],
        flags=opts.flags,
    )


def decode_options(opts: PacketOptions | None) -> BroadcastOptions:
    """Turn serialised packet options back into broadcast options."""
    if opts is None:
        return BroadcastOptions()
    return BroadcastOptions(
        rooms=set(opts.rooms or ()),
        except_rooms=set(opts.except_rooms or ()),
        flags=opts.flags,
    )


def random_id() -> str:
    """Return 8 random bytes as lower-case hexadecimal."""
    return secrets.token_hex(8)


def uid2(length: int) -> str:
    """Return ``length`` random bytes as unpadded URL-safe base64."""
    if length < 0:
        raise ValueError("length must not be negative")
    raw = secrets.token_bytes(length)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")