# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Match signal fan-out for the notification layer.

The scoring engine returns ``MatchSignal`` objects with each outcome; the
caller publishes them on a ``SignalBus`` after committing the new snapshot.
``MatchNotifier`` is a subscriber that turns signals into short messages and
hands them to an injected delivery function (push service, chat bot, ...).
The engine itself knows nothing about delivery channels.

Usage::

    bus = SignalBus()
    notifier = MatchNotifier(dry_run=True)
    bus.subscribe(notifier.notify)
    bus.publish(outcome.signals)
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from match_state import MatchSignal
from models import SignalKind

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 280

Subscriber = Callable[[MatchSignal], Any]


# ---------------------------------------------------------------------------
# Signal bus
# ---------------------------------------------------------------------------

class SignalBus:
    """Synchronous publish/subscribe for match signals.

    A subscriber that raises is logged and skipped; the remaining
    subscribers still receive the signal.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[frozenset[SignalKind] | None, Subscriber]] = []

    def subscribe(self, callback: Subscriber,
                  kinds: set[SignalKind] | None = None) -> Callable[[], None]:
        """Register ``callback`` for ``kinds`` (all kinds if None).

        Returns a function that removes the subscription.
        """
        entry = (frozenset(kinds) if kinds else None, callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, signals: list[MatchSignal]) -> int:
        """Deliver each signal to matching subscribers. Returns deliveries made."""
        delivered = 0
        for signal in signals:
            for kinds, callback in list(self._subscribers):
                if kinds is not None and signal.kind not in kinds:
                    continue
                try:
                    callback(signal)
                    delivered += 1
                except Exception as exc:
                    logger.error("Subscriber failed on %s for match %s: %s",
                                 signal.kind.value, signal.match_id, exc)
        return delivered


# ---------------------------------------------------------------------------
# Message formatting
# ---------------------------------------------------------------------------

def format_signal_message(signal: MatchSignal) -> str:
    """Build the human-readable notification text for a signal."""
    d = signal.data
    if signal.kind == SignalKind.MATCH_STARTED:
        text = f"Match started: {d.get('team1')} v {d.get('team2')}"
        if d.get("venue"):
            text += f" at {d['venue']}"
        if d.get("toss"):
            text += f". {d['toss']}"
    elif signal.kind == SignalKind.INNINGS_ENDED:
        text = (f"Innings {signal.innings} over: {d.get('batting_team')} "
                f"{d.get('runs')}/{d.get('wickets')} ({d.get('overs')} ov)")
        if signal.innings == 1:
            text += f". Target {d.get('runs', 0) + 1}"
    elif signal.kind == SignalKind.MATCH_COMPLETED:
        result = d.get("result", {})
        text = f"Match over: {result.get('description', 'result unavailable')}"
        if d.get("score"):
            text += f" ({d['score']})"
    elif signal.kind == SignalKind.PARTNERSHIP_MILESTONE:
        text = (f"{d.get('milestone')}-run partnership between {d.get('batter1')} "
                f"and {d.get('batter2')} ({d.get('runs')} off {d.get('balls')} balls)")
    else:
        text = f"{signal.kind.value}: {d}"

    if len(text) > MESSAGE_MAX_LENGTH:
        text = text[:MESSAGE_MAX_LENGTH - 1] + "…"
    return text


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------

@dataclass
class NotificationResult:
    success: bool
    kind: str
    match_id: str
    message: str
    timestamp: float
    dry_run: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "kind": self.kind,
            "match_id": self.match_id,
            "message": self.message,
            "timestamp": self.timestamp,
            "dry_run": self.dry_run,
            "error": self.error,
        }


@dataclass
class MatchNotifier:
    """Sends formatted signal messages through ``send_fn``.

    Args:
        send_fn: Delivery callable taking ``(match_id, message)``. Required
            unless ``dry_run`` is set.
        dry_run: If True, log messages without sending them.
        max_results: How many recent results to keep in ``results``.
    """
    send_fn: Callable[[str, str], Any] | None = None
    dry_run: bool = False
    max_results: int = 500
    results: deque[NotificationResult] = field(init=False)

    def __post_init__(self):
        self.results = deque(maxlen=self.max_results)

    def notify(self, signal: MatchSignal) -> NotificationResult:
        message = format_signal_message(signal)
        result = NotificationResult(
            success=True,
            kind=signal.kind.value,
            match_id=signal.match_id,
            message=message,
            timestamp=time.time(),
            dry_run=self.dry_run,
        )

        if self.dry_run:
            logger.info("[DRY-RUN] Would notify match %s: %s", signal.match_id, message)
        elif self.send_fn is None:
            result.success = False
            result.error = "No delivery function configured"
            logger.warning("Dropping %s for match %s: no delivery function",
                           signal.kind.value, signal.match_id)
        else:
            try:
                self.send_fn(signal.match_id, message)
                logger.info("Notification sent for match %s: %s", signal.match_id, message)
            except Exception as exc:
                result.success = False
                result.error = str(exc)
                logger.error("Notification delivery failed for match %s: %s",
                             signal.match_id, exc)

        self.results.append(result)
        return result

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.success and not r.dry_run)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.success)
