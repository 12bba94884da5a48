"""Observer interface used by the core to describe state changes.

Every committed change produces exactly one call. Collaborators such as the
pygame viewer subclass :class:`Notifier` and override the callbacks they need.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Sequence, Tuple

if TYPE_CHECKING:
    from .cards import Card
    from .tiles import Direction


logger = logging.getLogger(__name__)


class Notifier:
    """No-op base implementation of every notification."""

    def robot_moved(self, row: int, col: int, orientation: "Direction") -> None:
        pass

    def robot_turned(self, row: int, col: int, orientation: "Direction") -> None:
        pass

    def health_changed(self, health: int, max_health: int) -> None:
        pass

    def lives_changed(self, lives: int) -> None:
        pass

    def flag_visited(self, flag_key: Tuple[int, int], highest_order: int) -> None:
        pass

    def power_state_changed(self, status: str) -> None:
        pass

    def game_over(self, won: bool) -> None:
        pass

    def program_execution_finished(self) -> None:
        pass

    def hand_updated(self, cards: Sequence["Card"]) -> None:
        pass

    def card_counts_updated(self, deck: int, discard: int, hand: int) -> None:
        pass


class RecordingNotifier(Notifier):
    """Keeps every notification as ``(name, payload)`` in arrival order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def _record(self, name: str, **payload: Any) -> None:
        self.events.append((name, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]

    def clear(self) -> None:
        self.events.clear()

    def robot_moved(self, row, col, orientation):
        self._record("robot_moved", row=row, col=col, orientation=orientation.label)

    def robot_turned(self, row, col, orientation):
        self._record("robot_turned", row=row, col=col, orientation=orientation.label)

    def health_changed(self, health, max_health):
        self._record("health_changed", health=health, max_health=max_health)

    def lives_changed(self, lives):
        self._record("lives_changed", lives=lives)

    def flag_visited(self, flag_key, highest_order):
        self._record("flag_visited", flag_key=flag_key, highest_order=highest_order)

    def power_state_changed(self, status):
        self._record("power_state_changed", status=status)

    def game_over(self, won):
        self._record("game_over", won=won)

    def program_execution_finished(self):
        self._record("program_execution_finished")

    def hand_updated(self, cards):
        self._record("hand_updated", cards=[card.instance_id for card in cards])

    def card_counts_updated(self, deck, discard, hand):
        self._record("card_counts_updated", deck=deck, discard=discard, hand=hand)


class FanoutNotifier(Notifier):
    """Forward every notification to several listeners.

    A listener that raises is logged and skipped so a rendering bug cannot
    abort a turn half way through.
    """

    def __init__(self, listeners: Iterable[Notifier] = ()) -> None:
        self.listeners: List[Notifier] = list(listeners)

    def add(self, listener: Notifier) -> None:
        self.listeners.append(listener)

    def _dispatch(self, name: str, *args: Any) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, name)(*args)
            except Exception:
                logger.exception("Error in listener %r for %s", listener, name)

    def robot_moved(self, row, col, orientation):
        self._dispatch("robot_moved", row, col, orientation)

    def robot_turned(self, row, col, orientation):
        self._dispatch("robot_turned", row, col, orientation)

    def health_changed(self, health, max_health):
        self._dispatch("health_changed", health, max_health)

    def lives_changed(self, lives):
        self._dispatch("lives_changed", lives)

    def flag_visited(self, flag_key, highest_order):
        self._dispatch("flag_visited", flag_key, highest_order)

    def power_state_changed(self, status):
        self._dispatch("power_state_changed", status)

    def game_over(self, won):
        self._dispatch("game_over", won)

    def program_execution_finished(self):
        self._dispatch("program_execution_finished")

    def hand_updated(self, cards):
        self._dispatch("hand_updated", cards)

    def card_counts_updated(self, deck, discard, hand):
        self._dispatch("card_counts_updated", deck, discard, hand)
