"""Program cards and the deck/hand/discard rotation."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import FULL_DECK_DEFINITION, HAND_SIZE
from .events import Notifier


logger = logging.getLogger(__name__)


class CardType(Enum):
    MOVE1 = "move1"
    MOVE2 = "move2"
    BACK1 = "back1"
    TURN_LEFT = "turnL"
    TURN_RIGHT = "turnR"
    U_TURN = "uturn"


@dataclass(frozen=True)
class Card:
    type: CardType
    text: str
    instance_id: str


class CardSupply:
    """Shuffle, draw and discard. One instance per game session."""

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        hand_size: int = HAND_SIZE,
        deck_definition: Sequence[Mapping[str, str]] = FULL_DECK_DEFINITION,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.hand_limit = hand_size
        self.deck_definition = list(deck_definition)
        self.notifier = notifier or Notifier()
        self._rng = random.Random(seed)
        self._deck: List[Dict[str, str]] = []
        self._hand: List[Card] = []
        self._discard: List[Card] = []
        self._instances: Dict[str, Card] = {}
        self._counter = 0

    @property
    def hand(self) -> List[Card]:
        return list(self._hand)

    @property
    def deck_size(self) -> int:
        return len(self._deck)

    @property
    def discard_size(self) -> int:
        return len(self._discard)

    @property
    def hand_size(self) -> int:
        return len(self._hand)

    def init(self) -> List[Card]:
        """Reset every pile, shuffle a fresh deck and deal the opening hand."""

        self._deck = [dict(entry) for entry in self.deck_definition]
        self._shuffle(self._deck)
        self._hand = []
        self._discard = []
        self._instances = {}
        self._counter = 0
        logger.debug("Deck initialised with %d cards", len(self._deck))
        return self.draw(self.hand_limit)

    def _shuffle(self, cards: List) -> None:
        logger.debug("Shuffling %d cards", len(cards))
        self._rng.shuffle(cards)

    def _announce(self) -> None:
        self.notifier.hand_updated(self.hand)
        self.notifier.card_counts_updated(self.deck_size, self.discard_size, len(self._hand))

    def draw(self, count: int) -> List[Card]:
        drawn: List[Card] = []
        for _ in range(count):
            if not self._deck:
                if not self._discard:
                    logger.warning("Deck and discard pile are empty, cannot draw more cards")
                    break
                logger.debug("Deck empty, reshuffling %d discarded cards", len(self._discard))
                self._deck = [
                    {"type": card.type.value, "text": card.text} for card in self._discard
                ]
                # Reshuffled cards come back under fresh ids.
                for card in self._discard:
                    self._instances.pop(card.instance_id, None)
                self._discard = []
                self._shuffle(self._deck)
            entry = self._deck.pop()
            card = Card(
                type=CardType(entry["type"]),
                text=entry["text"],
                instance_id=f"card-instance-{self._counter}",
            )
            self._counter += 1
            self._instances[card.instance_id] = card
            self._hand.append(card)
            drawn.append(card)
        logger.debug(
            "Drew %d. Hand: %d. Deck: %d. Discard: %d.",
            len(drawn),
            len(self._hand),
            len(self._deck),
            len(self._discard),
        )
        self._announce()
        return drawn

    def replenish_hand(self) -> List[Card]:
        return self.draw(max(0, self.hand_limit - len(self._hand)))

    def get_card(self, instance_id: str) -> Card:
        try:
            return self._instances[instance_id]
        except KeyError:
            raise KeyError(f"Unknown card instance: {instance_id}") from None

    def take_from_hand(self, instance_ids: Iterable[str]) -> List[Card]:
        """Move the given hand cards out of the hand, in the order given."""

        ids = list(instance_ids)
        held = {card.instance_id for card in self._hand}
        missing = [card_id for card_id in ids if card_id not in held]
        if missing:
            raise KeyError(f"Cards not in hand: {', '.join(missing)}")
        if len(set(ids)) != len(ids):
            raise ValueError("A card can only be programmed once.")
        taken = [self.get_card(card_id) for card_id in ids]
        self._hand = [card for card in self._hand if card.instance_id not in set(ids)]
        self._announce()
        return taken

    def return_to_hand(self, instance_id: str) -> bool:
        card = self.get_card(instance_id)
        if any(held.instance_id == instance_id for held in self._hand):
            return False
        self._hand.append(card)
        self._announce()
        return True

    def discard(self, instance_ids: Iterable[str]) -> int:
        count = 0
        for instance_id in instance_ids:
            card = self._instances.get(instance_id)
            if card is None:
                logger.warning("Discard: cannot find card data for %s", instance_id)
                continue
            if any(held.instance_id == instance_id for held in self._hand):
                logger.warning("Card %s found in hand during discard, removing", instance_id)
                self._hand = [held for held in self._hand if held.instance_id != instance_id]
            self._discard.append(card)
            count += 1
        logger.debug("Discarded %d cards. Discard size: %d", count, len(self._discard))
        self.notifier.card_counts_updated(self.deck_size, self.discard_size, len(self._hand))
        return count
