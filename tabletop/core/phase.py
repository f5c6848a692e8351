from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Coarse game stages. Which intents are accepted depends on the phase."""
    MENU = "menu"
    SETUP_P1 = "setup-p1"
    PASS_P2 = "pass-p2"          # pass-device screen before player 2 sets up
    SETUP_P2 = "setup-p2"
    PLAYING = "playing"
    PASS_DEVICE = "pass-device"  # pass-device screen between turns (two-player)
    GAME_OVER = "game-over"


TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.MENU: frozenset({Phase.SETUP_P1}),
    Phase.SETUP_P1: frozenset({Phase.PASS_P2, Phase.PLAYING, Phase.SETUP_P1, Phase.MENU}),
    Phase.PASS_P2: frozenset({Phase.SETUP_P2, Phase.SETUP_P1, Phase.MENU}),
    Phase.SETUP_P2: frozenset({Phase.PLAYING, Phase.SETUP_P1, Phase.MENU}),
    Phase.PLAYING: frozenset({Phase.PASS_DEVICE, Phase.GAME_OVER, Phase.SETUP_P1, Phase.MENU}),
    Phase.PASS_DEVICE: frozenset({Phase.PLAYING, Phase.SETUP_P1, Phase.MENU}),
    # terminal: only an explicit reset (back to setup) or menu leaves it
    Phase.GAME_OVER: frozenset({Phase.SETUP_P1, Phase.MENU}),
}


class InvalidTransition(ValueError):
    """Raised when a phase change is not in the transition table."""

    def __init__(self, current: Phase, target: Phase) -> None:
        super().__init__(f"Illegal phase transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class PhaseMachine:
    """
    Closed state machine over Phase.

    Controllers ask can_enter() before acting on user intents and call
    enter() to move; enter() raises InvalidTransition for anything the
    table does not allow.
    """

    def __init__(self, start: Phase = Phase.MENU) -> None:
        self._phase = start

    @property
    def phase(self) -> Phase:
        return self._phase

    def can_enter(self, target: Phase) -> bool:
        return target in TRANSITIONS[self._phase]

    def enter(self, target: Phase) -> Phase:
        if not self.can_enter(target):
            raise InvalidTransition(self._phase, target)
        logger.debug("phase %s -> %s", self._phase.value, target.value)
        self._phase = target
        return target

    def is_(self, *phases: Phase) -> bool:
        return self._phase in phases
