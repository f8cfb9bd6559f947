# Role: Playback over a generated replay. Steps through ConversationStates in order, hands each one to the
# OverlaySync, and supports pause/resume without losing position. A step always finishes before a pause is honored.

from __future__ import annotations

import time
from typing import Callable, List, Optional

from tripreplay.core.overlay_sync import OverlaySync
from tripreplay.models.message import Message
from tripreplay.models.replay import ConversationReplay, ConversationState

StepListener = Callable[[ConversationState], None]


class ReplayPlayer:
    def __init__(
        self,
        replay: ConversationReplay,
        sync: Optional[OverlaySync] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.replay = replay
        self.sync = sync or OverlaySync()
        self._sleep = sleep
        self._listeners: List[StepListener] = []
        # Index of the next state to apply.
        self.position = 0
        self.paused = True

    @property
    def states(self) -> List[ConversationState]:
        return self.replay.states

    @property
    def finished(self) -> bool:
        return self.position >= len(self.states)

    @property
    def current(self) -> Optional[ConversationState]:
        return self.states[self.position - 1] if self.position > 0 else None

    def on_step(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    def displayed_messages(self) -> List[Message]:
        # Key line: system messages carry state but are never shown.
        return [s.message for s in self.states[: self.position] if s.message.role != "system"]

    def step(self) -> Optional[ConversationState]:
        if self.finished:
            return None
        state = self.states[self.position]
        self.sync.apply_state(state)
        self.position += 1
        for listener in list(self._listeners):
            listener(state)
        return state

    def play(self, max_steps: Optional[int] = None) -> int:
        # 1) Un-pause and advance until finished, paused (e.g. by a listener) or max_steps
        # 2) Sleep delayMs between steps, never after the last one
        self.paused = False
        delay = self.replay.replay_config.delayMs / 1000
        played = 0
        while not self.paused and not self.finished:
            if max_steps is not None and played >= max_steps:
                break
            self.step()
            played += 1
            if delay and not self.paused and not self.finished:
                self._sleep(delay)
        self.paused = True
        return played

    def pause(self) -> None:
        self.paused = True

    def resume(self, max_steps: Optional[int] = None) -> int:
        return self.play(max_steps=max_steps)

    def reset(self) -> None:
        self.position = 0
        self.paused = True
        self.sync.reset()
