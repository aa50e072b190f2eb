import logging
from typing import Callable, Optional
from wordlinks.terminal.clock import Clock, Timer

logger = logging.getLogger(__name__)

OnDone = Optional[Callable[[], None]]


class LineRenderer:
    """
    One row of the terminal. Animates its text a character per clock tick.

    Starting any animation (or setting text immediately) cancels the previous
    animation and drops its completion callback without calling it.
    """

    def __init__(self, clock: Clock, line_number: int):
        self.clock = clock
        self.line_number = line_number
        self.content = ""          # Final text this line is headed to
        self.target_content = ""   # Text the current phase animates over
        self.visible_content = ""
        self._timer: Optional[Timer] = None
        self._on_done: OnDone = None

    @property
    def is_animating(self) -> bool:
        return self._timer is not None

    def set_immediate(self, text: str):
        self._cancel()
        self.content = text
        self.target_content = text
        self.visible_content = text

    def clear(self):
        self.set_immediate("")

    def typewrite(self, text: str, delay: float, on_done: OnDone = None):
        self._cancel()

        if not text:
            self.set_immediate("")
            self._on_done = on_done
            self._timer = self.clock.call_later(0.0, self._finish)
            return

        self.content = text
        self.target_content = text
        self.visible_content = ""
        self._on_done = on_done
        self._schedule_type(delay)

    def replace(self, text: str, wipe_delay: float, type_delay: float, on_done: OnDone = None):
        self._cancel()

        if not self.visible_content:
            self.typewrite(text, type_delay, on_done)
            return

        # Wipe runs over what is on screen; the new text is typed afterwards
        self.content = text
        self.target_content = self.visible_content
        self._on_done = on_done
        self._schedule_wipe(wipe_delay, type_delay)

    def _schedule_type(self, delay: float):
        self._timer = self.clock.call_later(delay, lambda: self._type_tick(delay))

    def _type_tick(self, delay: float):
        shown = len(self.visible_content) + 1
        self.visible_content = self.target_content[:shown]
        if shown >= len(self.target_content):
            self._finish()
        else:
            self._schedule_type(delay)

    def _schedule_wipe(self, wipe_delay: float, type_delay: float):
        self._timer = self.clock.call_later(
            wipe_delay, lambda: self._wipe_tick(wipe_delay, type_delay)
        )

    def _wipe_tick(self, wipe_delay: float, type_delay: float):
        self.visible_content = self.visible_content[:-1]
        if self.visible_content:
            self._schedule_wipe(wipe_delay, type_delay)
            return

        # Hand the pending callback over to the typing phase
        on_done = self._on_done
        self._timer = None
        self._on_done = None
        self.typewrite(self.content, type_delay, on_done)

    def _finish(self):
        on_done = self._on_done
        self._timer = None
        self._on_done = None
        self.visible_content = self.target_content
        if on_done:
            on_done()

    def _cancel(self):
        if self._timer is not None:
            logger.debug(f"Line {self.line_number}: cancelling animation")
            self._timer.cancel()
        self._timer = None
        self._on_done = None
