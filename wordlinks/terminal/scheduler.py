import logging
from collections import deque
from typing import Callable, Deque, List, Optional
from wordlinks.terminal.clock import Clock, Timer
from wordlinks.terminal.commands import (
    ClearAll,
    ClearLine,
    ClearRange,
    Command,
    Completion,
    Delay,
    Parallel,
    ReplaceLine,
    SetLine,
    WriteLine,
)
from wordlinks.terminal.line import LineRenderer

logger = logging.getLogger(__name__)

TOTAL_LINES = 30
VISIBLE_LINES = 25  # Game content never addresses the rows past this

DEFAULT_TYPE_SPEED = 0.025
DEFAULT_WIPE_SPEED = 0.015


class TerminalScheduler:
    """
    Serializes display commands against a fixed grid of lines.

    Commands run strictly one after another. Asynchronous ones (typing, wiping,
    delays, parallel groups) resume the queue from their own completion
    callback, so the queue is never polled.
    """

    def __init__(self, clock: Clock, total_lines: int = TOTAL_LINES, visible_lines: int = VISIBLE_LINES):
        self.clock = clock
        self.total_lines = total_lines
        self.visible_lines = min(visible_lines, total_lines)
        self.lines = [LineRenderer(clock, n) for n in range(total_lines)]

        self._queue: Deque[Command] = deque()
        self._active: Optional[Command] = None
        self._generation = 0
        self._pumping = False
        self._delay_timer: Optional[Timer] = None

    # Queue API

    def enqueue(self, command: Command):
        logger.debug(f"Enqueue {type(command).__name__}, queue size {len(self._queue) + 1}")
        self._queue.append(command)
        self._pump()

    def write_line(self, index: int, text: str, speed: float = DEFAULT_TYPE_SPEED):
        self.enqueue(WriteLine(index=index, text=text, speed=speed))

    def replace_line(
        self,
        index: int,
        text: str,
        wipe_speed: float = DEFAULT_WIPE_SPEED,
        type_speed: float = DEFAULT_TYPE_SPEED,
    ):
        self.enqueue(ReplaceLine(index=index, text=text, wipe_speed=wipe_speed, type_speed=type_speed))

    def set_line(self, index: int, text: str):
        self.enqueue(SetLine(index=index, text=text))

    def clear_line(self, index: int):
        self.enqueue(ClearLine(index=index))

    def clear_range(self, start: int, end: int):
        self.enqueue(ClearRange(start=start, end=end))

    def clear_all(self):
        self.enqueue(ClearAll())

    def delay(self, duration: float):
        self.enqueue(Delay(duration=duration))

    def parallel(self, commands: List[Command]):
        self.enqueue(Parallel(commands=commands))

    def on_completion(self, callback: Callable[[], None]):
        self.enqueue(Completion(callback=callback))

    def write_lines(self, start: int, lines: List[str], speed: float = DEFAULT_TYPE_SPEED):
        for offset, text in enumerate(lines):
            if start + offset >= self.total_lines:
                break
            self.write_line(start + offset, text, speed)

    def clear_all_immediate(self):
        """
        Wipes the screen now and drops everything queued or in flight.
        Completions of dropped commands never fire.
        """
        self._generation += 1
        self._queue.clear()
        self._active = None
        if self._delay_timer is not None:
            self._delay_timer.cancel()
            self._delay_timer = None
        for line in self.lines:
            line.clear()

    # Observers

    @property
    def is_animating(self) -> bool:
        return bool(self._queue) or self._active is not None or any(l.is_animating for l in self.lines)

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    def content(self, index: int) -> str:
        if not self._in_range(index):
            return ""
        return self.lines[index].content

    def visible(self, index: int) -> str:
        if not self._in_range(index):
            return ""
        return self.lines[index].visible_content

    def is_line_animating(self, index: int) -> bool:
        return self._in_range(index) and self.lines[index].is_animating

    def snapshot(self) -> List[str]:
        return [line.visible_content for line in self.lines[: self.visible_lines]]

    # Processing

    def _in_range(self, index: int) -> bool:
        return 0 <= index < self.total_lines

    def _pump(self):
        if self._pumping:
            return
        self._pumping = True
        try:
            while self._active is None and self._queue:
                command = self._queue.popleft()
                self._active = command
                self._execute(command, self._generation)
        finally:
            self._pumping = False

    def _advance(self, command: Command, generation: int):
        if generation != self._generation or self._active is not command:
            return  # Dropped by clear_all_immediate
        self._active = None
        self._pump()

    def _execute(self, command: Command, generation: int):
        done = lambda: self._advance(command, generation)

        if isinstance(command, (WriteLine, ReplaceLine)):
            if not self._in_range(command.index):
                logger.debug(f"Line index {command.index} out of range, skipping")
                done()
                return
            self._animate(command, done)

        elif isinstance(command, (SetLine, ClearLine, ClearRange, ClearAll)):
            self._apply_immediate(command)
            done()

        elif isinstance(command, Delay):
            def fire():
                self._delay_timer = None
                done()
            self._delay_timer = self.clock.call_later(command.duration, fire)

        elif isinstance(command, Parallel):
            self._execute_parallel(command.commands, done)

        elif isinstance(command, Completion):
            try:
                command.callback()
            except Exception as e:
                logger.exception(f"Completion callback failed: {e}")
            done()

        else:
            logger.error(f"Unknown display command {command!r}, skipping")
            done()

    def _animate(self, command: Command, on_done: Callable[[], None]):
        line = self.lines[command.index]
        if isinstance(command, WriteLine):
            line.typewrite(command.text, command.speed, on_done)
        else:
            line.replace(command.text, command.wipe_speed, command.type_speed, on_done)

    def _apply_immediate(self, command: Command):
        if isinstance(command, SetLine):
            if self._in_range(command.index):
                self.lines[command.index].set_immediate(command.text)
        elif isinstance(command, ClearLine):
            if self._in_range(command.index):
                self.lines[command.index].clear()
        elif isinstance(command, ClearRange):
            for index in range(max(0, command.start), min(command.end, self.total_lines - 1) + 1):
                self.lines[index].clear()
        else:
            for line in self.lines:
                line.clear()

    def _execute_parallel(self, members: List[Command], on_done: Callable[[], None]):
        if not members:
            on_done()
            return

        # Fan-in: the group finishes when the last member reports back
        remaining = [len(members)]

        def member_done():
            remaining[0] -= 1
            if remaining[0] == 0:
                on_done()

        for member in members:
            if isinstance(member, (WriteLine, ReplaceLine)):
                if self._in_range(member.index):
                    self._animate(member, member_done)
                else:
                    member_done()
            elif isinstance(member, (SetLine, ClearLine)):
                self._apply_immediate(member)
                member_done()
            else:
                logger.warning(f"{type(member).__name__} is not allowed inside Parallel, ignoring it")
                member_done()
