from typing import Callable, Union
from pydantic import BaseModel, ConfigDict, Field


class DisplayCommand(BaseModel):
    model_config = ConfigDict(frozen=True)


class WriteLine(DisplayCommand):
    index: int
    text: str
    speed: float = 0.025          # Seconds per character


class ReplaceLine(DisplayCommand):
    index: int
    text: str
    wipe_speed: float = 0.015
    type_speed: float = 0.025


class SetLine(DisplayCommand):
    index: int
    text: str


class ClearLine(DisplayCommand):
    index: int


class ClearRange(DisplayCommand):
    start: int
    end: int                      # Inclusive


class ClearAll(DisplayCommand):
    pass


class Delay(DisplayCommand):
    duration: float = Field(ge=0.0)


ParallelMember = Union[WriteLine, ReplaceLine, SetLine, ClearLine]


class Parallel(DisplayCommand):
    commands: list[ParallelMember]


class Completion(DisplayCommand):
    callback: Callable[[], None]


Command = Union[
    WriteLine, ReplaceLine, SetLine, ClearLine, ClearRange, ClearAll, Delay, Parallel, Completion
]
