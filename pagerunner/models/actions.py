"""Closed set of page interactions, one per request mode.

A :class:`NavigateRequest` resolves its ``mode`` into exactly one of these
variants at validation time, so the dispatcher never has to re-check which
fields a mode needs.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class PixelClick:
    x: float
    y: float


@dataclass(frozen=True)
class SelectorClick:
    selector: str


@dataclass(frozen=True)
class SelectorLoad:
    selector: str


@dataclass(frozen=True)
class FullBodyLoad:
    pass


Action = Union[PixelClick, SelectorClick, SelectorLoad, FullBodyLoad]


@dataclass(frozen=True)
class ExtractedContent:
    html: str
    url: str
    title: Optional[str] = None
