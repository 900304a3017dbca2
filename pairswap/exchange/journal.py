"""
All-or-nothing execution over a set of stateful participants.

A participant is anything exposing ``snapshot() -> state`` and
``restore(state)``: asset tokens, claim ledgers, pairs, order books.
``atomic`` captures every participant on entry; if an exception escapes the
block, each participant is restored (last captured first) and the exception
propagates unchanged.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Protocol, Tuple

logger = logging.getLogger(__name__)


class Participant(Protocol):
    def snapshot(self) -> Any: ...
    def restore(self, snapshot: Any) -> None: ...


@contextmanager
def atomic(*participants: Participant) -> Iterator[None]:
    seen = set()
    saved: List[Tuple[Participant, Any]] = []
    for p in participants:
        if id(p) in seen:
            continue
        seen.add(id(p))
        saved.append((p, p.snapshot()))
    try:
        yield
    except BaseException as exc:
        for p, snap in reversed(saved):
            p.restore(snap)
        logger.warning("Operation rolled back: %s: %s", type(exc).__name__, exc)
        raise
