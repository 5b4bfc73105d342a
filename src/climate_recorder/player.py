"""Replays recorded climate API exchanges from a transcript."""

from __future__ import annotations

import logging
from collections.abc import Collection

from climate_recorder._types import Interaction, RequestDescriptor, Transcript
from climate_recorder.errors import TranscriptExhausted, TranscriptMismatch
from climate_recorder.matcher import requests_match
from climate_recorder.store import TranscriptStore
from climate_recorder.transport import Exchange

logger = logging.getLogger("climate_recorder.player")


class InteractionPlayer(Exchange):
    """Serve interactions in recorded order, never touching the network.

    Each request must match the next recorded one; a stale transcript fails
    with ``TranscriptMismatch`` instead of handing back the wrong fixture.
    """

    def __init__(self, transcript: Transcript, *, ignore_params: Collection[str] = ()) -> None:
        self._interactions: tuple[Interaction, ...] = tuple(transcript.interactions)
        self._ignore_params = frozenset(ignore_params)
        self._cursor = 0
        self.test_case = transcript.metadata.test_case

    @classmethod
    def from_store(
        cls,
        store: TranscriptStore,
        test_case_id: str,
        *,
        ignore_params: Collection[str] = (),
    ) -> InteractionPlayer:
        return cls(store.load(test_case_id), ignore_params=ignore_params)

    @property
    def position(self) -> int:
        return self._cursor

    @property
    def remaining(self) -> int:
        return len(self._interactions) - self._cursor

    @property
    def all_consumed(self) -> bool:
        """True if every recorded interaction has been replayed."""
        return self._cursor >= len(self._interactions)

    def send(self, request: RequestDescriptor) -> Interaction:
        if self.all_consumed:
            logger.warning("[%d] %s -> EXHAUSTED", self._cursor + 1, request)
            raise TranscriptExhausted(len(self._interactions))

        expected = self._interactions[self._cursor]
        if not requests_match(expected.request, request, self._ignore_params):
            logger.warning("[%d] %s -> NO MATCH", self._cursor + 1, request)
            raise TranscriptMismatch(expected.request, request, self._cursor)

        self._cursor += 1
        logger.info("[%d] %s (replayed)", self._cursor, expected.summary)
        return expected

    def close(self, *, commit: bool = True) -> None:
        if not self.all_consumed:
            logger.warning(
                "%d recorded interactions were NOT consumed%s",
                self.remaining,
                f" ({self.test_case})" if self.test_case else "",
            )
