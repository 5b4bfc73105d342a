"""Records live climate API exchanges into a transcript."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from climate_recorder._types import Interaction, RequestDescriptor, Transcript, TranscriptMetadata
from climate_recorder.scrubber import scrub_transcript
from climate_recorder.store import TranscriptStore
from climate_recorder.transport import Exchange, HttpTransport

logger = logging.getLogger("climate_recorder.recorder")


class InteractionRecorder(Exchange):
    """Performs live calls and captures every successful exchange.

    Failed calls (transport errors, non-success statuses) propagate to the
    caller and leave the transcript untouched, so it only ever holds
    replayable exchanges. The transcript is written to the store on a
    committing ``close``; a run that is closed without commit leaves any
    previously stored transcript as it was.
    """

    def __init__(
        self,
        transport: HttpTransport,
        store: TranscriptStore,
        test_case_id: str,
        *,
        redact_env: Sequence[str] = (),
        redact_patterns: Sequence[str] = (),
    ) -> None:
        self._transport = transport
        self._store = store
        self._test_case_id = test_case_id
        self._redact_env = tuple(redact_env)
        self._redact_patterns = tuple(redact_patterns)
        self._transcript = Transcript(
            metadata=TranscriptMetadata(base_url=transport.base_url, test_case=test_case_id)
        )
        self._closed = False

    @property
    def recorded(self) -> int:
        return len(self._transcript.interactions)

    def send(self, request: RequestDescriptor) -> Interaction:
        interaction = self._transport.send(request)
        self._transcript.add_interaction(interaction)
        logger.info("[%d] %s", self.recorded, interaction.summary)
        return interaction

    def close(self, *, commit: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._transport.close()

        if not commit:
            logger.warning(
                "Discarding %d recorded interactions for %s (run did not complete)",
                self.recorded,
                self._test_case_id,
            )
            return

        transcript = scrub_transcript(
            self._transcript,
            redact_env=self._redact_env,
            redact_patterns=self._redact_patterns,
        )
        self._store.save(self._test_case_id, transcript)
