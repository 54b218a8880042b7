from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, assert_never

from pqrunner.stream.chunks import (
    ActionChunk,
    ArtifactChunk,
    Chunk,
    CompleteChunk,
    ErrorChunk,
    MessageChunk,
)
from pqrunner.stream.sentences import extract_last_two_sentences
from pqrunner.ui.presenter import NullPresenter, Presenter

logger = logging.getLogger(__name__)


class FoldState(enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FINISHED = "finished"


@dataclass
class QueryResult:
    """Aggregated output of one question's stream."""

    question: str
    final_message: Optional[str] = None
    text_between_last_two_artifacts: Optional[str] = None
    last_two_sentences: Optional[str] = None
    all_text: str = ""
    artifact_count: int = 0
    errors: List[str] = field(default_factory=list)
    completed: bool = False
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors


class StreamFold:
    """
    Folds one question's chunks, in arrival order, into a QueryResult.

    IDLE until the first chunk, STREAMING while chunks arrive, FINISHED after a
    complete chunk or finish(). Once FINISHED, feed() ignores further chunks
    and returns False so the caller can stop pulling from the stream.
    """

    def __init__(self, question: str, presenter: Optional[Presenter] = None, compute_sentences: bool = True):
        self.question = question
        self.presenter = presenter or NullPresenter()
        self.compute_sentences = compute_sentences

        self.state = FoldState.IDLE
        self._all_text: List[str] = []
        self._since_last_artifact: List[str] = []
        self._seen_artifact = False
        self._ignored = 0
        self.result = QueryResult(question=question)

    @property
    def all_text(self) -> str:
        return "".join(self._all_text)

    @property
    def finished(self) -> bool:
        return self.state is FoldState.FINISHED

    def feed(self, chunk: Chunk) -> bool:
        """Apply one chunk. Returns False once the fold no longer accepts chunks."""
        if self.state is FoldState.FINISHED:
            self._ignored += 1
            logger.debug("Ignoring %s after completion for question=%r", chunk.type, self.question)
            return False
        self.state = FoldState.STREAMING

        if isinstance(chunk, (MessageChunk, ActionChunk)):
            self._on_text(chunk)
        elif isinstance(chunk, ArtifactChunk):
            self._on_artifact(chunk)
        elif isinstance(chunk, CompleteChunk):
            self.result.final_message = chunk.message
            self.result.completed = True
            self.state = FoldState.FINISHED
        elif isinstance(chunk, ErrorChunk):
            logger.warning("Stream error chunk for question=%r: %s", self.question, chunk.error)
            self.result.errors.append(chunk.error)
            self.presenter.show_error(chunk.error)
        else:
            assert_never(chunk)

        return self.state is not FoldState.FINISHED

    def _on_text(self, chunk: MessageChunk | ActionChunk) -> None:
        text = chunk.text
        if text:
            self._all_text.append(text)
            if self._seen_artifact:
                self._since_last_artifact.append(text)
            self.presenter.show_text(text)
            return

        if isinstance(chunk, ActionChunk):
            label = chunk.working_label()
            if label:
                self.presenter.show_working(label)

    def _on_artifact(self, chunk: ArtifactChunk) -> None:
        if self._seen_artifact:
            self.result.text_between_last_two_artifacts = "".join(self._since_last_artifact).strip()
            self._since_last_artifact = []
        self._seen_artifact = True
        self.result.artifact_count += 1
        logger.debug(
            "Artifact %s (%s) received; count=%s",
            chunk.artifact.identifier,
            chunk.artifact.artifact_type,
            self.result.artifact_count,
        )
        self.presenter.show_artifact(chunk.artifact)

    def fail(self, message: str) -> None:
        """Record a failure that happened outside the chunk stream."""
        self.result.errors.append(message)

    def finish(self) -> QueryResult:
        """Close the fold at end of stream and compute derived fields."""
        self.state = FoldState.FINISHED
        self.presenter.stop_working()
        self.result.all_text = self.all_text
        if self.compute_sentences:
            self.result.last_two_sentences = extract_last_two_sentences(self.result.all_text)
        if self._ignored:
            logger.info("Ignored %s chunks after completion for question=%r", self._ignored, self.question)
        return self.result
