import pytest

from pqrunner.stream.chunks import (
    ActionChunk,
    Artifact,
    ArtifactChunk,
    CompleteChunk,
    ErrorChunk,
    MessageChunk,
)
from pqrunner.stream.fold import FoldState, StreamFold
from pqrunner.ui.presenter import Presenter


class RecordingPresenter(Presenter):
    def __init__(self):
        self.calls = []

    def show_text(self, text):
        self.calls.append(("text", text))

    def show_working(self, label):
        self.calls.append(("working", label))

    def show_artifact(self, artifact):
        self.calls.append(("artifact", artifact.identifier))

    def show_error(self, message):
        self.calls.append(("error", message))


def _artifact(ident, kind="text", data="x"):
    return ArtifactChunk(artifact=Artifact(identifier=ident, title=ident.upper(), artifact_type=kind, data=data))


@pytest.fixture
def presenter():
    return RecordingPresenter()


def test_states(presenter):
    fold = StreamFold("q", presenter)
    assert fold.state is FoldState.IDLE
    fold.feed(MessageChunk(message="hi"))
    assert fold.state is FoldState.STREAMING
    fold.finish()
    assert fold.state is FoldState.FINISHED


def test_all_text_is_ordered_concatenation(presenter):
    chunks = [
        MessageChunk(message="Hello "),
        ActionChunk(message=None, plan="1. look"),
        ActionChunk(message="there. "),
        _artifact("a1"),
        MessageChunk(message=None),
        MessageChunk(message="Bye."),
        CompleteChunk(message="final"),
    ]
    fold = StreamFold("q", presenter)
    for c in chunks:
        fold.feed(c)
    result = fold.finish()
    assert result.all_text == "Hello there. Bye."
    assert result.final_message == "final"
    assert result.completed


def test_text_shown_as_it_arrives(presenter):
    fold = StreamFold("q", presenter)
    fold.feed(MessageChunk(message="a"))
    fold.feed(ActionChunk(plan="thinking"))
    fold.feed(MessageChunk(message="b"))
    assert presenter.calls == [("text", "a"), ("working", "Planning"), ("text", "b")]


def test_between_artifacts_needs_two(presenter):
    fold = StreamFold("q", presenter)
    fold.feed(MessageChunk(message="before "))
    fold.feed(_artifact("a1"))
    fold.feed(MessageChunk(message="after"))
    result = fold.finish()
    assert result.text_between_last_two_artifacts is None
    assert result.artifact_count == 1


def test_between_last_two_artifacts_only(presenter):
    fold = StreamFold("q", presenter)
    for c in [
        MessageChunk(message="intro "),
        _artifact("a1"),
        MessageChunk(message=" first gap "),
        _artifact("a2"),
        ActionChunk(message=" second "),
        MessageChunk(message="gap "),
        _artifact("a3"),
        MessageChunk(message="tail"),
    ]:
        fold.feed(c)
    result = fold.finish()
    assert result.text_between_last_two_artifacts == "second gap"
    assert result.artifact_count == 3
    assert [c for c in presenter.calls if c[0] == "artifact"] == [
        ("artifact", "a1"),
        ("artifact", "a2"),
        ("artifact", "a3"),
    ]


def test_adjacent_artifacts_give_empty_gap(presenter):
    fold = StreamFold("q", presenter)
    fold.feed(_artifact("a1"))
    fold.feed(_artifact("a2"))
    assert fold.finish().text_between_last_two_artifacts == ""


def test_complete_stops_the_fold(presenter):
    fold = StreamFold("q", presenter)
    assert fold.feed(MessageChunk(message="x")) is True
    assert fold.feed(CompleteChunk(message="done")) is False
    assert fold.feed(MessageChunk(message="late")) is False
    assert fold.feed(_artifact("late")) is False
    result = fold.finish()
    assert result.all_text == "x"
    assert result.artifact_count == 0
    assert ("text", "late") not in presenter.calls


def test_error_chunk_does_not_stop(presenter):
    fold = StreamFold("q", presenter)
    assert fold.feed(ErrorChunk(error="boom")) is True
    assert fold.feed(MessageChunk(message="still here")) is True
    result = fold.finish()
    assert result.errors == ["boom"]
    assert not result.ok
    assert ("error", "boom") in presenter.calls
    assert result.all_text == "still here"


def test_last_two_sentences(presenter):
    fold = StreamFold("q", presenter)
    fold.feed(MessageChunk(message="One. Two. "))
    fold.feed(MessageChunk(message="Three."))
    assert fold.finish().last_two_sentences == "Two. Three."


def test_sentences_can_be_skipped(presenter):
    fold = StreamFold("q", presenter, compute_sentences=False)
    fold.feed(MessageChunk(message="One. Two."))
    assert fold.finish().last_two_sentences is None


def test_works_without_presenter():
    fold = StreamFold("q")
    fold.feed(MessageChunk(message="ok"))
    fold.feed(_artifact("a1", kind="table", data=[]))
    assert fold.finish().all_text == "ok"
