from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Optional, TextIO

from pqrunner.stream.chunks import Artifact
from pqrunner.utils.formatting import framed, render_grid

if TYPE_CHECKING:
    from pqrunner.stream.fold import QueryResult

EMPTY_TABLE = "Empty table or invalid data"
NO_FINAL_MESSAGE = "No final message received"
CLEAR_LINE = "\r\x1b[2K"


class Presenter:
    """Display hooks used while a question streams. The base class shows nothing."""

    def start_question(self, question: str) -> None:
        pass

    def show_text(self, text: str) -> None:
        pass

    def show_working(self, label: str) -> None:
        pass

    def stop_working(self) -> None:
        pass

    def show_artifact(self, artifact: Artifact) -> None:
        pass

    def show_error(self, message: str) -> None:
        pass

    def show_summary(self, result: "QueryResult") -> None:
        pass


class NullPresenter(Presenter):
    """Discards everything; used for quiet runs and tests."""


class TerminalPresenter(Presenter):
    """
    Writes a question's stream to a terminal.

    Streamed text is appended as it arrives. The busy indicator is a single
    status line; it is cleared before any other write so that two writers
    never share a line.
    """

    def __init__(self, stream: Optional[TextIO] = None, err: Optional[TextIO] = None, width: int = 50):
        self.out = stream or sys.stdout
        self.err = err or sys.stderr
        self.width = width
        self.working: Optional[str] = None
        self._mid_line = False
        isatty = getattr(self.out, "isatty", None)
        self._tty = bool(isatty and isatty())

    # -- helpers -------------------------------------------------------------

    def _write(self, s: str) -> None:
        self.out.write(s)
        self.out.flush()

    def _end_line(self) -> None:
        if self._mid_line:
            self._write("\n")
            self._mid_line = False

    def _rule(self) -> str:
        return "-" * self.width

    # -- Presenter -----------------------------------------------------------

    def start_question(self, question: str) -> None:
        self.stop_working()
        self._end_line()
        self._write(f'Processing query: "{question}"\n')

    def show_text(self, text: str) -> None:
        if not text:
            return
        self.stop_working()
        self._write(text)
        self._mid_line = not text.endswith("\n")

    def show_working(self, label: str) -> None:
        if self.working == label:
            return
        self.stop_working()
        self._end_line()
        self.working = label
        if self._tty:
            self._write(f"... {label}")
        else:
            self._write(f"... {label}\n")

    def stop_working(self) -> None:
        if self.working is None:
            return
        if self._tty:
            self._write(CLEAR_LINE)
        self.working = None

    def show_artifact(self, artifact: Artifact) -> None:
        self.stop_working()
        self._end_line()
        self._write(f"\nArtifact: {artifact.title} ({artifact.identifier})\n")
        self._write(self._rule() + "\n")

        if artifact.artifact_type == "text":
            self._write(f"{artifact.data if artifact.data is not None else ''}\n")
        elif artifact.artifact_type == "table":
            grid = render_grid(artifact.table_rows())
            self._write((grid or EMPTY_TABLE) + "\n")
        elif artifact.artifact_type == "visualization":
            payload = json.dumps(artifact.data, indent=2, ensure_ascii=False, default=str)
            self._write(f"Visualization artifact: {payload}\n")

        self._write(self._rule() + "\n")

    def show_error(self, message: str) -> None:
        self.stop_working()
        self._end_line()
        self.err.write(f"Error: {message}\n")
        self.err.flush()

    def show_summary(self, result: "QueryResult") -> None:
        self.stop_working()
        self._end_line()
        self._write("\nFinal output:\n")
        self._write(framed(result.final_message or NO_FINAL_MESSAGE, self.width) + "\n")

        if result.text_between_last_two_artifacts:
            self._write("\nText between last two artifacts:\n")
            self._write(framed(result.text_between_last_two_artifacts, self.width) + "\n")

        if result.last_two_sentences:
            self._write("\nLast two sentences:\n")
            self._write(framed(result.last_two_sentences, self.width) + "\n")
        self._write("\n")
