from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# -----------------------------
# Artifacts
# -----------------------------
ArtifactType = Literal["text", "table", "visualization"]


class Artifact(BaseModel):
    """A completed structured result emitted during a query stream."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    title: str = ""
    artifact_type: ArtifactType
    # text -> str, table -> list of row mappings, visualization -> opaque JSON
    data: Any = None

    def table_rows(self) -> Optional[List[Dict[str, Any]]]:
        """Return table data as a list of mappings, or None if it is not one."""
        if not isinstance(self.data, list):
            return None
        if not all(isinstance(r, dict) for r in self.data):
            return None
        return self.data


# -----------------------------
# Chunks
# -----------------------------
class _Chunk(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class MessageChunk(_Chunk):
    type: Literal["assistant_message_chunk"] = "assistant_message_chunk"
    message: Optional[str] = None
    index: Optional[int] = None

    @property
    def text(self) -> Optional[str]:
        return self.message


class ActionChunk(_Chunk):
    type: Literal["assistant_action_chunk"] = "assistant_action_chunk"
    message: Optional[str] = None
    plan: Optional[str] = None
    code: Optional[str] = None
    code_output: Optional[str] = None
    code_error: Optional[str] = None
    index: Optional[int] = None

    @property
    def text(self) -> Optional[str]:
        return self.message

    def working_label(self) -> Optional[str]:
        """Name the backend activity this chunk signals, if any."""
        if self.code_error:
            return "Code error"
        if self.code_output:
            return "Reading code output"
        if self.code:
            return "Executing code"
        if self.plan:
            return "Planning"
        return None


class ArtifactChunk(_Chunk):
    type: Literal["artifact_update_chunk"] = "artifact_update_chunk"
    artifact: Artifact


class CompleteChunk(_Chunk):
    type: Literal["complete"] = "complete"
    message: Optional[str] = None

    @property
    def text(self) -> Optional[str]:
        return self.message


class ErrorChunk(_Chunk):
    type: Literal["error_chunk"] = "error_chunk"
    error: str


Chunk = Annotated[
    Union[MessageChunk, ActionChunk, ArtifactChunk, CompleteChunk, ErrorChunk],
    Field(discriminator="type"),
]

CHUNK_ADAPTER: TypeAdapter[Chunk] = TypeAdapter(Chunk)

CHUNK_TYPES = (
    "assistant_message_chunk",
    "assistant_action_chunk",
    "artifact_update_chunk",
    "complete",
    "error_chunk",
)
