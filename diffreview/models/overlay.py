"""Overlay models: local review comments, external comments, and per-line slots."""

from datetime import datetime
from typing import Annotated, Dict, Iterator, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field

from .conversation import ConversationResponse, DiffSide


class ReviewComment(BaseModel):
    """A client-local review note. Never persisted, no replies or resolution."""

    id: str = Field(description="Client-assigned identifier")
    file_path: str = Field(description="Relative path of the anchored file")
    line_number: int = Field(description="1-based line number", ge=1)
    side: DiffSide = Field(description="Diff side of the anchor")
    text: str = Field(description="Comment text")
    code_line: Optional[str] = Field(None, description="Snapshot of the anchored source line")
    author: Optional[str] = Field(None, description="Identity of the writer")


class ExternalComment(BaseModel):
    """A read-only comment imported from an outside review system."""

    id: Optional[str] = Field(None, description="Identifier in the external system")
    file_path: str = Field(description="Relative path of the anchored file")
    line_number: int = Field(description="1-based line number", ge=1)
    side: DiffSide = Field(description="Diff side of the anchor")
    body: str = Field(description="Comment text")
    author: str = Field(description="Login of the writer")
    url: Optional[str] = Field(None, description="Link back to the external comment")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp in the external system")


class ConversationEntry(BaseModel):
    kind: Literal["conversation"] = "conversation"
    data: ConversationResponse


class ReviewCommentEntry(BaseModel):
    kind: Literal["review_comment"] = "review_comment"
    data: ReviewComment


class ExternalCommentEntry(BaseModel):
    kind: Literal["external_comment"] = "external_comment"
    data: ExternalComment


OverlayEntry = Annotated[
    Union[ConversationEntry, ReviewCommentEntry, ExternalCommentEntry],
    Field(discriminator="kind")
]


class FileOverlay(BaseModel):
    """Per-side line slots for one file; at most one entry per (side, line)."""

    file_path: str
    old: Dict[int, OverlayEntry] = Field(default_factory=dict)
    new: Dict[int, OverlayEntry] = Field(default_factory=dict)

    def side_map(self, side: DiffSide) -> Dict[int, OverlayEntry]:
        return self.old if DiffSide(side) is DiffSide.OLD else self.new

    def slot(self, side: DiffSide, line_number: int) -> Optional[OverlayEntry]:
        """Return the entry rendered at (side, line_number), if any."""
        return self.side_map(side).get(line_number)

    def entries(self) -> Iterator[Tuple[DiffSide, int, OverlayEntry]]:
        """Iterate over all slots, old side first, ascending line numbers."""
        for side in (DiffSide.OLD, DiffSide.NEW):
            side_slots = self.side_map(side)
            for line_number in sorted(side_slots):
                yield side, line_number, side_slots[line_number]


class OverlaySummary(BaseModel):
    """Comment counts for one file, as shown in the file header."""

    conversations: int = 0
    unresolved_conversations: int = 0
    review_comments: int = 0
    external_comments: int = 0
    total: int = 0
