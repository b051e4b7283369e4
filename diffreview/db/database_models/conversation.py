"""Review conversation database model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ...utils.timeutil import utc_now
from .message import MessageDO


@dataclass
class ConversationDO:
    """Conversation data object - maps to review_conversations table."""

    id: str
    attempt_id: str
    file_path: str
    line_number: int
    side: str
    code_line: Optional[str] = None
    is_resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_summary: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    messages: List[MessageDO] = field(default_factory=list)
