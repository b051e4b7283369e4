"""Review conversation message database model."""

from dataclasses import dataclass, field
from datetime import datetime

from ...utils.timeutil import utc_now


@dataclass
class MessageDO:
    """Message data object - maps to review_conversation_messages table."""

    id: str
    conversation_id: str
    author: str
    content: str
    created_at: datetime = field(default_factory=utc_now)
