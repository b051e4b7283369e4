from .cache import CacheEntry, ConversationKeys, QueryCache, QueryKey, conversation_keys
from .http import ConversationApiClient
from .result import Result, TransportError
from .sync import ConversationSync

__all__ = [
    "CacheEntry",
    "ConversationKeys",
    "QueryCache",
    "QueryKey",
    "conversation_keys",
    "ConversationApiClient",
    "Result",
    "TransportError",
    "ConversationSync",
]
