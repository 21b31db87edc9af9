"""
Database models for the Groupo messaging backend.

- Conversation: one thread per buyer-manufacturer pair
- Message / MessageAttachment: the message log
- BuyerProfile / ManufacturerProfile: display-name lookups
"""

from .conversation import Conversation
from .message import Message, MessageAttachment
from .profile import BuyerProfile, ManufacturerProfile

__all__ = [
    "BuyerProfile",
    "Conversation",
    "ManufacturerProfile",
    "Message",
    "MessageAttachment",
]
