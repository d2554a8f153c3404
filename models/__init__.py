from models.session_slot import SessionSlot

__all__ = [
    "SessionSlot",
]
