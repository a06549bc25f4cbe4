from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PresenceEntry(BaseModel):
    """One online user as shown to every peer"""

    id: str = Field(..., min_length=1)
    # Display metadata is client supplied and relayed as-is
    name: Optional[Any] = None
    avatar: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}

    def __repr__(self):
        return f"<PresenceEntry(id='{self.id}', name='{self.name}')>"
