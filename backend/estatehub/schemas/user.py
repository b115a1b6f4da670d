"""
User schemas returned by the auth service.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid


class SafeUser(BaseModel):
    """User projection without the password hash or other server-only fields."""
    id: uuid.UUID
    email: str
    role: str
    full_name: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
