import uuid
from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: uuid.UUID
    user_code: str
    name: str
    email: str | None
    department: str | None
    position: str | None
    role: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
