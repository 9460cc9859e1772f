from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class AppNotification(BaseModel):
    id: str
    message: str
    timestamp: datetime
    read: bool = False
    link: str | None = None


class PurgeRequest(BaseModel):
    password: str
    scope: Literal["completed", "all"] = "completed"
