from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OutboxMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    aggregate_id: Optional[str] = None
    status: str
    retry_count: int
    error: Optional[str] = None
    scheduled_at: datetime
    processed_at: Optional[datetime] = None
    created_at: datetime
