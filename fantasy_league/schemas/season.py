from pydantic import BaseModel
from datetime import datetime

class SeasonBase(BaseModel):
    name: str
    start_at: datetime
    end_at: datetime

class SeasonCreate(SeasonBase):
    pass

class SeasonResponse(SeasonBase):
    id: int

    class Config:
        from_attributes = True
