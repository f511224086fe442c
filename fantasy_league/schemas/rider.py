from pydantic import BaseModel, field_validator
from typing import Optional

class RiderProfile(BaseModel):
    """What the game needs to know about a rider"""
    uci_id: str
    gender: str # "male" | "female"
    category: str # "elite" | "junior" | "both"
    cost: int

class RiderUpsert(BaseModel):
    uci_id: str
    name: str
    team: Optional[str] = None
    gender: str
    category: str = "elite"
    cost: int

    @field_validator('gender')
    def check_gender(cls, v):
        v = v.strip().lower()
        if v not in ("male", "female"):
            raise ValueError('gender must be "male" or "female"')
        return v

    @field_validator('category')
    def check_category(cls, v):
        v = v.strip().lower()
        if v not in ("elite", "junior", "both"):
            raise ValueError('category must be "elite", "junior" or "both"')
        return v
