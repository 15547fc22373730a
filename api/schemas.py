from typing import Literal, Optional
from pydantic import BaseModel, Field

class SimulateRequest(BaseModel):
    """Single battle request schema."""
    grid: str
    elf_power: int = Field(default=3, ge=0)
    abort_on_elf_death: bool = False

class SimulateResponse(BaseModel):
    """Battle result; outcome fields are unset when the battle was aborted."""
    status: Literal["ended", "aborted"]
    rounds: int
    hp_sum: Optional[int] = None
    score: Optional[int] = None
    faction: Optional[str] = None
    unit_id: Optional[str] = None

class SearchRequest(BaseModel):
    """Power search request schema."""
    grid: str
    starting_power: int = Field(default=4, ge=0)

class SearchResponse(BaseModel):
    power: int
    rounds: int
    hp_sum: int
    score: int

class StartRequest(BaseModel):
    """Live battle start request schema."""
    grid: Optional[str] = None
    elf_power: int = Field(default=3, ge=0)

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    total: int
    events: list[dict]
