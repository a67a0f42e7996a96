from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List

import config
from errors import NotFound


class CamelModel(BaseModel):
    """Wire format is camelCase; Python attributes stay snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


Intensity = Optional[int]


# --- Ratings ---

class RatingCreate(RequestModel):
    participant_id: str = Field(..., min_length=1, max_length=100)
    participant_name: str = Field("Anonymous", max_length=50)
    color: Optional[str] = Field(None, max_length=40)
    aroma_intensity: Intensity = Field(None, ge=1, le=5)
    aroma_smokiness: Intensity = Field(None, ge=1, le=5)
    aroma_sweetness: Intensity = Field(None, ge=1, le=5)
    overall: Intensity = Field(None, ge=1, le=5)
    flavor_notes: List[str] = Field(default_factory=list)

    @field_validator('participant_name')
    def name_or_anonymous(cls, v):
        return v.strip() or "Anonymous"

    @field_validator('color')
    def blank_color_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator('flavor_notes')
    def distinct_notes(cls, v):
        notes = []
        for note in v:
            note = note.strip()
            if not note:
                raise ValueError('Flavor notes cannot be empty')
            if note not in notes:
                notes.append(note)
        return notes


class Rating(CamelModel):
    id: str
    participant_id: str
    participant_name: str = "Anonymous"
    color: Optional[str] = None
    aroma_intensity: Intensity = None
    aroma_smokiness: Intensity = None
    aroma_sweetness: Intensity = None
    overall: Intensity = None
    flavor_notes: List[str] = Field(default_factory=list)
    timestamp: str


class BreakdownEntry(CamelModel):
    category: str
    value: str
    matches: int
    points: int
    matched_participants: List[str] = Field(default_factory=list)


# --- Items ---

class ItemCreate(RequestModel):
    name: str = Field("Unknown Whisky", max_length=200)
    years: str = Field("", max_length=20)
    type: str = Field("", max_length=100)
    region: str = Field("", max_length=100)
    description: str = Field("", max_length=2000)
    image: str = ""

    @field_validator('years', mode='before')
    def years_as_text(cls, v):
        # Clients send either "12" or 12
        return "" if v is None else str(v)

    @field_validator('name')
    def name_not_empty(cls, v):
        return v.strip() or "Unknown Whisky"


class Item(CamelModel):
    id: str
    name: str = "Unknown Whisky"
    years: str = ""
    type: str = ""
    region: str = ""
    description: str = ""
    image: str = ""
    revealed: bool = False
    ratings: List[Rating] = Field(default_factory=list)
    points: Optional[int] = None
    points_breakdown: Optional[List[BreakdownEntry]] = None
    points_calculated: bool = False


# --- Sessions ---

class Participant(RequestModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field("Anonymous", max_length=50)
    avatar: Optional[str] = None


class ParticipantUpdate(RequestModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: Optional[str] = Field(None, max_length=50)
    avatar: Optional[str] = None


class TastingSession(CamelModel):
    id: str
    code: str
    date: str
    location: str = ""
    series_id: Optional[str] = None
    creator_id: Optional[str] = None
    max_flavor_notes: int = config.DEFAULT_MAX_FLAVOR_NOTES
    active_item_id: Optional[str] = None
    total_points: int = 0
    items: List[Item] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    revealed_items: List[str] = Field(default_factory=list)
    created_at: str

    def get_item(self, item_id: str) -> Item:
        for item in self.items:
            if item.id == item_id:
                return item
        raise NotFound("Whisky not found")

    def is_creator(self, participant_id: Optional[str]) -> bool:
        """Unset creator means every participant may drive the session."""
        return self.creator_id is None or self.creator_id == participant_id


class SessionCreate(RequestModel):
    date: Optional[str] = None
    location: str = Field("", max_length=200)
    series_id: Optional[str] = None
    creator_id: Optional[str] = Field(None, max_length=100)
    max_flavor_notes: int = Field(config.DEFAULT_MAX_FLAVOR_NOTES, ge=1, le=10)

    @field_validator('creator_id')
    def blank_creator_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class SettingsUpdate(RequestModel):
    participant_id: Optional[str] = None
    max_flavor_notes: Optional[int] = Field(None, ge=1, le=10)


class CallerRequest(RequestModel):
    """Body of creator-gated calls: who is asking."""
    participant_id: Optional[str] = None


# --- Responses ---

class ActivateResponse(CamelModel):
    active_item_id: Optional[str]


class CancelResponse(CamelModel):
    success: bool = True
    item: Item


class RateResponse(CamelModel):
    rating: Rating
    total_points: int


class RevealResponse(CamelModel):
    item: Item
    item_points: int
    total_points: int
    breakdown: List[BreakdownEntry]


class KickResponse(CamelModel):
    success: bool = True
    kicked_participant_id: str


class QRCodeResponse(CamelModel):
    code: str
    join_url: str
    qr_code: str


# --- Series ---

class SeriesCreate(RequestModel):
    name: str = Field("New Series", max_length=100)
    description: str = Field("", max_length=500)


class Series(CamelModel):
    id: str
    name: str = "New Series"
    description: str = ""
    created_at: str


# --- Push channel ---

class Event(BaseModel):
    type: str
    payload: Any = None


class ParticipantJoinMessage(RequestModel):
    session_id: str
    participant: Participant


class ParticipantUpdateMessage(RequestModel):
    session_id: str
    participant: ParticipantUpdate


class EmoteMessage(RequestModel):
    session_id: str
    participant_id: str
    emote: str = Field(..., min_length=1, max_length=16)


class ToastPressMessage(RequestModel):
    session_id: str
    participant_id: str
