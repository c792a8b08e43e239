# race_relay/models.py

from datetime import datetime
from typing import Dict
from typing import List
from typing import Optional
from urllib.parse import urlencode

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import computed_field
from pydantic import field_validator

from .utils.time_format import ensure_aware


class RelayBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FrozenRelayModel(RelayBaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# --- Remote race data (midos.house) ---
class User(RelayBaseModel):
    display_name: Optional[str] = Field(None, alias="displayName")


class TeamMember(RelayBaseModel):
    user: Optional[User] = None


class Team(RelayBaseModel):
    members: List[TeamMember] = []

    @field_validator("members", mode="before")
    @classmethod
    def _null_members(cls, value):
        return [] if value is None else value

    @property
    def first_member_name(self) -> Optional[str]:
        if not self.members or self.members[0].user is None:
            return None
        return self.members[0].user.display_name


class Race(RelayBaseModel):
    id: str
    # Null until the race is scheduled
    start: Optional[datetime] = None
    round: Optional[str] = None
    # None means the field was omitted, which the service does for big races
    restream_consent: Optional[bool] = Field(None, alias="restreamConsent")
    teams: List[Team] = []

    @field_validator("start")
    @classmethod
    def _aware_start(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else ensure_aware(value)

    @field_validator("teams", mode="before")
    @classmethod
    def _null_teams(cls, value):
        return [] if value is None else value


# --- Configuration ---
class EventConfig(FrozenRelayModel):
    series_name: str = Field(..., alias="seriesName", min_length=1)
    event_name: str = Field(..., alias="eventName", min_length=1)
    override_matchup: str = Field("", alias="overrideMatchUpString")
    round_prefix: str = Field("", alias="roundPrefix")

    @property
    def key(self) -> str:
        return f"{self.series_name}/{self.event_name}"


class FormConfig(FrozenRelayModel):
    start_entry: str = Field(..., alias="startETID")
    matchup_entry: str = Field(..., alias="matchupID")
    round_entry: str = Field(..., alias="roundID")
    consent_entry: str = Field(..., alias="consentID")


class RelayConfig(FrozenRelayModel):
    form_id: str = Field(..., alias="formID", min_length=1)
    form: FormConfig
    events: List[EventConfig] = Field(..., min_length=1)
    midos_api_key: Optional[str] = Field(None, alias="midosAPIKey")


# --- Outgoing submission ---
class FormSubmission(FrozenRelayModel):
    race_id: str
    event_key: str
    start: str
    matchup: str
    round: str
    consent: str
    base_url: str
    params: Dict[str, str]

    @computed_field
    @property
    def url(self) -> str:
        # Answers are already escaped: '+' is a space and '%' starts an escape
        return f"{self.base_url}?{urlencode(self.params, safe='+:%')}"
