# race_relay/submission.py
"""
Builds the prefilled Google Forms request for a race.

Google Forms has no API for submitting responses, so each race is sent as a
GET to the form's ``formResponse`` endpoint with every answer prefilled in the
query string. Answers use '+' in place of spaces, and the start time uses the
``YYYY-MM-DD+HH:MM`` date answer format.
"""

from typing import Dict

from .models import EventConfig
from .models import FormConfig
from .models import FormSubmission
from .models import Race
from .utils.text import plus_escape
from .utils.time_format import format_form_datetime

FORM_BASE_URL = "https://docs.google.com/forms/d/e"
MISSING_NAME = "???"
UNKNOWN_MATCHUP = "TBD"
CONSENT_YES = "Yes"
CONSENT_NO = "No"


def format_matchup(race: Race, event: EventConfig) -> str:
    """'<first member of team A>+vs.+<first member of team B>' for two-team races."""
    if event.override_matchup:
        return event.override_matchup

    if len(race.teams) == 2:
        team_a, team_b = race.teams
        player_a = plus_escape(team_a.first_member_name) or MISSING_NAME
        player_b = plus_escape(team_b.first_member_name) or MISSING_NAME
        return f"{player_a}+vs.+{player_b}"
    return UNKNOWN_MATCHUP


def format_round(race: Race, event: EventConfig) -> str:
    round_label = plus_escape(race.round)
    if event.round_prefix:
        return f"{plus_escape(event.round_prefix)}:+{round_label}"
    return round_label


def format_consent(race: Race) -> str:
    # The service leaves restreamConsent out for big races, where it is implied
    return CONSENT_NO if race.restream_consent is False else CONSENT_YES


def form_response_url(form_id: str, base_url: str = FORM_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{form_id}/formResponse"


def build_submission(
    race: Race,
    event: EventConfig,
    form: FormConfig,
    form_id: str,
    base_url: str = FORM_BASE_URL,
) -> FormSubmission:
    start = format_form_datetime(race.start)
    matchup = format_matchup(race, event)
    round_string = format_round(race, event)
    consent = format_consent(race)

    params: Dict[str, str] = {
        "submit": "Submit",
        "usp": "pp_url",
        f"entry.{form.start_entry}": start,
        f"entry.{form.matchup_entry}": matchup,
        f"entry.{form.round_entry}": round_string,
        f"entry.{form.consent_entry}": consent,
    }

    return FormSubmission(
        race_id=race.id,
        event_key=event.key,
        start=start,
        matchup=matchup,
        round=round_string,
        consent=consent,
        base_url=form_response_url(form_id, base_url),
        params=params,
    )
