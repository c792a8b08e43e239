import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Make 'race_relay' importable regardless of where pytest is run from.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from race_relay.config import Settings  # noqa: E402
from race_relay.models import RelayConfig  # noqa: E402

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state.json"


@pytest.fixture
def test_settings(state_path):
    """Settings with no delays and a throwaway state file."""
    return Settings(
        _env_file=None,
        MIDOS_API_KEY="test-midos-key",
        STATE_PATH=str(state_path),
        REFRESH_INTERVAL_SECONDS=600,
        SUBMISSION_DELAY_SECONDS=0,
        EVENT_DELAY_SECONDS=0,
    )


def make_config_dict(events=None):
    return {
        "formID": "FORM123",
        "midosAPIKey": "test-midos-key",
        "form": {
            "startETID": "111",
            "matchupID": "222",
            "roundID": "333",
            "consentID": "444",
        },
        "events": events
        or [{"seriesName": "s", "eventName": "8", "overrideMatchUpString": "", "roundPrefix": ""}],
    }


@pytest.fixture
def relay_config():
    return RelayConfig.model_validate(make_config_dict())


@pytest.fixture
def multi_event_config():
    return RelayConfig.model_validate(
        make_config_dict(
            events=[
                {"seriesName": "s", "eventName": "8", "overrideMatchUpString": "", "roundPrefix": ""},
                {"seriesName": "league", "eventName": "7", "overrideMatchUpString": "", "roundPrefix": "League"},
            ]
        )
    )


def make_race(race_id, start, names=("Alice", "Bob"), round_label="Round 1", consent="absent"):
    """Builds a race dict shaped like the midos.house GraphQL payload."""
    if isinstance(start, datetime):
        start = start.isoformat().replace("+00:00", "Z")
    race = {
        "id": race_id,
        "start": start,
        "round": round_label,
        "teams": [{"members": [{"user": {"displayName": name}}]} for name in names],
    }
    if consent != "absent":
        race["restreamConsent"] = consent
    return race


def future(minutes=60):
    return FIXED_NOW + timedelta(minutes=minutes)


def past(minutes=60):
    return FIXED_NOW - timedelta(minutes=minutes)


def graphql_response(races):
    return {"data": {"series": {"event": {"races": races}}}}
