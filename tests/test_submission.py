from urllib.parse import parse_qsl, urlsplit

from race_relay.models import EventConfig, Race
from race_relay.submission import build_submission, format_consent, format_matchup, format_round

from tests.conftest import make_race


def _event(**overrides):
    data = {"seriesName": "s", "eventName": "8", "overrideMatchUpString": "", "roundPrefix": ""}
    data.update(overrides)
    return EventConfig.model_validate(data)


def _race(**kwargs):
    return Race.model_validate(make_race("race-1", "2024-06-01T23:30:00Z", **kwargs))


def test_two_team_matchup():
    assert format_matchup(_race(), _event()) == "Alice+vs.+Bob"


def test_missing_display_name_uses_placeholder():
    race = Race.model_validate(
        {
            "id": "race-1",
            "start": "2024-06-01T23:30:00Z",
            "round": "Round 1",
            "teams": [{"members": [{"user": {"displayName": None}}]}, {"members": []}],
        }
    )
    assert format_matchup(race, _event()) == "???+vs.+???"


def test_names_with_spaces_are_plus_escaped():
    assert format_matchup(_race(names=("Big Alice", "Bob")), _event()) == "Big+Alice+vs.+Bob"


def test_non_two_team_race_uses_fallback_label():
    assert format_matchup(_race(names=("Alice", "Bob", "Carol")), _event()) == "TBD"
    assert format_matchup(_race(names=()), _event()) == "TBD"


def test_override_matchup_replaces_computed_value():
    event = _event(overrideMatchUpString="Qualifier+Async")
    assert format_matchup(_race(), event) == "Qualifier+Async"
    assert format_matchup(_race(names=("Solo",)), event) == "Qualifier+Async"


def test_round_without_prefix():
    assert format_round(_race(round_label="Swiss Round 3"), _event()) == "Swiss+Round+3"


def test_round_with_prefix():
    event = _event(roundPrefix="Season 7 League")
    assert format_round(_race(round_label="Week 2"), event) == "Season+7+League:+Week+2"


def test_consent_mapping():
    assert format_consent(_race()) == "Yes"
    assert format_consent(_race(consent=True)) == "Yes"
    assert format_consent(_race(consent="true")) == "Yes"
    assert format_consent(_race(consent=False)) == "No"
    assert format_consent(_race(consent=None)) == "Yes"


def test_build_submission_url(relay_config):
    race = _race(round_label="Top 8")
    submission = build_submission(race, relay_config.events[0], relay_config.form, relay_config.form_id)

    assert submission.start == "2024-06-01+19:30"
    assert submission.matchup == "Alice+vs.+Bob"
    assert submission.round == "Top+8"
    assert submission.consent == "Yes"
    assert submission.event_key == "s/8"

    url = submission.url
    assert url.startswith("https://docs.google.com/forms/d/e/FORM123/formResponse?submit=Submit&usp=pp_url&")
    assert "entry.111=2024-06-01+19:30" in url
    assert "entry.222=Alice+vs.+Bob" in url
    assert "entry.333=Top+8" in url
    assert "entry.444=Yes" in url


def test_reserved_characters_are_percent_encoded(relay_config):
    race = _race(names=("A&B", None), round_label="Q#1")
    submission = build_submission(race, relay_config.events[0], relay_config.form, relay_config.form_id)

    query = dict(parse_qsl(urlsplit(submission.url).query))
    # parse_qsl decodes '+' back to spaces, which is how the form reads it
    assert query["entry.222"] == "A&B vs. ???"
    assert query["entry.333"] == "Q#1"
    assert "A%26B" in submission.url


def test_literal_plus_and_percent_survive_encoding(relay_config):
    race = _race(names=("C++", "Bob"), round_label="100% Run")
    submission = build_submission(race, relay_config.events[0], relay_config.form, relay_config.form_id)

    assert submission.matchup == "C%2B%2B+vs.+Bob"
    assert submission.round == "100%25+Run"
    query = dict(parse_qsl(urlsplit(submission.url).query))
    assert query["entry.222"] == "C++ vs. Bob"
    assert query["entry.333"] == "100% Run"
