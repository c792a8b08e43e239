# race_relay/adapters/midos_adapter.py

from typing import Any
from typing import Dict
from typing import List
from typing import NoReturn
from typing import Optional

from pydantic import ValidationError

from ..core.exceptions import EventNotFoundError
from ..core.exceptions import FetchAuthError
from ..core.exceptions import TransientFetchError
from ..models import Race
from .base import BaseAdapter

EVENT_RACES_QUERY = """
query EventRaces($series: String!, $event: String!) {
    series(name: $series) {
        event(name: $event) {
            races {
                id
                start
                round
                restreamConsent
                teams {
                    members {
                        user {
                            displayName
                        }
                    }
                }
            }
        }
    }
}
"""


class MidosAdapter(BaseAdapter):
    """Reads the race schedule of a series event from the midos.house GraphQL API."""

    SOURCE_NAME = "midos.house"
    BASE_URL = "https://midos.house/api/v1/graphql"

    def __init__(self, api_key: str, base_url: str = BASE_URL, timeout: int = 20):
        super().__init__(source_name=self.SOURCE_NAME, base_url=base_url, timeout=timeout)
        self.api_key = api_key

    def _raise_request_error(
        self, context: str, message: str, url: str, status_code: Optional[int] = None
    ) -> NoReturn:
        if status_code in (401, 403):
            raise FetchAuthError(context, message, url=url, status_code=status_code)
        raise TransientFetchError(context, message, url=url, status_code=status_code)

    async def _fetch_data(self, series_name: str, event_name: str) -> Any:
        event_key = f"{series_name}/{event_name}"
        headers = {"X-API-Key": self.api_key, "Content-Type": "application/json"}
        payload = {
            "query": EVENT_RACES_QUERY,
            "variables": {"series": series_name, "event": event_name},
        }
        response = await self.make_request("POST", self.base_url, context=event_key, json=payload, headers=headers)
        try:
            return response.json()
        except ValueError:
            self.logger.warning("Response from midos.house was not JSON", event_key=event_key)
            return None

    def _parse_races(self, raw_data: Any) -> Optional[List[Race]]:
        """
        Extracts ``data.series.event.races``.

        Returns None when the series or event is missing or the payload does not
        have the expected shape; the caller treats both the same way. A single
        malformed race record is dropped with a warning and the rest are kept.
        """
        if not isinstance(raw_data, dict):
            return None
        data = raw_data.get("data")
        series = data.get("series") if isinstance(data, dict) else None
        event = series.get("event") if isinstance(series, dict) else None
        if not isinstance(event, dict):
            return None

        races_data: List[Dict[str, Any]] = event.get("races")
        if not isinstance(races_data, list):
            return None

        races: List[Race] = []
        for race_data in races_data:
            try:
                races.append(Race.model_validate(race_data))
            except ValidationError as e:
                race_id = race_data.get("id") if isinstance(race_data, dict) else None
                self.logger.warning("Skipping malformed race from midos.house", race_id=race_id, error=str(e))
        return races

    async def fetch_event_races(self, series_name: str, event_name: str) -> List[Race]:
        """
        Returns the races of one series event, in the order the API lists them.

        Raises EventNotFoundError when the series/event does not exist remotely
        or the response could not be read, and TransientFetchError for
        transport and HTTP failures.
        """
        event_key = f"{series_name}/{event_name}"
        raw_data = await self._fetch_data(series_name, event_name)

        if isinstance(raw_data, dict) and raw_data.get("errors"):
            self.logger.info("GraphQL errors in response", event_key=event_key, errors=raw_data["errors"])

        races = self._parse_races(raw_data)
        if races is None:
            raise EventNotFoundError(event_key, "No series/event found")
        return races
