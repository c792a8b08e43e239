# race_relay/adapters/form_adapter.py

from typing import NoReturn
from typing import Optional

import httpx

from ..core.exceptions import TransientSubmitError
from ..models import FormSubmission
from .base import BaseAdapter


class FormAdapter(BaseAdapter):
    """Sends prefilled submissions to a Google Form's formResponse endpoint."""

    SOURCE_NAME = "google-forms"

    def __init__(self, timeout: int = 20):
        super().__init__(source_name=self.SOURCE_NAME, timeout=timeout)

    def _raise_request_error(
        self, context: str, message: str, url: str, status_code: Optional[int] = None
    ) -> NoReturn:
        raise TransientSubmitError(context, message, url=url, status_code=status_code)

    async def send(self, submission: FormSubmission) -> httpx.Response:
        """Submits one race. Raises TransientSubmitError if delivery fails."""
        return await self.make_request(
            "GET", submission.url, context=submission.race_id, follow_redirects=True
        )
