from __future__ import annotations

import logging
from typing import Optional

from gatepass.numbering import highest_pass_number, pass_prefix
from gatepass.time_utils import DateLike

from .api import GatePassApi
from .dto import PASS_ALIASES, pick_alias
from .errors import SequenceResolutionError


logger = logging.getLogger(__name__)


class PassNumberResolver:
    """Finds the last pass number issued on a given day from the full listing."""

    def __init__(self, api: GatePassApi):
        self.api = api

    async def resolve_last_issued(self, value: DateLike) -> Optional[str]:
        """
        Highest-sequence pass number for the day of ``value``, or None.

        FormatError from a bad date propagates untouched. Any failure to list
        passes becomes SequenceResolutionError; there is no guessing a
        starting number when the listing is unavailable.
        """
        prefix = pass_prefix(value)
        try:
            rows = await self.api.list_records()
        except Exception as e:
            logger.error("Could not list gate passes to resolve %s*: %s", prefix, e)
            raise SequenceResolutionError(f"Failed to resolve the last gate pass number: {e}") from e

        numbers = [
            pick_alias(row, PASS_ALIASES["pass_number"])
            for row in rows
            if isinstance(row, dict)
        ]
        last = highest_pass_number(
            (n for n in numbers if isinstance(n, str)),
            value,
        )
        logger.debug("Last issued for %s*: %s", prefix, last)
        return last
