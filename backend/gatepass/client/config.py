from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_API_URL = "http://127.0.0.1:5001"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_DESTINATION_ID = 1


@dataclass
class ClientConfig:
    api_url: str = DEFAULT_API_URL
    # Bounded so a hung request cannot stall a caller forever
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    # None keeps the destination cache in memory only
    cache_file: Optional[Path] = None
    default_destination_id: int = DEFAULT_DESTINATION_ID


def load_client_config() -> ClientConfig:
    cache_file = os.getenv("GATEPASS_CACHE_FILE")
    return ClientConfig(
        api_url=os.getenv("GATEPASS_API_URL", DEFAULT_API_URL).rstrip("/"),
        timeout=float(os.getenv("GATEPASS_API_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))),
        cache_file=Path(cache_file) if cache_file else None,
        default_destination_id=int(
            os.getenv("GATEPASS_DEFAULT_DESTINATION_ID", str(DEFAULT_DESTINATION_ID))
        ),
    )
