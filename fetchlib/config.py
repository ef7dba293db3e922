from dataclasses import dataclass, field
from typing import Mapping


DEFAULT_USER_AGENT = "fetchlib/1.0 (+https://example.com; contact: fetchlib@example.com)"


@dataclass(frozen=True)
class TransportConfig:
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 60.0
    connect_timeout: float = 10.0
    max_workers: int = 8
    max_connections: int = 16
    max_redirects: int = 10
    default_headers: Mapping[str, str] = field(default_factory=lambda: {"Accept": "*/*"})
