"""Port: turn a raw ads.txt body into structured records."""
from __future__ import annotations

from typing import Protocol

from adstxt.app.domain.models import AdsTxtRecords


class RecordParser(Protocol):
    def parse(self, body: bytes) -> AdsTxtRecords: ...
