"""Crawler-level constants shared across modules."""
from __future__ import annotations

SERVICE_NAME = "adstxt-crawler"

ADS_TXT_FILENAME = "ads.txt"
ADS_TXT_PATH_SUFFIX = "/" + ADS_TXT_FILENAME

# Statuses treated as redirects; any other non-2xx status is an error.
REDIRECT_STATUS_CODES = frozenset({301, 302, 307})

DEFAULT_USER_AGENT = "adstxt-crawler/0.1 (+https://iabtechlab.com/ads-txt/)"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_REDIRECTS = 10

ALLOWED_CONTENT_TYPE = "text/plain"


class OUTCOME_STATUS:
    OK = "ok"
    ERROR = "error"


class REDIRECT_DECISION:
    ALLOW = "ALLOW"
    REJECT = "REJECT"
