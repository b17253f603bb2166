"""Unit tests for AdsTxtFetcher: redirect hops, content validation, Expires handling."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from adstxt.app.domain.errors import (
    ContentTypeError,
    CrossDomainRedirectError,
    FetchCancelledError,
    HomepageRedirectError,
    HttpStatusError,
    RedirectLoopError,
    TooManyRedirectsError,
    TransportError,
    TransportTimeoutError,
)
from adstxt.app.domain.fetcher import AdsTxtFetcher, parse_expires
from adstxt.app.domain.models import Request
from adstxt.app.domain.redirect_policy import RedirectPolicy
from adstxt.app.infrastructure.parsing.adstxt_parser import AdsTxtParser
from adstxt.app.ports.http_client import HttpClientError, HttpClientTimeoutError
from tests.fakes import FakeHttpClient, FakeHttpResponse, FakeResolver, redirect, text_response

BODY = b"google.com, pub-1, DIRECT"


def _fetcher(client: FakeHttpClient, *, max_redirects: int = 10) -> AdsTxtFetcher:
    return AdsTxtFetcher(
        client,
        RedirectPolicy(FakeResolver()),
        AdsTxtParser(),
        user_agent="test-agent/1.0",
        max_redirects=max_redirects,
    )


def _request(url: str) -> Request:
    return Request.create(url, FakeResolver())


def test_plain_text_response_is_returned():
    client = FakeHttpClient({"http://a.example.com": text_response(BODY)})

    result = asyncio.run(_fetcher(client).fetch(_request("http://a.example.com")))

    assert result.body == BODY
    assert result.final_url == "http://a.example.com"
    assert result.status_code == 200
    assert result.content_type.startswith("text/plain")
    assert len(result.records.data_records) == 1
    assert result.records.data_records[0].ad_system_domain == "google.com"
    assert client.served[0].closed is True


def test_request_headers_identify_client_and_disable_keep_alive():
    client = FakeHttpClient({"http://example.com/ads.txt": text_response(BODY)})

    asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    _, timeout, headers = client.calls[0]
    assert headers["User-Agent"] == "test-agent/1.0"
    assert headers["Accept"] == "text/plain"
    assert headers["Accept-Charset"] == "utf-8"
    assert headers["Connection"] == "close"
    assert timeout.read_seconds == 30
    assert timeout.connect_seconds == 30


def test_same_domain_redirect_sets_final_url():
    client = FakeHttpClient(
        {
            "http://a.example.com": redirect("http://a.example.com/ads.txt"),
            "http://a.example.com/ads.txt": text_response(BODY),
        }
    )

    result = asyncio.run(_fetcher(client).fetch(_request("http://a.example.com")))

    assert result.final_url == "http://a.example.com/ads.txt"
    assert [c[0] for c in client.calls] == ["http://a.example.com", "http://a.example.com/ads.txt"]


@pytest.mark.parametrize("status_code", [301, 302, 307])
def test_all_redirect_statuses_are_followed(status_code):
    client = FakeHttpClient(
        {
            "http://example.com/ads.txt": redirect("https://www.example.com/ads.txt", status_code),
            "https://www.example.com/ads.txt": text_response(BODY),
        }
    )

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert result.final_url == "https://www.example.com/ads.txt"


def test_single_delegation_then_second_cross_domain_hop_is_rejected():
    client = FakeHttpClient(
        {
            "http://a.example.com": redirect("http://b.example.org/ads.txt"),
            "http://b.example.org/ads.txt": redirect("http://c.example.net/ads.txt"),
            "http://c.example.net/ads.txt": text_response(BODY),
        }
    )

    with pytest.raises(CrossDomainRedirectError) as exc_info:
        asyncio.run(_fetcher(client).fetch(_request("http://a.example.com")))

    assert exc_info.value.domain == "example.com"
    assert exc_info.value.url == "http://b.example.org/ads.txt"
    assert exc_info.value.target == "http://c.example.net/ads.txt"
    assert len(client.calls) == 2


def test_single_delegation_is_followed():
    client = FakeHttpClient(
        {
            "http://example.com/ads.txt": redirect("http://adops.example.org/ads.txt"),
            "http://adops.example.org/ads.txt": redirect("https://adops.example.org/ads.txt"),
            "https://adops.example.org/ads.txt": text_response(BODY),
        }
    )

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert result.final_url == "https://adops.example.org/ads.txt"


def test_long_chain_within_original_domain_is_followed():
    routes = {}
    for i in range(5):
        routes[f"http://example.com/{i}/ads.txt"] = redirect(f"http://example.com/{i + 1}/ads.txt")
    routes["http://example.com/5/ads.txt"] = text_response(BODY)
    client = FakeHttpClient(routes)

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/0/ads.txt")))

    assert result.final_url == "http://example.com/5/ads.txt"


def test_redirect_cap_terminates_chain():
    routes = {f"http://example.com/{i}/ads.txt": redirect(f"http://example.com/{i + 1}/ads.txt") for i in range(10)}
    client = FakeHttpClient(routes)

    with pytest.raises(TooManyRedirectsError):
        asyncio.run(_fetcher(client, max_redirects=3).fetch(_request("http://example.com/0/ads.txt")))

    assert len(client.calls) == 4


def test_redirect_to_self_is_a_loop():
    client = FakeHttpClient({"http://example.com/ads.txt": redirect("http://example.com/ads.txt")})

    with pytest.raises(RedirectLoopError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))


def test_redirect_cycle_is_a_loop():
    client = FakeHttpClient(
        {
            "http://example.com/ads.txt": redirect("https://example.com/ads.txt"),
            "https://example.com/ads.txt": redirect("http://example.com/ads.txt"),
        }
    )

    with pytest.raises(RedirectLoopError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))


def test_redirect_to_homepage_is_rejected():
    client = FakeHttpClient({"http://example.com/ads.txt": redirect("https://www.example.com")})

    with pytest.raises(HomepageRedirectError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))


def test_wrong_content_type_is_rejected_without_reading_body():
    response = FakeHttpResponse(200, {"Content-Type": "application/octet-stream"}, BODY)
    client = FakeHttpClient({"http://example.com/ads.txt": response})

    with pytest.raises(ContentTypeError) as exc_info:
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert exc_info.value.content_type == "application/octet-stream"
    assert response.read_called is False
    assert response.closed is True


def test_missing_content_type_is_rejected():
    response = FakeHttpResponse(200, {}, BODY)
    client = FakeHttpClient({"http://example.com/ads.txt": response})

    with pytest.raises(ContentTypeError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert response.read_called is False


@pytest.mark.parametrize("status_code", [304, 404, 500])
def test_non_redirect_error_status_is_rejected(status_code):
    client = FakeHttpClient({"http://example.com/ads.txt": FakeHttpResponse(status_code, {"content-type": "text/plain"})})

    with pytest.raises(HttpStatusError) as exc_info:
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert exc_info.value.status_code == status_code
    assert exc_info.value.domain == "example.com"


def test_missing_expires_is_not_fatal():
    client = FakeHttpClient({"http://example.com/ads.txt": text_response(BODY)})

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert result.expires is None
    assert result.body == BODY
    assert result.records.data_records


def test_invalid_expires_is_not_fatal():
    client = FakeHttpClient({"http://example.com/ads.txt": text_response(BODY, expires="not a date")})

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert result.expires is None
    assert result.body == BODY


def test_expires_header_is_parsed():
    client = FakeHttpClient(
        {"http://example.com/ads.txt": text_response(BODY, expires="Wed, 21 Oct 2015 07:28:00 GMT")}
    )

    result = asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert result.expires == datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)


def test_parse_expires_defaults_to_utc_for_naive_dates():
    parsed = parse_expires({"expires": "Wed, 21 Oct 2015 07:28:00 -0000"})

    assert parsed is not None
    assert parsed.tzinfo is not None


def test_timeout_maps_to_transport_timeout_error():
    client = FakeHttpClient({"http://example.com/ads.txt": HttpClientTimeoutError("timeout")})

    with pytest.raises(TransportTimeoutError) as exc_info:
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert exc_info.value.url == "http://example.com/ads.txt"


def test_connection_error_maps_to_transport_error():
    client = FakeHttpClient({"http://example.com/ads.txt": HttpClientError("connection refused")})

    with pytest.raises(TransportError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))


def test_body_read_failure_maps_to_transport_error():
    response = FakeHttpResponse(
        200, {"content-type": "text/plain"}, read_error=HttpClientError("connection reset")
    )
    client = FakeHttpClient({"http://example.com/ads.txt": response})

    with pytest.raises(TransportError):
        asyncio.run(_fetcher(client).fetch(_request("http://example.com/ads.txt")))

    assert response.closed is True


def test_cancel_event_stops_before_first_hop():
    client = FakeHttpClient({"http://example.com/ads.txt": text_response(BODY)})

    async def run():
        event = asyncio.Event()
        event.set()
        return await _fetcher(client).fetch(_request("http://example.com/ads.txt"), cancel_event=event)

    with pytest.raises(FetchCancelledError):
        asyncio.run(run())

    assert client.calls == []


def test_slow_body_exceeding_call_timeout_is_a_transport_timeout():
    response = FakeHttpResponse(200, {"content-type": "text/plain"}, BODY, read_delay=0.5)
    client = FakeHttpClient({"http://example.com/ads.txt": response})
    fetcher = AdsTxtFetcher(client, RedirectPolicy(FakeResolver()), request_timeout_seconds=0.1)

    with pytest.raises(TransportTimeoutError):
        asyncio.run(fetcher.fetch(_request("http://example.com/ads.txt")))

    assert response.closed is True


def test_slow_response_headers_exceeding_call_timeout_is_a_transport_timeout():
    client = FakeHttpClient(
        {"http://example.com/ads.txt": text_response(BODY)},
        delays={"http://example.com/ads.txt": 0.5},
    )
    fetcher = AdsTxtFetcher(client, RedirectPolicy(FakeResolver()), request_timeout_seconds=0.1)

    with pytest.raises(TransportTimeoutError):
        asyncio.run(fetcher.fetch(_request("http://example.com/ads.txt")))


def test_call_timeout_applies_per_hop_not_per_sequence():
    client = FakeHttpClient(
        {
            "http://example.com/ads.txt": redirect("https://example.com/ads.txt"),
            "https://example.com/ads.txt": text_response(BODY),
        },
        delays={"http://example.com/ads.txt": 0.15, "https://example.com/ads.txt": 0.15},
    )
    fetcher = AdsTxtFetcher(client, RedirectPolicy(FakeResolver()), request_timeout_seconds=0.25)

    result = asyncio.run(fetcher.fetch(_request("http://example.com/ads.txt")))

    assert result.final_url == "https://example.com/ads.txt"
