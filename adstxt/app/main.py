import argparse
import asyncio
import signal
import sys
from typing import Optional, Sequence

from loguru import logger

from adstxt.app.composition import create_crawler_dependencies
from adstxt.app.config.settings import Settings
from adstxt.app.constants import SERVICE_NAME
from adstxt.app.domain.errors import RequestConstructionError
from adstxt.app.domain.models import Outcome, Request, Response


def _log(event: str, **kwargs) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="adstxt-crawl",
        description="Fetch ads.txt files from one or more hosts.",
    )
    parser.add_argument("hosts", nargs="+", help="host names or URLs, e.g. example.com")
    return parser.parse_args(argv)


async def run_crawler(hosts: Sequence[str], settings: Settings) -> int:
    deps = create_crawler_dependencies(settings)

    requests: list[Request] = []
    failed = 0
    for host in hosts:
        try:
            requests.append(Request.for_host(host, deps.resolver))
        except RequestConstructionError as e:
            failed += 1
            logger.error("skipping {}: {}", host, e)

    cancel_event = asyncio.Event()

    def request_shutdown() -> None:
        if not cancel_event.is_set():
            _log("shutdown_signal")
            cancel_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except NotImplementedError:
            pass

    def handler(request: Request, response: Optional[Response], error: Optional[Exception]) -> None:
        nonlocal failed
        outcome = Outcome(request=request, response=response, error=error)
        if error is not None:
            failed += 1
            logger.bind(**outcome.to_dict()).warning("{}", error)
            return
        _log("outcome", **outcome.to_dict())
        for record in response.records.data_records:
            print(
                f"{request.domain}\t{record.ad_system_domain}\t{record.publisher_account_id}"
                f"\t{record.relationship}\t{record.certification_authority_id}"
            )

    await deps.connect()
    try:
        await deps.batch_service.run(requests, handler, cancel_event=cancel_event)
    finally:
        await deps.close()
    return 1 if failed else 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    settings = Settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())
    try:
        sys.exit(asyncio.run(run_crawler(args.hosts, settings)))
    except KeyboardInterrupt:
        _log("crawler_interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
