#!/usr/bin/env python3
"""
Skill Validation - External Liveness Prober

Sends one HEAD request per unique external URL, all in flight together
(bounded by a semaphore), each limited by its own timeout. A URL is alive
when the response status is below 400. Redirects are not followed and no
request is retried. Every probe settles independently: a failure never
cancels its siblings.

Usage:
    uv run python scripts/check_links.py https://example.com https://apideck.com
    uv run python scripts/check_links.py --timeout 5 https://example.com
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass

import httpx
from skill_validation_common import DEFAULT_LINK_TIMEOUT, DEFAULT_MAX_CONCURRENCY, ValidationReport, colorize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single liveness probe.

    Attributes:
        url: Probed URL
        ok: True when the server answered with a status below 400
        status: HTTP status code, 0 when no response arrived
        error: Error description when no response arrived
    """

    url: str
    ok: bool
    status: int = 0
    error: str | None = None

    @property
    def detail(self) -> str:
        return self.error or str(self.status)


async def probe_url(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    semaphore: asyncio.Semaphore,
) -> ProbeResult:
    """Probe one URL with a HEAD request, capturing every failure as a result."""
    async with semaphore:
        try:
            async with asyncio.timeout(timeout):
                response = await client.head(url)
        except (TimeoutError, httpx.TimeoutException):
            logger.debug("Probe timed out after %ss: %s", timeout, url)
            return ProbeResult(url, ok=False, error="timeout")
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as e:
            logger.debug("Probe failed for %s: %s", url, e)
            return ProbeResult(url, ok=False, error=str(e) or type(e).__name__)

    logger.debug("Probe %s -> %s", url, response.status_code)
    return ProbeResult(url, ok=response.status_code < 400, status=response.status_code)


async def probe_urls(
    urls: list[str],
    timeout: float = DEFAULT_LINK_TIMEOUT,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ProbeResult]:
    """Probe every URL concurrently and wait for all probes to settle.

    Args:
        urls: URLs to probe (duplicates are probed once)
        timeout: Per-probe timeout in seconds
        max_concurrency: Maximum number of probes in flight
        transport: Optional httpx transport (used by tests)

    Returns:
        One ProbeResult per unique URL, in first-seen order
    """
    unique = list(dict.fromkeys(urls))
    if not unique:
        return []

    semaphore = asyncio.Semaphore(max_concurrency)
    async with httpx.AsyncClient(follow_redirects=False, timeout=timeout, transport=transport) as client:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(probe_url(client, url, timeout, semaphore)) for url in unique]

    return [task.result() for task in tasks]


def run_probes(
    urls: list[str],
    timeout: float = DEFAULT_LINK_TIMEOUT,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ProbeResult]:
    """Synchronous wrapper around probe_urls()."""
    return asyncio.run(probe_urls(urls, timeout, max_concurrency, transport))


def record_probe_results(results: list[ProbeResult], report: ValidationReport) -> int:
    """Add one warning per broken URL to the report.

    Returns:
        Number of broken URLs
    """
    broken = 0
    for result in results:
        if not result.ok:
            report.warning(f"broken URL {result.url} ({result.detail})", result.url, "liveness")
            broken += 1
    if broken == 0:
        report.passed("All external URLs reachable", phase="liveness")
    return broken


def format_probe_result(result: ProbeResult) -> str:
    """Format a probe outcome as an OK or BROKEN console line."""
    if result.ok:
        return f"{colorize('OK', 'PASSED')} {result.url} ({result.status})"
    return f"{colorize('BROKEN', 'ERROR')} {result.url} ({result.detail})"


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Check that external URLs respond")
    parser.add_argument("urls", nargs="+", help="URLs to probe")
    parser.add_argument("--timeout", type=float, default=DEFAULT_LINK_TIMEOUT, help="Per-URL timeout in seconds")
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=DEFAULT_MAX_CONCURRENCY,
        help="Maximum number of probes in flight",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every probe outcome")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    results = run_probes(args.urls, args.timeout, args.max_concurrency)
    broken = 0
    for result in results:
        print(f"  {format_probe_result(result)}")
        if not result.ok:
            broken += 1

    # Unreachable URLs are advisory; they never fail the check
    if broken:
        print(f"\n  {broken} broken URL(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
