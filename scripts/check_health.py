#!/usr/bin/env python3
"""Liveness and readiness checks for a deployed airtime giveaway API."""

from __future__ import annotations

import json
import os
import time
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


def fail(message: str) -> None:
    print(f"ERROR: {message}")
    raise SystemExit(1)


def normalize_base_url(base_url: str) -> str:
    url = (base_url or "").strip().rstrip("/")
    if url.endswith("/api"):
        return url[: -len("/api")]
    return url


def fetch_status(url: str, timeout: int) -> tuple[int, dict[str, Any]]:
    request = Request(url, headers={"User-Agent": "airtime-healthcheck/1.0"})
    try:
        with urlopen(request, timeout=timeout) as response:
            status_code = response.getcode()
            body = response.read().decode("utf-8", "replace")
    except HTTPError as exc:
        status_code = exc.code
        body = exc.read().decode("utf-8", "replace")
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        data = {}
    return status_code, data if isinstance(data, dict) else {}


def wait_for(base_url: str, path: str, expected_status: str, *, timeout: int, retries: int, delay: float) -> None:
    url = f"{base_url}{path}"
    problem = ""
    for attempt in range(retries + 1):
        try:
            status_code, data = fetch_status(url, timeout)
        except (URLError, TimeoutError) as exc:
            problem = f"{path} request failed: {exc}"
        else:
            if status_code == 200 and data.get("status") == expected_status:
                print(f"OK: {path} -> status={expected_status}")
                return
            problem = f"{path} returned HTTP {status_code} with status={data.get('status')!r}"

        if attempt < retries:
            wait = delay * (attempt + 1)
            print(f"WARN: {problem} (retry {attempt + 1}/{retries} in {wait:.1f}s)")
            time.sleep(wait)

    fail(problem or f"{path} failed")


def main() -> None:
    base_url = normalize_base_url(os.getenv("AIRTIME_API_BASE_URL", ""))
    if not base_url:
        fail("Missing AIRTIME_API_BASE_URL environment variable.")

    timeout = int(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "15"))
    retries = int(os.getenv("HEALTHCHECK_RETRIES", "3"))
    delay = float(os.getenv("HEALTHCHECK_RETRY_DELAY_SECONDS", "3"))

    wait_for(base_url, "/healthz", "ok", timeout=timeout, retries=retries, delay=delay)
    wait_for(base_url, "/readyz", "ready", timeout=timeout, retries=retries, delay=delay)
    print("SUCCESS: all health checks passed.")


if __name__ == "__main__":
    main()
