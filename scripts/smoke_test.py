#!/usr/bin/env python3
"""Smoke test for a running Sleep Dashboard instance.

Works against any target: Docker Compose, K8s port-forward, deployed environment.
Uses httpx (project dependency) for HTTP calls. Sleep data checks use
mock=true so they pass without upstream credentials.

Usage:
    python scripts/smoke_test.py                                   # default localhost:8000
    python scripts/smoke_test.py --base-url http://10.0.0.5:8000   # custom target
    python scripts/smoke_test.py --wait 120 --verbose              # longer wait, verbose
"""

from __future__ import annotations

import argparse
import sys
import time
import uuid
from datetime import date, timedelta

import httpx

MOCK_RANGE = {"start": "2024-03-01", "end": "2024-03-07", "mock": "true"}


def _note_day(run_id: str) -> date:
    # A distinct day per run in 2000-2009, well away from real notes
    return date(2000, 1, 1) + timedelta(days=int(run_id, 16) % 3650)


# ── Test infrastructure ─────────────────────────────────────────


class TestResult:
    def __init__(self, name: str, passed: bool, detail: str = ""):
        self.name = name
        self.passed = passed
        self.detail = detail


class SmokeRunner:
    def __init__(self, base_url: str, verbose: bool = False):
        self.client = httpx.Client(base_url=base_url, timeout=30.0)
        self.verbose = verbose
        self.results: list[TestResult] = []
        self.run_id = uuid.uuid4().hex[:8]
        self.note_day = _note_day(self.run_id).isoformat()
        self.note_text = f"smoke {self.run_id}"
        self.all_responses: list[httpx.Response] = []

    def _record(self, name: str, passed: bool, detail: str = "") -> TestResult:
        result = TestResult(name, passed, detail)
        self.results.append(result)
        status = "PASS" if passed else "FAIL"
        line = f" [{status}] {name}"
        if detail and (not passed or self.verbose):
            line += f"  ({detail})"
        print(line)
        return result

    def _check(
        self,
        name: str,
        resp: httpx.Response,
        expected_status: int,
        checks: dict[str, object] | None = None,
    ) -> TestResult:
        self.all_responses.append(resp)
        if resp.status_code != expected_status:
            return self._record(
                name,
                False,
                f"expected {expected_status}, got {resp.status_code}: {resp.text[:300]}",
            )
        if checks:
            try:
                body = resp.json()
                for path, expected in checks.items():
                    value = body
                    for key in path.split("."):
                        value = value[key]
                    assert value == expected, f"{path}: expected {expected!r}, got {value!r}"
            except (KeyError, AssertionError, ValueError) as e:
                return self._record(name, False, str(e))
        return self._record(name, True)

    # ── Individual checks ────────────────────────────────────────

    def check_health(self) -> None:
        resp = self.client.get("/health")
        self._check("Health check", resp, 200, {"status": "ok"})

    def check_swagger(self) -> None:
        resp = self.client.get("/docs")
        self.all_responses.append(resp)
        self._record("Swagger UI accessible", resp.status_code == 200)

    def check_mock_cards(self) -> None:
        resp = self.client.get("/api/v1/sleep", params=MOCK_RANGE)
        self.all_responses.append(resp)
        ok = resp.status_code == 200
        detail = f"{resp.status_code}"
        if ok:
            body = resp.json()
            days = [card["day"] for card in body["data"]]
            ok = body["meta"]["is_mock"] and len(days) == 7 and days == sorted(days, reverse=True)
            detail = f"days={days}"
        self._record("Mock cards view (newest first)", ok, detail)

    def check_mock_trend(self) -> None:
        resp = self.client.get("/api/v1/sleep", params={**MOCK_RANGE, "view": "trend"})
        self.all_responses.append(resp)
        ok = resp.status_code == 200
        detail = f"{resp.status_code}"
        if ok:
            points = resp.json()["data"]
            days = [p["day"] for p in points]
            ok = 0 < len(points) <= 12 and days == sorted(days)
            detail = f"{len(points)} points"
        self._record("Mock trend view", ok, detail)

    def check_note_upsert(self) -> None:
        first = self.client.put(
            f"/api/v1/notes/{self.note_day}", json={"notes": "first draft"}
        )
        self.all_responses.append(first)
        second = self.client.put(
            f"/api/v1/notes/{self.note_day}", json={"notes": self.note_text}
        )
        self.all_responses.append(second)
        ok = first.status_code == 200 and second.status_code == 200
        detail = f"{first.status_code}/{second.status_code}"
        if ok:
            ok = first.json()["data"]["id"] == second.json()["data"]["id"]
            detail = "same note id" if ok else "upsert created a second note"
        self._record("Note upsert (last writer wins)", ok, detail)

    def check_note_read_after_write(self) -> None:
        resp = self.client.get(f"/api/v1/notes/{self.note_day}")
        self._check(
            "Note read-after-write",
            resp,
            200,
            {"data.notes": self.note_text, "data.sleep_date": self.note_day},
        )

    def check_error_missing_note(self) -> None:
        resp = self.client.get("/api/v1/notes/1999-01-01")
        self.all_responses.append(resp)
        ok = (
            resp.status_code == 404
            and resp.headers.get("content-type") == "application/problem+json"
        )
        self._record("Error: missing note", ok, f"{resp.status_code}")

    def check_error_invalid_view(self) -> None:
        resp = self.client.get("/api/v1/sleep", params={**MOCK_RANGE, "view": "calendar"})
        self._check("Error: invalid view", resp, 400, {"title": "Invalid View Parameter"})

    def check_error_invalid_date_range(self) -> None:
        resp = self.client.get(
            "/api/v1/sleep",
            params={"start": "2024-03-15", "end": "2024-03-01", "mock": "true"},
        )
        self.all_responses.append(resp)
        ok = resp.status_code == 400
        if ok:
            body = resp.json()
            rfc_fields = {"type", "title", "status", "detail", "instance"}
            ok = rfc_fields <= body.keys()
        self._record("Error: invalid date range", ok, f"{resp.status_code}")

    def check_metrics(self) -> None:
        resp = self.client.get("/metrics/")
        self.all_responses.append(resp)
        ok = resp.status_code == 200
        detail = ""
        if ok:
            text = resp.text
            has_mock = 'reconciled_records_total{origin="mock"}' in text
            has_api = "api_requests_total" in text
            ok = has_mock and has_api
            if not ok:
                detail = f"mock_records={has_mock}, api_requests={has_api}"
        self._record("Metrics increment after requests", ok, detail)

    def check_request_id_header(self) -> None:
        missing = []
        for resp in self.all_responses:
            if "X-Request-ID" not in resp.headers:
                missing.append(f"{resp.request.method} {resp.request.url.path}")
        ok = len(missing) == 0
        detail = ""
        if not ok:
            detail = f"missing on: {missing[:3]}"
        self._record("X-Request-ID present on all responses", ok, detail)

    def run_all(self) -> int:
        self.check_health()
        self.check_swagger()
        self.check_mock_cards()
        self.check_mock_trend()
        self.check_note_upsert()
        self.check_note_read_after_write()
        self.check_error_missing_note()
        self.check_error_invalid_view()
        self.check_error_invalid_date_range()
        self.check_metrics()
        self.check_request_id_header()

        passed = sum(1 for r in self.results if r.passed)
        failed = len(self.results) - passed
        print(f"\n{passed}/{len(self.results)} passed")
        return failed


# ── Entry point ──────────────────────────────────────────────────


def wait_for_health(client: httpx.Client, timeout: int) -> None:
    """Poll /health until it returns 200 or timeout expires."""
    start = time.monotonic()
    print("Waiting for /health...", end=" ", flush=True)
    while time.monotonic() - start < timeout:
        try:
            resp = client.get("/health")
            if resp.status_code == 200:
                elapsed = time.monotonic() - start
                print(f"OK ({elapsed:.1f}s)")
                return
        except (httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError):
            pass
        time.sleep(2)
    elapsed = time.monotonic() - start
    print(f"TIMEOUT ({elapsed:.0f}s)")
    print("ERROR: app did not become healthy in time")
    sys.exit(1)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke test for Sleep Dashboard API")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Target URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--wait",
        type=int,
        default=60,
        help="Max seconds to wait for /health (default: 60)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print response details on success (default: only on failure)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    print("Sleep Dashboard Smoke Test")
    print(f"Target: {args.base_url}")
    print()

    client = httpx.Client(base_url=args.base_url, timeout=30.0)
    wait_for_health(client, timeout=args.wait)
    client.close()

    print()
    runner = SmokeRunner(args.base_url, verbose=args.verbose)
    failed = runner.run_all()
    sys.exit(failed)


if __name__ == "__main__":
    main()
