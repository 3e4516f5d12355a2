"""
Acceptance smoke checks for gen-studio.

Usage:
  DATABASE_URL=sqlite:///./data/acceptance_gen_studio.db PYTHONPATH=src python scripts/acceptance_smoke.py
  DATABASE_URL=sqlite:///./data/acceptance_gen_studio.db PYTHONPATH=src python scripts/acceptance_smoke.py --with-external
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from typing import Callable

from fastapi.testclient import TestClient


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str


def _ok(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=True, detail=detail)


def _fail(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=False, detail=detail)


def run_check(name: str, fn: Callable[[], CheckResult]) -> CheckResult:
    try:
        return fn()
    except Exception as exc:  # pragma: no cover - smoke tool
        return _fail(name, f"exception: {exc}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run acceptance smoke checks.")
    parser.add_argument(
        "--with-external",
        action="store_true",
        help="Run checks that call the external image generation API.",
    )
    args = parser.parse_args()

    database_url = os.getenv("DATABASE_URL", "sqlite:///./data/acceptance_gen_studio.db")
    os.environ["DATABASE_URL"] = database_url
    os.environ.setdefault("NO_PROXY", "*")

    from gen_studio.core.database import init_db
    from gen_studio.main import app

    # Ensure tables exist for the acceptance database.
    init_db()

    client = TestClient(app)
    results: list[CheckResult] = []

    def check_health() -> CheckResult:
        resp = client.get("/health")
        if resp.status_code != 200:
            return _fail("GET /health", f"status={resp.status_code}, body={resp.text[:200]}")
        return _ok("GET /health", "healthy")

    def check_tools() -> CheckResult:
        resp = client.get("/api/tools")
        if resp.status_code != 200:
            return _fail("GET /api/tools", f"status={resp.status_code}, body={resp.text[:200]}")
        tools = [item["tool"] for item in resp.json()["data"]["items"]]
        if "ai-image-generator" not in tools:
            return _fail("GET /api/tools", f"unexpected tools: {tools}")
        return _ok("GET /api/tools", ", ".join(tools))

    def check_unsupported_tool() -> CheckResult:
        resp = client.post("/api/generate", json={"tool": "no-such-tool", "parameters": {}})
        data = resp.json()
        if resp.status_code != 400 or data.get("kind") != "unsupported_tool":
            return _fail("POST /api/generate", f"status={resp.status_code}, body={json.dumps(data)[:300]}")
        return _ok("POST /api/generate", "unsupported tool rejected")

    def check_missing_record() -> CheckResult:
        resp = client.post("/api/record/does-not-exist")
        data = resp.json()
        if resp.status_code != 404 or data.get("kind") != "record_not_found":
            return _fail("POST /api/record/{id}", f"status={resp.status_code}, body={json.dumps(data)[:300]}")
        return _ok("POST /api/record/{id}", "missing record rejected")

    def check_validation_envelope() -> CheckResult:
        resp = client.post(
            "/api/generate",
            json={"tool": "ai-image-generator", "parameters": {"prompt": "short", "ratio": "1:1", "format": "webp"}},
        )
        data = resp.json()
        if resp.status_code != 400 or data.get("kind") != "validation" or not data.get("field_errors"):
            return _fail("POST /api/generate (validation)", f"status={resp.status_code}, body={json.dumps(data)[:300]}")
        return _ok("POST /api/generate (validation)", data["message"])

    def check_user_info_anonymous() -> CheckResult:
        resp = client.get("/api/user/info")
        data = resp.json()
        if resp.status_code != 401 or data.get("kind") != "unauthenticated":
            return _fail("GET /api/user/info", f"status={resp.status_code}, body={json.dumps(data)[:300]}")
        return _ok("GET /api/user/info", "anonymous caller rejected")

    def check_generate_external() -> CheckResult:
        resp = client.post(
            "/api/generate",
            json={
                "tool": "ai-image-generator",
                "parameters": {"prompt": "a panda eating bamboo", "ratio": "1:1", "count": 1, "format": "webp"},
            },
        )
        data = resp.json()
        if resp.status_code != 200 or not data.get("success"):
            return _fail("POST /api/generate (external)", f"status={resp.status_code}, body={json.dumps(data)[:300]}")
        status = client.post(f"/api/record/{data['data']}").json()
        return _ok("POST /api/generate (external)", f"record={data['data']}, status={status.get('data')}")

    # Always-run checks.
    results.append(run_check("GET /health", check_health))
    results.append(run_check("GET /api/tools", check_tools))
    results.append(run_check("POST /api/generate", check_unsupported_tool))
    results.append(run_check("POST /api/record/{id}", check_missing_record))
    results.append(run_check("POST /api/generate (validation)", check_validation_envelope))
    results.append(run_check("GET /api/user/info", check_user_info_anonymous))

    # Optional external checks.
    if args.with_external:
        results.append(run_check("POST /api/generate (external)", check_generate_external))

    passed = sum(1 for item in results if item.passed)
    failed = len(results) - passed

    print("\nAcceptance Smoke Report")
    print("=" * 24)
    for item in results:
        status = "PASS" if item.passed else "FAIL"
        print(f"[{status}] {item.name}: {item.detail}")

    print("-" * 24)
    print(f"passed={passed}, failed={failed}, total={len(results)}")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
