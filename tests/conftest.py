"""Shared fixtures: recap builders, a hand-resolved fake service, and a stub recap API."""

from __future__ import annotations

import asyncio
from typing import Any, NamedTuple

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from dayrecap.recap.models import Recap, RecapInsights, RecapPreferences, RecapStats
from dayrecap.recap.service import HttpRecapService
from dayrecap.recap.store import RecapStore

DAY = "2024-05-01"


def make_recap(date: str = DAY, *, quote: str = "Keep going.", **prefs: Any) -> Recap:
    """Build a fully-populated Recap; keyword args override preferences."""
    return Recap(
        date=date,
        insights=RecapInsights(
            quote=quote,
            day_summary="3 tasks scheduled, 2 completed",
            energy_patterns=("Morning activity started at 06:00", "95 minutes of tracked work time"),
            task_impact=("Completed 2 tasks today",),
            coach_insights=("Set realistic time blocks for each task",),
            power_questions=("What's the ONE task that would make tomorrow amazing?",),
            tomorrow_focus=("Plan your most important task before 10 AM",),
        ),
        user_preferences=RecapPreferences(**prefs),
        stats=RecapStats(productivity_score=77, completed_tasks=2, total_tasks=4),
    )


# ── Fake service with manually resolved calls ────────────────────────────────

class PendingCall(NamedTuple):
    op: str
    date: str
    future: asyncio.Future
    payload: Any = None


class FakeRecapService:
    """RecapService whose calls stay pending until the test resolves them.

    Resolving calls in a chosen order lets tests reproduce out-of-order
    completion of concurrent fetch/generate requests.
    """

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []

    async def _call(self, op: str, date: str, payload: Any = None) -> Any:
        fut = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(op, date, fut, payload))
        return await fut

    async def fetch(self, date: str) -> Recap | None:
        return await self._call("fetch", date)

    async def generate(self, date: str) -> Recap:
        return await self._call("generate", date)

    async def update_preferences(self, date: str, preferences: RecapPreferences) -> None:
        await self._call("update_preferences", date, preferences)

    async def delete(self, date: str) -> None:
        await self._call("delete", date)

    def of(self, op: str) -> list[PendingCall]:
        return [c for c in self.calls if c.op == op]

    async def wait_for_calls(self, n: int) -> None:
        """Yield to the loop until at least ``n`` calls were issued."""
        for _ in range(100):
            if len(self.calls) >= n:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"Expected {n} service calls, saw {len(self.calls)}")


async def settle(call: PendingCall, result: Any = None, *, error: BaseException | None = None) -> None:
    """Resolve a pending call and let its waiter run."""
    if error is not None:
        call.future.set_exception(error)
    else:
        call.future.set_result(result)
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture()
def store() -> RecapStore:
    return RecapStore()


@pytest.fixture()
def fake_service() -> FakeRecapService:
    return FakeRecapService()


# ── Stub recap API for the HTTP client ───────────────────────────────────────

def build_recap_api() -> FastAPI:
    """A minimal in-memory recap API with the routes HttpRecapService calls."""
    api = FastAPI()
    api.state.recaps = {}
    api.state.fail_status = None
    api.state.requests = []

    @api.middleware("http")
    async def record(request: Request, call_next):
        api.state.requests.append((request.method, request.url.path, dict(request.headers)))
        if api.state.fail_status:
            return JSONResponse({"detail": "upstream exploded"}, status_code=api.state.fail_status)
        return await call_next(request)

    @api.get("/api/recaps/{date}")
    async def get_recap(date: str) -> JSONResponse:
        if date not in api.state.recaps:
            raise HTTPException(404, "Recap not found")
        return JSONResponse(api.state.recaps[date])

    @api.post("/api/recaps/{date}/generate")
    async def generate_recap(date: str) -> JSONResponse:
        payload = make_recap(date, quote=f"Generated for {date}").to_dict()
        api.state.recaps[date] = payload
        return JSONResponse(payload, status_code=201)

    @api.put("/api/recaps/{date}/preferences")
    async def put_preferences(date: str, request: Request) -> JSONResponse:
        if date not in api.state.recaps:
            raise HTTPException(404, "Recap not found")
        api.state.recaps[date]["userPreferences"] = await request.json()
        return JSONResponse({"ok": True})

    @api.delete("/api/recaps/{date}")
    async def delete_recap(date: str) -> JSONResponse:
        if api.state.recaps.pop(date, None) is None:
            raise HTTPException(404, "Recap not found")
        return JSONResponse({"ok": True})

    return api


@pytest.fixture()
def recap_api() -> FastAPI:
    return build_recap_api()


@pytest_asyncio.fixture()
async def http_service(recap_api: FastAPI):
    """HttpRecapService bound to the stub API through an ASGI transport."""
    transport = httpx.ASGITransport(app=recap_api)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield HttpRecapService("http://test/api", api_token="sk-test-token", client=client)
