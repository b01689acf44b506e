"""Thin aiohttp JSON API over :class:`~src.app.PetApp`.

Routes map one-to-one onto PetApp operations; no logic lives here beyond
request parsing and status codes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import web

from src.config import settings
from src.profiles.models import InvalidProfileError

if TYPE_CHECKING:
    from src.app import PetApp

logger = logging.getLogger(__name__)

PET_APP = web.AppKey("pet_app", object)


def _pets(request: web.Request) -> PetApp:
    return request.app[PET_APP]


async def _read_json(request: web.Request) -> dict[str, Any] | None:
    try:
        payload = await request.json()
    except Exception:
        return None
    return payload if isinstance(payload, dict) else None


def _bad_request(message: str) -> web.Response:
    return web.json_response({"error": message}, status=400)


def _not_found(pet_id: str) -> web.Response:
    return web.json_response({"error": f"pet not found: {pet_id}"}, status=404)


# -- Handlers ------------------------------------------------------------------


async def _health(request: web.Request) -> web.Response:
    """GET /health — basic liveness check."""
    return web.json_response({"status": "ok"})


async def _chat(request: web.Request) -> web.Response:
    """POST /api/chat — ``{"pet_id": ..., "message": ...}``."""
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON")
    pet_id = payload.get("pet_id")
    message = payload.get("message")
    if not isinstance(pet_id, str) or not pet_id or not isinstance(message, str) or not message:
        return _bad_request("pet_id and message are required")

    reply = await _pets(request).send_message(pet_id, message)
    return web.json_response({"response": reply})


async def _create_pet(request: web.Request) -> web.Response:
    """POST /api/pets — create a profile and start monitoring."""
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON")
    try:
        pet_id = await _pets(request).create_profile(payload)
    except InvalidProfileError as exc:
        logger.warning("Profile rejected: %s", exc)
        return _bad_request(str(exc))
    return web.json_response({"pet_id": pet_id}, status=201)


async def _list_pets(request: web.Request) -> web.Response:
    profiles = await _pets(request).list_profiles()
    return web.json_response([p.model_dump(mode="json") for p in profiles])


async def _get_pet(request: web.Request) -> web.Response:
    pet_id = request.match_info["pet_id"]
    profile = await _pets(request).get_profile(pet_id)
    if profile is None:
        return _not_found(pet_id)
    return web.json_response(profile.model_dump(mode="json"))


async def _update_pet(request: web.Request) -> web.Response:
    pet_id = request.match_info["pet_id"]
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON")
    try:
        profile = await _pets(request).update_profile(pet_id, payload)
    except InvalidProfileError as exc:
        return _bad_request(str(exc))
    if profile is None:
        return _not_found(pet_id)
    return web.json_response(profile.model_dump(mode="json"))


async def _delete_pet(request: web.Request) -> web.Response:
    pet_id = request.match_info["pet_id"]
    if not await _pets(request).delete_profile(pet_id):
        return _not_found(pet_id)
    return web.json_response({"ok": True})


async def _sensor(request: web.Request) -> web.Response:
    """GET /api/sensor/{pet_id} — current reading (bootstraps monitoring)."""
    reading = await _pets(request).get_current_reading(request.match_info["pet_id"])
    return web.json_response(reading.model_dump(mode="json") if reading else None)


async def _sensor_health(request: web.Request) -> web.Response:
    status = await _pets(request).get_health_status(request.match_info["pet_id"])
    return web.json_response(status.model_dump(mode="json") if status else None)


async def _sensor_recent(request: web.Request) -> web.Response:
    """GET /api/sensor/{pet_id}/recent?minutes=30 — synthesized history, oldest first."""
    try:
        minutes = float(request.query.get("minutes", "30"))
    except ValueError:
        return _bad_request("minutes must be a number")
    if minutes < 0:
        return _bad_request("minutes must not be negative")
    readings = await _pets(request).get_recent_readings(request.match_info["pet_id"], minutes)
    return web.json_response([r.model_dump(mode="json") for r in readings])


async def _sensor_check(request: web.Request) -> web.Response:
    return web.json_response(await _pets(request).check_health(request.match_info["pet_id"]))


async def _sensor_snapshot(request: web.Request) -> web.Response:
    """POST /api/sensor/{pet_id}/snapshot — store the current reading in health memory."""
    await _pets(request).save_snapshot(request.match_info["pet_id"])
    return web.json_response({"ok": True}, status=201)


def create_web_app(pets: PetApp) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application()
    app[PET_APP] = pets
    app.router.add_get("/health", _health)
    app.router.add_post("/api/chat", _chat)
    app.router.add_post("/api/pets", _create_pet)
    app.router.add_get("/api/pets", _list_pets)
    app.router.add_get("/api/pets/{pet_id}", _get_pet)
    app.router.add_patch("/api/pets/{pet_id}", _update_pet)
    app.router.add_delete("/api/pets/{pet_id}", _delete_pet)
    app.router.add_get("/api/sensor/{pet_id}", _sensor)
    app.router.add_get("/api/sensor/{pet_id}/health", _sensor_health)
    app.router.add_get("/api/sensor/{pet_id}/recent", _sensor_recent)
    app.router.add_get("/api/sensor/{pet_id}/check", _sensor_check)
    app.router.add_post("/api/sensor/{pet_id}/snapshot", _sensor_snapshot)
    return app


class ApiServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(self, pets: PetApp, host: str | None = None, port: int | None = None) -> None:
        self._pets = pets
        self.host = host or settings.api_host
        self.port = port or settings.api_port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        app = create_web_app(self._pets)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("API server listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("API server stopped")
