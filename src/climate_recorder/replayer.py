"""Replay server that serves recorded climate API interactions over HTTP.

Lets any HTTP client (including a direct-mode ``ClimateClient`` pointed at the
server) run against a transcript instead of the live service. When the
client's base URL carries a path (``http://localhost:61417/api``), pass that
path as ``path_prefix`` so it is stripped before matching.
"""

from __future__ import annotations

import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from climate_recorder._types import RequestDescriptor
from climate_recorder.errors import TranscriptExhausted, TranscriptMismatch
from climate_recorder.player import InteractionPlayer

logger = logging.getLogger("climate_recorder.replayer")

# Replayed responses keep the recorded content type only; framing headers are
# recomputed by the server.
_PASSTHROUGH_HEADERS = frozenset({"content-type"})


def _descriptor_for(request: Request, path_prefix: str) -> RequestDescriptor:
    path = request.url.path
    if path_prefix and path.startswith(path_prefix + "/"):
        path = path[len(path_prefix) :]
    return RequestDescriptor(
        method=request.method,
        path=path,
        params=dict(request.query_params),
    )


def create_replay_app(player: InteractionPlayer, *, path_prefix: str = "") -> Starlette:
    """Create a Starlette app that answers requests from a transcript, in order."""
    path_prefix = path_prefix.rstrip("/")

    async def _handle(request: Request) -> Response:
        descriptor = _descriptor_for(request, path_prefix)
        try:
            interaction = player.send(descriptor)
        except (TranscriptMismatch, TranscriptExhausted) as exc:
            logger.warning("%s -> 500 (%s)", descriptor, type(exc).__name__)
            return PlainTextResponse(str(exc), status_code=500)

        headers = {
            k: v
            for k, v in interaction.response_headers.items()
            if k.lower() in _PASSTHROUGH_HEADERS
        }
        return Response(
            content=interaction.response_body,
            status_code=interaction.response_status,
            headers=headers,
        )

    return Starlette(
        routes=[Route("/{path:path}", _handle, methods=["GET", "POST"])],
    )
