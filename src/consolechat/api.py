"""JSON HTTP routes, registered on the Flask server behind the Dash app.

Streaming replies use a line-oriented data stream: ``0:<json string>`` for
each text fragment and ``3:<json string>`` for an error raised after the
stream started.
"""

import json
import logging
from typing import Any, Dict, Iterator

from flask import Response, jsonify, request

from .errors import ConsoleChatError
from .keys import check_key_format
from .models import GEMINI, OPENAI

logger = logging.getLogger(__name__)

TEXT_PART = "0"
ERROR_PART = "3"


def encode_part(kind: str, value: str) -> str:
    return f"{kind}:{json.dumps(value)}\n"


def data_stream(fragments: Iterator[str]) -> Iterator[str]:
    """Frames fragments one by one; a mid-stream failure becomes an error part."""
    try:
        for fragment in fragments:
            yield encode_part(TEXT_PART, fragment)
    except ConsoleChatError as exc:
        logger.warning("Stream error: %s", exc)
        yield encode_part(ERROR_PART, f"Error during streaming: {exc}")
    except Exception as exc:
        logger.exception("Unexpected stream error")
        yield encode_part(ERROR_PART, f"Error during streaming: {exc or 'Unknown error'}")
    finally:
        close = getattr(fragments, "close", None)
        if close is not None:
            close()


def _payload() -> Dict[str, Any]:
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        logger.warning("Failed to parse request body as a JSON object")
        return {}
    return payload


def _json(reply):
    return jsonify(reply.body), reply.status


def register_routes(app) -> None:
    """Adds the API endpoints to `app.server` using `app.dispatcher`."""
    server = app.server

    @server.post("/api/validate-key")
    def validate_key():
        payload = _payload()
        status, body = check_key_format(payload.get("provider"), payload.get("apiKey"))
        return jsonify(body), status

    @server.post("/api/openai")
    def openai_chat():
        return _json(app.dispatcher.send(_payload(), OPENAI))

    @server.post("/api/gemini")
    def gemini_chat():
        return _json(app.dispatcher.send(_payload(), GEMINI))

    @server.post("/api/chat")
    def chat():
        reply = app.dispatcher.stream(_payload())
        if reply.stream is None:
            return _json(reply)
        return Response(
            data_stream(reply.stream),
            status=reply.status,
            mimetype="text/plain",
            headers={"X-Vercel-AI-Data-Stream": "v1", "Cache-Control": "no-cache"},
        )
