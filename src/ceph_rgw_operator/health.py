"""Health check endpoints for the operator."""

import json
import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.wrappers import Request, Response

_ready = threading.Event()


def set_ready(ready: bool = True) -> None:
    """Mark the operator as ready (or not) to serve reconciliations."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def _json_response(payload: dict[str, str], status: int) -> Response:
    return Response(json.dumps(payload), mimetype="application/json", status=status)


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app serving ``/healthz``, ``/readyz`` and the metrics.

    ``/readyz`` answers 503 until :func:`set_ready` has been called.
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        path = Request(environ).path

        if path == "/healthz":
            return _json_response({"status": "ok"}, 200)(environ, start_response)
        if path == "/readyz":
            if is_ready():
                return _json_response({"status": "ready"}, 200)(environ, start_response)
            return _json_response({"status": "starting"}, 503)(environ, start_response)
        return metrics_app(environ, start_response)

    return combined_app
