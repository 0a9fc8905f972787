"""Read-only SQL over HTTP.

``GET /?query=SELECT ...&arg=1&arg=2`` answers with a JSON array of row
objects. Only databases opened read-only can be served.
"""

import logging
from collections.abc import Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from sqlgate.errors import CapabilityError, SqlgateError
from sqlgate.store import jsonvalue
from sqlgate.store import facade as q
from sqlgate.store.connection import Database

logger = logging.getLogger(__name__)

DEFAULT_PARAMS = ("query", "q")


def _error(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


def create_app(db: Database, params: Sequence[str] = DEFAULT_PARAMS) -> FastAPI:
    if not db.read_only:
        raise CapabilityError("cannot serve a writable database - open it with read_only=True")
    params = tuple(params) or DEFAULT_PARAMS
    reader = db.reader

    app = FastAPI(title="sqlgate")

    @app.get("/")
    def run_query(request: Request):
        sql = ""
        for name in params:
            sql = request.query_params.get(name, "").strip()
            if sql:
                break
        if not sql:
            return _error("query must not be empty")
        args = request.query_params.getlist("arg")
        try:
            rows = q.query(reader, sql, list[dict], *args)
        except SqlgateError as e:
            logger.debug(f"rejected query: {e}")
            return _error(str(e))
        return Response(jsonvalue.dumps(rows), media_type="application/json")

    return app


def serve(db: Database, host: str = "127.0.0.1", port: int = 8000, params: Sequence[str] = DEFAULT_PARAMS) -> None:
    import uvicorn

    uvicorn.run(create_app(db, params), host=host, port=port, access_log=False)
