# mtls_greeter/server/app.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response

logger = logging.getLogger("mtls-server")


def greeting(body: bytes, server_label: str) -> bytes:
    return b"Hello, " + body + f" from {server_label}!".encode()


def create_app(server_label: str) -> FastAPI:
    app = FastAPI(title=server_label, docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/", methods=["GET", "POST", "PUT"])
    async def hello(request: Request):
        client_addr = request.client.host if request.client else None
        logger.info(
            "Received %s request for host %s from IP address %s and X-FORWARDED-FOR %s",
            request.method,
            request.headers.get("host"),
            client_addr,
            request.headers.get("x-forwarded-for"),
        )
        try:
            body = await request.body()
        except Exception as e:
            body = f"error reading request body: {e}".encode()

        resp = greeting(body, server_label)
        logger.info("%s: Sent response %s", server_label, resp.decode(errors="replace"))
        return Response(content=resp, media_type="text/plain")

    return app
