"""ASGI response sending: translates a Response into ASGI messages."""

from cureconnect.http.response import Response, body_allowed
from cureconnect.server.asgi import Send


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls.

    Claims the response first, so a second attempt to send the same
    response raises ``ResponseAlreadySent`` before anything is written.
    """
    response.mark_sent()

    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.raw_headers()
    ]
    body = response.body_bytes if body_allowed(response.status) else b""

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
