"""HTTP primitives: requests, responses, parameters, headers, cookies."""

from cureconnect.http.headers import Headers
from cureconnect.http.params import Params
from cureconnect.http.request import HttpRequest, Request, SimpleRequest
from cureconnect.http.response import Response

__all__ = [
    "Headers",
    "HttpRequest",
    "Params",
    "Request",
    "Response",
    "SimpleRequest",
]
