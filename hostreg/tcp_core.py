# hostreg/tcp_core.py
import logging
from typing import Optional

from hostreg.auth import bearer_token, issue_token, verify_owner
from hostreg.protocol import Request, Response, parse_form_params, parse_query_params
from hostreg.storage import HostnameRegistry
from hostreg.utils import utf8_len

OWNER_TOKEN_HEADER = "x-owner-token"


class HostnameHandler:
    """Routes parsed requests onto the hostname registry.

    ``owner_secret`` switches on ownership tokens: POST responses then carry a
    signed token and DELETE accepts it as proof of ownership. Without a secret
    DELETE answers 501. ``token_lifetime`` (seconds) makes tokens expire;
    without it they stay valid until the entry is overwritten.
    """

    def __init__(self, registry: Optional[HostnameRegistry] = None, owner_secret: Optional[str] = None,
                 token_lifetime: Optional[int] = None):
        self.registry = registry if registry is not None else HostnameRegistry()
        self.owner_secret = owner_secret
        self.token_lifetime = token_lifetime
        self.dispatch = {
            "GET": self.handle_GET,
            "POST": self.handle_POST,
            "DELETE": self.handle_DELETE,
        }

    @property
    def ownership_enabled(self) -> bool:
        return bool(self.owner_secret)

    def handle_request(self, request: Request) -> Response:
        logging.info(f"REQ: {request.method} {request.target} ({len(request.content)} body bytes)")
        handler = self.dispatch.get(request.method)
        if handler is None:
            return Response.not_implemented()
        return handler(request)

    def handle_GET(self, request: Request) -> Response:
        hostname = parse_query_params(request.target).get("hostname")
        if hostname is None:
            return Response.bad_request()
        value = self.registry.get(hostname)
        if value is None:
            return Response.not_found()
        headers = [
            ("content-type", "text/plain"),
            ("content-length", str(utf8_len(value))),
        ]
        return Response.ok(headers, value.encode("utf-8"))

    def handle_POST(self, request: Request) -> Response:
        form = parse_form_params(request)
        hostname = form.get("hostname")
        host_value = form.get("host_value")
        if hostname is None or host_value is None:
            return Response.bad_request()

        nonce = self.registry.put(hostname, host_value)
        logging.debug(f"registry is now: {self.registry.snapshot()}")

        if not self.ownership_enabled:
            return Response.ok()
        token = issue_token(hostname, nonce, self.owner_secret, self.token_lifetime)
        return Response.ok([(OWNER_TOKEN_HEADER, token)])

    def handle_DELETE(self, request: Request) -> Response:
        hostname = parse_query_params(request.target).get("hostname")
        if hostname is None:
            return Response.bad_request()
        if not self.ownership_enabled:
            # no way to tell the original poster from anyone else
            logging.warning(f"DELETE {hostname!r} refused: ownership tokens are disabled")
            return Response.not_implemented()

        token = bearer_token(request.header("authorization"))
        nonce = verify_owner(token, hostname, self.owner_secret) if token else None
        if nonce is None:
            return Response.forbidden()
        if hostname not in self.registry:
            return Response.not_found()
        if not self.registry.remove(hostname, owner=nonce):
            logging.info(f"DELETE {hostname!r} refused: token predates the current entry")
            return Response.forbidden()

        logging.debug(f"registry is now: {self.registry.snapshot()}")
        return Response.ok()
