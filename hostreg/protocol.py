# hostreg/protocol.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

CRLF = b"\r\n"
BOUNDARY = b"\r\n\r\n"
READ_CHUNK_SIZE = 256
METHODS = ("GET", "POST", "DELETE")
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ProtocolError(ValueError):
    """Request bytes could not be turned into a Request."""


class FramingError(ProtocolError):
    pass


class ParseError(ProtocolError):
    pass


@dataclass
class Request:
    method: str
    target: str
    version: str
    # names are lower-cased; the last occurrence of a repeated name wins
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


@dataclass
class Response:
    version: str = "HTTP/1.1"
    status: int = 200
    reason: str = "OK"
    # kept as ordered pairs so the wire order is reproducible
    headers: List[Tuple[str, str]] = field(default_factory=list)
    content: bytes = b""

    @classmethod
    def ok(cls, headers=None, content: bytes = b"") -> "Response":
        return cls(status=200, reason="OK", headers=list(headers or []), content=content)

    @classmethod
    def bad_request(cls) -> "Response":
        return cls(status=400, reason="Bad Request")

    @classmethod
    def forbidden(cls) -> "Response":
        return cls(status=403, reason="Forbidden")

    @classmethod
    def not_found(cls) -> "Response":
        return cls(status=404, reason="Not Found")

    @classmethod
    def server_error(cls) -> "Response":
        return cls(status=500, reason="Internal Server Error")

    @classmethod
    def not_implemented(cls) -> "Response":
        return cls(status=501, reason="Not Implemented")


# --- wire reader ---

def recv_chunk(sock, size: int) -> bytes:
    while True:
        try:
            return sock.recv(size)
        except InterruptedError:
            continue


def read_until_boundary(buf: bytearray, sock, chunk_size: int = READ_CHUNK_SIZE) -> Tuple[bytearray, bool]:
    """Grow ``buf`` until it holds the blank line that ends the header block.

    Returns the buffer and whether the boundary was found; ``False`` means the
    peer closed the connection first.
    """
    while BOUNDARY not in buf:
        chunk = recv_chunk(sock, chunk_size)
        if not chunk:
            return buf, False
        buf += chunk
    return buf, True


def read_until_length(buf: bytearray, sock, length: int, chunk_size: int = READ_CHUNK_SIZE) -> Tuple[bytearray, bool]:
    """Grow ``buf`` until it holds at least ``length`` bytes."""
    while len(buf) < length:
        chunk = recv_chunk(sock, chunk_size)
        if not chunk:
            return buf, False
        buf += chunk
    return buf, True


def split_frame(buf: bytes) -> Tuple[str, bytes]:
    head, _, rest = bytes(buf).partition(BOUNDARY)
    return head.decode("utf-8", errors="replace"), rest


def declared_length(header_block: str) -> Optional[int]:
    """Content-Length of the header block, or None when it declares none.

    Repeated Content-Length headers must all agree.
    """
    values = set()
    for line in header_block.split("\r\n")[1:]:
        name, sep, value = line.partition(":")
        if not sep or name.lower() != "content-length":
            continue
        value = value.strip()
        # plain ASCII digits only; int() would also take "+5", "1_0" and non-ASCII digits
        if not (value.isascii() and value.isdigit()):
            raise FramingError(f"Bad Content-Length: {value!r}")
        values.add(int(value))
    if not values:
        return None
    if len(values) > 1:
        raise FramingError(f"Conflicting Content-Length values: {sorted(values)}")
    return values.pop()


def read_frame(sock, chunk_size: int = READ_CHUNK_SIZE) -> Tuple[str, bytes]:
    """Read one request off ``sock`` and return (header block, body)."""
    buf, found = read_until_boundary(bytearray(), sock, chunk_size)
    if not found:
        raise ConnectionError("Socket closed before end of headers")
    header_block, rest = split_frame(buf)

    length = declared_length(header_block)
    if length is None:
        return header_block, rest

    body, found = read_until_length(bytearray(rest), sock, length, chunk_size)
    if not found:
        raise ConnectionError(f"Socket closed after {len(body)} of {length} body bytes")
    # anything past the declared length would belong to a pipelined request
    return header_block, bytes(body[:length])


def read_request(sock, chunk_size: int = READ_CHUNK_SIZE) -> Request:
    header_block, body = read_frame(sock, chunk_size)
    return parse_request(header_block, body)


# --- request parser ---

def parse_request(header_block: str, body: bytes = b"") -> Request:
    # only CRLF separates lines; a bare LF stays part of its line
    lines = header_block.split("\r\n")

    parts = lines[0].split()
    if len(parts) != 3:
        raise ParseError("Malformed Start Line")
    method, target, version = parts
    if method not in METHODS:
        raise ParseError("Unknown Method")

    headers = {}
    for line in lines[1:]:
        if line == "":
            break
        if ":" not in line:
            raise ParseError("Malformed Header Line")
        k, v = line.split(":", 1)
        headers[k.lower()] = v.strip()

    return Request(method, target, version, headers, bytes(body))


def parse_key_value_list(text: str) -> Dict[str, str]:
    out = {}
    for pair in text.split("&"):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        out[key] = value
    return out


def parse_query_params(target: str) -> Dict[str, str]:
    if "?" not in target:
        return {}
    return parse_key_value_list(target.rsplit("?", 1)[1])


def parse_form_params(request: Request) -> Dict[str, str]:
    if request.method != "POST":
        return {}
    if request.header("content-type") != FORM_CONTENT_TYPE:
        return {}
    return parse_key_value_list(request.content.decode("utf-8", errors="replace"))


# --- response serializer ---

def serialize_response(response: Response) -> bytes:
    lines = [f"{response.version} {response.status} {response.reason}"]
    for k, v in response.headers:
        lines.append(f"{k}: {v}")
    header_block = "\r\n".join(lines) + "\r\n\r\n"
    return header_block.encode("utf-8") + response.content + CRLF
