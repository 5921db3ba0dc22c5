# hostreg/server_tcp.py
import argparse
import logging
import socket
import sys
import threading
from typing import List, Optional

from hostreg import auth
from hostreg.protocol import READ_CHUNK_SIZE, ProtocolError, Response, read_request, serialize_response
from hostreg.tcp_core import HostnameHandler

# Configuration
HOST = "0.0.0.0"
BACKLOG = 50
READ_TIMEOUT = 10.0
ACCEPT_POLL = 0.5


def list_addresses() -> List[str]:
    """IPv4 addresses this machine answers on, best effort."""
    addrs = {"127.0.0.1"}
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            addrs.add(info[4][0])
    except OSError as e:
        logging.debug(f"Could not resolve local hostname: {e}")
    return sorted(addrs)


def create_listener(host: str = HOST, port: int = 0, backlog: int = BACKLOG) -> socket.socket:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        s.bind((host, port))
        s.listen(backlog)
    except OSError:
        s.close()
        raise
    return s


def handle_client(conn, addr, handler: HostnameHandler, timeout: Optional[float] = READ_TIMEOUT,
                  chunk_size: int = READ_CHUNK_SIZE):
    logging.info(f"Connected: {addr}")
    try:
        conn.settimeout(timeout)
        try:
            request = read_request(conn, chunk_size)
        except ProtocolError as e:
            logging.warning(f"Dropping {addr}: {e}")
            return
        except OSError as e:
            # covers premature close and timeouts
            logging.info(f"Dropping {addr}: {e}")
            return

        try:
            resp = handler.handle_request(request)
        except Exception:
            logging.exception("Handler Error")
            resp = Response.server_error()

        try:
            conn.sendall(serialize_response(resp))
        except OSError as e:
            logging.error(f"Error on writing to {addr}: {e}")
            return
        logging.info(f"RESP: {resp.status} {resp.reason} -> {addr}")
    finally:
        conn.close()


def serve(listener: socket.socket, handler: HostnameHandler, threaded: bool = True,
          stop: Optional[threading.Event] = None, timeout: Optional[float] = READ_TIMEOUT):
    """Accept connections until ``stop`` is set (forever without one)."""
    if stop is not None:
        listener.settimeout(ACCEPT_POLL)
    while stop is None or not stop.is_set():
        try:
            conn, addr = listener.accept()
        except socket.timeout:
            continue
        except OSError as e:
            if stop is not None and stop.is_set():
                break
            logging.error(f"accept failed: {e}")
            continue
        if threaded:
            t = threading.Thread(target=handle_client, args=(conn, addr, handler, timeout), daemon=True)
            t.start()
        else:
            handle_client(conn, addr, handler, timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hostreg-server", description="Hostname registry over HTTP/1.1")
    parser.add_argument("port", type=int)
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--timeout", type=float, default=READ_TIMEOUT,
                        help="per-connection socket timeout in seconds, 0 disables it")
    parser.add_argument("--sequential", action="store_true",
                        help="handle one connection at a time")
    parser.add_argument("--owner-secret", default=auth.SECRET,
                        help="enable DELETE with signed ownership tokens (default: $HOSTREG_SECRET)")
    parser.add_argument("--token-lifetime", type=int, default=None,
                        help="seconds before an ownership token expires (default: never)")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    logging.info(f"Found these addresses available: {', '.join(list_addresses())}")
    try:
        s = create_listener(args.host, args.port)
    except OSError as e:
        logging.error(f"Failed to bind to {args.host}:{args.port}: {e}")
        return 1
    host, port = s.getsockname()[:2]
    logging.info(f"Server running on http://{host}:{port}")

    handler = HostnameHandler(owner_secret=args.owner_secret, token_lifetime=args.token_lifetime)
    if not handler.ownership_enabled:
        logging.info("No owner secret configured; DELETE will answer 501")
    try:
        serve(s, handler, threaded=not args.sequential, timeout=args.timeout or None)
    except KeyboardInterrupt:
        logging.info("Shutting down")
    finally:
        s.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
