"""The HTTP endpoint that lets nearby clients hand over their credentials."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import queue
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Protocol
from urllib.parse import parse_qsl, urlsplit

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .utils import obfuscate_username
from .version import version_number_string

log = logging.getLogger(__name__)

_IV_SIZE = 16
_CHECKSUM_SIZE = 20
_POLL_INTERVAL = 0.1


class BadChecksumError(ValueError):
    """The credentials blob failed its integrity check."""


def _json(name: str) -> Any:
    return field(metadata={"json": name})


class _JsonResponse:
    def to_json(self) -> dict[str, Any]:
        return {f.metadata["json"]: getattr(self, f.name) for f in fields(self)}


@dataclass
class GetInfoResponse(_JsonResponse):
    status: int = _json("status")
    status_string: str = _json("statusString")
    spotify_error: int = _json("spotifyError")
    version: str = _json("version")
    library_version: str = _json("libraryVersion")
    account_req: str = _json("accountReq")
    brand_display_name: str = _json("brandDisplayName")
    model_display_name: str = _json("modelDisplayName")
    voice_support: str = _json("voiceSupport")
    availability: str = _json("availability")
    product_id: int = _json("productID")
    token_type: str = _json("tokenType")
    group_status: str = _json("groupStatus")
    resolver_version: str = _json("resolverVersion")
    scope: str = _json("scope")
    device_id: str = _json("deviceID")
    remote_name: str = _json("remoteName")
    public_key: str = _json("publicKey")
    device_type: str = _json("deviceType")
    active_user: str = _json("activeUser")


@dataclass
class AddUserResponse(_JsonResponse):
    status: int = _json("status")
    status_string: str = _json("statusString")
    spotify_error: int = _json("spotifyError")


_OK_RESPONSE = AddUserResponse(status=101, status_string="OK", spotify_error=0)


@dataclass
class NewUserRequest:
    """Credentials handed over by a client, waiting to be accepted or refused."""

    username: str
    auth_blob: bytes
    device_name: str
    _result: queue.Queue[bool] = field(
        default_factory=lambda: queue.Queue(maxsize=1), repr=False, compare=False
    )


class _KeyExchange(Protocol):
    def public_key_bytes(self) -> bytes: ...

    def exchange(self, peer_public_key: bytes) -> bytes: ...


def decrypt_blob(shared_secret: bytes, blob: bytes) -> bytes:
    """Check and decrypt a credentials blob with the key exchange secret."""
    if len(blob) < _IV_SIZE + _CHECKSUM_SIZE:
        raise ValueError(f"invalid blob length: {len(blob)}")

    base_key = hashlib.sha1(shared_secret).digest()[:16]
    iv = blob[:_IV_SIZE]
    encrypted = blob[_IV_SIZE:-_CHECKSUM_SIZE]
    checksum = blob[-_CHECKSUM_SIZE:]

    checksum_key = hmac.new(base_key, b"checksum", hashlib.sha1).digest()
    encryption_key = hmac.new(base_key, b"encryption", hashlib.sha1).digest()[:16]

    expected = hmac.new(checksum_key, encrypted, hashlib.sha1).digest()
    if not hmac.compare_digest(expected, checksum):
        raise BadChecksumError("bad blob checksum")

    decryptor = Cipher(algorithms.AES(encryption_key), modes.CTR(iv)).decryptor()
    return decryptor.update(encrypted) + decryptor.finalize()


def _decode_base64(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"invalid {what}: {err}") from err


class _HTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    zeroconf: Zeroconf


class _RequestHandler(BaseHTTPRequestHandler):
    server: _HTTPServer

    def log_message(self, format: str, *args: Any) -> None:
        log.debug("zeroconf http: " + format, *args)

    def do_GET(self) -> None:
        self._handle()

    def do_POST(self) -> None:
        self._handle()

    def _form(self) -> dict[str, str]:
        pairs: list[tuple[str, str]] = []
        ctype = self.headers.get("Content-Type", "")
        if self.command == "POST" and ctype.split(";")[0].strip() == (
            "application/x-www-form-urlencoded"
        ):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length).decode("utf-8")
            pairs.extend(parse_qsl(body, keep_blank_values=True))
        pairs.extend(parse_qsl(urlsplit(self.path).query, keep_blank_values=True))

        form: dict[str, str] = {}
        for key, value in pairs:
            form.setdefault(key, value)
        return form

    def _send(self, status: int, payload: _JsonResponse | None = None) -> None:
        body = b"" if payload is None else (json.dumps(payload.to_json()) + "\n").encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _handle(self) -> None:
        zeroconf = self.server.zeroconf
        try:
            form = self._form()
        except ValueError as err:
            log.warning("failed handling invalid request form: %s", err)
            self._send(HTTPStatus.BAD_REQUEST)
            return

        action = form.get("action", "")
        if action == "getInfo":
            try:
                info = zeroconf.handle_get_info()
            except Exception as err:
                log.warning("failed handling zeroconf get info request: %s", err)
                self._send(HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            self._send(HTTPStatus.OK, info)
        elif action == "addUser":
            try:
                status, response = zeroconf.handle_add_user(form)
            except Exception as err:
                log.warning("failed handling zeroconf add user request: %s", err)
                self._send(HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            self._send(status, response)
        else:
            log.warning("unknown zeroconf action: %s", action)
            self._send(HTTPStatus.BAD_REQUEST)


HandleNewRequest = Callable[[NewUserRequest], bool]


class Zeroconf:
    """Serves the zeroconf ``getInfo`` and ``addUser`` actions over HTTP.

    ``key_exchange`` provides ``public_key_bytes()`` and ``exchange(peer_key)``,
    the latter returning the shared secret used to decrypt handed-over
    credentials. The listener is bound on creation; ``serve`` answers requests
    until ``close`` is called.
    """

    def __init__(
        self,
        key_exchange: _KeyExchange,
        device_name: str,
        device_id: str,
        device_type: str,
        port: int = 0,
        host: str = "0.0.0.0",
    ) -> None:
        self.device_name = device_name
        self.device_id = device_id
        self.device_type = device_type
        self._key_exchange = key_exchange

        self._user_lock = threading.Lock()
        self._current_user = ""
        self._authenticating_user = ""

        self._requests: queue.Queue[NewUserRequest] = queue.Queue()
        self._state_lock = threading.Lock()
        self._serving = False
        self._stopped = False
        self._server_done = threading.Event()

        try:
            self._server = _HTTPServer((host, port), _RequestHandler)
        except OSError as err:
            raise OSError(err.errno, f"failed starting zeroconf listener: {err}") from err
        self._server.zeroconf = self
        log.info("zeroconf server listening on port %d", self.port)

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    def set_current_user(self, username: str) -> None:
        with self._user_lock:
            self._current_user = username

    def handle_get_info(self) -> GetInfoResponse:
        with self._user_lock:
            current = self._current_user

        return GetInfoResponse(
            status=101,
            status_string="OK",
            spotify_error=0,
            version="2.7.1",
            library_version=version_number_string(),
            account_req="PREMIUM",
            brand_display_name="respot",
            model_display_name="respot",
            voice_support="NO",
            availability="",
            product_id=0,
            token_type="default",
            group_status="NONE",
            resolver_version="0",
            scope="streaming,client-authorization-universal",
            device_id=self.device_id,
            remote_name=self.device_name,
            public_key=base64.b64encode(self._key_exchange.public_key_bytes()).decode("ascii"),
            device_type=getattr(self.device_type, "name", self.device_type),
            active_user=current,
        )

    def _dispatch(self, request: NewUserRequest) -> bool:
        with self._state_lock:
            if self._stopped:
                return False
            self._requests.put(request)
        return request._result.get()

    def handle_add_user(
        self, form: Mapping[str, str]
    ) -> tuple[HTTPStatus, AddUserResponse | None]:
        """Handle an ``addUser`` action; return the HTTP status and response body.

        Malformed forms raise ValueError.
        """
        username = form.get("userName", "")
        blob_str = form.get("blob", "")
        client_key_str = form.get("clientKey", "")
        device_name = form.get("deviceName", "")
        if not username:
            raise ValueError("missing username")
        if not blob_str:
            raise ValueError("missing blob")
        if not client_key_str:
            raise ValueError("missing client key")
        if not device_name:
            raise ValueError("missing device name")

        blob = _decode_base64(blob_str, "blob")
        client_key = _decode_base64(client_key_str, "client key")

        shared_secret = self._key_exchange.exchange(client_key)
        try:
            decrypted = decrypt_blob(shared_secret, blob)
        except BadChecksumError:
            log.warning("zeroconf received request with bad checksum")
            return HTTPStatus.BAD_REQUEST, None

        with self._user_lock:
            if username in (self._current_user, self._authenticating_user):
                return HTTPStatus.OK, _OK_RESPONSE
            if self._authenticating_user:
                log.debug("zeroconf is authenticating another user")
                return HTTPStatus.FORBIDDEN, None
            self._authenticating_user = username

        accepted = self._dispatch(NewUserRequest(username, decrypted, device_name))

        with self._user_lock:
            self._authenticating_user = ""
            if accepted:
                self._current_user = username

        if not accepted:
            log.info(
                "refused zeroconf from %s (username=%s)",
                device_name,
                obfuscate_username(username),
            )
            return HTTPStatus.FORBIDDEN, None

        log.info(
            "accepted zeroconf from %s (username=%s)", device_name, obfuscate_username(username)
        )
        return HTTPStatus.OK, _OK_RESPONSE

    def serve(self, handler: HandleNewRequest) -> None:
        """Answer requests until closed, passing each new user to ``handler``."""
        with self._state_lock:
            if self._stopped:
                raise RuntimeError("zeroconf is closed")
            if self._serving:
                raise RuntimeError("zeroconf is already serving")
            self._serving = True

        failures: list[BaseException] = []

        def run() -> None:
            try:
                self._server.serve_forever(poll_interval=_POLL_INTERVAL)
            except Exception as err:
                failures.append(err)
            finally:
                self._server_done.set()

        thread = threading.Thread(target=run, name="zeroconf-http", daemon=True)
        thread.start()

        try:
            while not self._server_done.is_set():
                try:
                    request = self._requests.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                try:
                    result = bool(handler(request))
                except Exception as err:
                    log.error("zeroconf new user handler failed: %s", err)
                    result = False
                request._result.put(result)
        finally:
            with self._state_lock:
                self._stopped = True
                while True:
                    try:
                        self._requests.get_nowait()._result.put(False)
                    except queue.Empty:
                        break

        if failures:
            raise failures[0]

    def close(self) -> None:
        """Stop the HTTP listener; the last accepted session is left alone."""
        with self._state_lock:
            already = self._stopped and not self._serving
            self._stopped = True
            serving = self._serving
            self._serving = False
        if already:
            return
        if serving:
            self._server.shutdown()
        self._server.server_close()