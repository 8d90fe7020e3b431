"""Command that loads a world and serves it over line-delimited JSON on TCP."""

from __future__ import annotations

import argparse
import json
import logging
import socketserver
import sys
import threading
from collections.abc import Sequence
from typing import Any, Optional

from darwin.service import (
    CreateCharacterRequest,
    DarwinService,
    PingRequest,
    ReportInGameRequest,
    ServiceError,
    StatusCode,
    UpdateResponse,
)
from darwin.world_state import WorldState
from darwin.world_state_file import load_world_state_from_file

DEFAULT_SERVER_NAME = "0.0.0.0:45323"
DEFAULT_WORLD_DB = "world_db.json"
DEFAULT_UPGRADE_COUNT = 400
DEFAULT_LOOP_TIMER = 0.1


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="darwin-server", description="Run the game server.")
    parser.add_argument(
        "--server_name", default=DEFAULT_SERVER_NAME, help="Address to listen on (host:port)."
    )
    parser.add_argument(
        "--world_db", default=DEFAULT_WORLD_DB, help="The name of the world database file."
    )
    parser.add_argument(
        "--upgrade_count",
        type=int,
        default=DEFAULT_UPGRADE_COUNT,
        help="The maximum number of upgrade elements in the world.",
    )
    parser.add_argument(
        "--loop_timer",
        type=float,
        default=DEFAULT_LOOP_TIMER,
        help="The time in seconds between each world update.",
    )
    return parser.parse_args(argv)


def _parse_address(text: str) -> tuple[str, int]:
    host, sep, port = text.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid server address: {text!r}")
    return host, int(port)


class _Handler(socketserver.StreamRequestHandler):
    """One client connection: a JSON request per line, a JSON reply per line."""

    server: _Server

    def setup(self) -> None:
        super().setup()
        self._send_lock = threading.Lock()
        self._writer: Optional[Any] = None

    def _send(self, payload: dict[str, Any]) -> None:
        data = (json.dumps(payload) + "\n").encode("utf-8")
        with self._send_lock:
            self.wfile.write(data)
            self.wfile.flush()

    def _push_update(self, response: UpdateResponse) -> None:
        try:
            self._send({"update": response.to_dict()})
        except OSError:
            pass

    def handle(self) -> None:
        service = self.server.service
        peer = f"{self.client_address[0]}:{self.client_address[1]}"
        try:
            for line in self.rfile:
                if line.strip():
                    self._send(self._answer(service, peer, line))
        except OSError:
            pass
        finally:
            if self._writer is not None:
                service.disconnect(peer, self._writer)

    def _answer(self, service: DarwinService, peer: str, line: bytes) -> dict[str, Any]:
        try:
            message = json.loads(line)
            if not isinstance(message, dict):
                raise ValueError("expected a JSON object")
            params = message.get("params") or {}
            return {"result": self._call(service, peer, message.get("method"), params)}
        except ServiceError as exc:
            error: dict[str, Any] = {"code": exc.code.name, "message": exc.message}
            if exc.return_enum is not None:
                error["return_enum"] = exc.return_enum.name
            return {"error": error}
        except (ValueError, TypeError, KeyError) as exc:
            return {"error": {"code": StatusCode.INVALID_ARGUMENT.name, "message": str(exc)}}

    def _call(
        self, service: DarwinService, peer: str, method: Any, params: Any
    ) -> dict[str, Any]:
        if method == "ping":
            return service.ping(PingRequest.from_dict(params)).to_dict()
        if method == "create_character":
            result = service.create_character(peer, CreateCharacterRequest.from_dict(params))
            return {"return_enum": result.name}
        if method == "report_in_game":
            service.report_in_game(peer, ReportInGameRequest.from_dict(params))
            return {}
        if method == "update":
            if self._writer is None:
                self._writer = self._push_update
                service.subscribe(self._writer)
            return {}
        raise ServiceError(StatusCode.UNIMPLEMENTED, f"unknown method {method!r}")


class _Server(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], service: DarwinService) -> None:
        self.service = service
        super().__init__(address, _Handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load the world database, then simulate and serve it until interrupted."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        address = _parse_address(args.server_name)
        world_state = WorldState()
        print(f"loading world state from file: {args.world_db}")
        load_world_state_from_file(world_state, args.world_db)
        world_state.set_upgrade_element(args.upgrade_count)
        service = DarwinService(world_state)
        print(f"starting world simulation with loop timer: {args.loop_timer}")
        stop = threading.Event()
        worker = threading.Thread(
            target=service.compute_world, args=(args.loop_timer, stop), daemon=True
        )
        with _Server(address, service) as server:
            worker.start()
            print(f"listening on: {args.server_name}")
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                pass
            finally:
                stop.set()
        worker.join()
        return 0
    except (OSError, ValueError, RuntimeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())