"""
Preview Server Manager - short-lived file servers for generated packages.

Each history entry can be previewed on its own port:
- start() extracts the package ZIP into PREVIEW_TEMP_DIR/<job id>, binds
  the next port and serves the directory over HTTP
- stop() closes the listener and removes the extracted directory
- ports come from a process-wide counter and are never reused

Requests are confined to the extracted directory: any path that resolves
outside of it is answered with 403.

All mutation happens on the event loop thread, so the registry needs no
locking. A start that is still extracting is shared by concurrent callers
for the same job.
"""

import asyncio
import contextlib
import itertools
import logging
import socket
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from screendoc.core.diagnostics import DiagnosticsSink
from screendoc.core.exceptions import BindError, ExtractionError, PreviewError

logger = logging.getLogger("screendoc.preview")

ENTRY_POINT = "guide.html"

CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class PreviewState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    SERVING = "serving"


# ---------------------------------------------------------------------------
# REQUEST HANDLING
# ---------------------------------------------------------------------------

def content_type_for(path: Union[str, Path]) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_request_path(root: Path, request_path: str, entry_point: str = ENTRY_POINT) -> Optional[Path]:
    """
    Map a request path onto a file under ``root``.

    Returns:
        The resolved path, or None when it escapes ``root``
    """
    relative = request_path.lstrip("/") or entry_point
    root = root.resolve()
    try:
        target = (root / relative).resolve()
    except (OSError, ValueError):
        return None
    if target != root and root not in target.parents:
        return None
    return target


class PreviewFileHandler:
    """Serves the files of one extracted package."""

    def __init__(self, root: Path, entry_point: str = ENTRY_POINT):
        self.root = Path(root).resolve()
        self.entry_point = entry_point

    async def respond(self, request_path: str) -> Response:
        target = resolve_request_path(self.root, request_path, self.entry_point)
        if target is None:
            logger.warning(f"Rejected path outside preview root: {request_path!r}")
            return PlainTextResponse("Forbidden", status_code=403)

        try:
            content = await asyncio.to_thread(target.read_bytes)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return PlainTextResponse("Not Found", status_code=404)
        except OSError as e:
            logger.error(f"Failed to read {target}: {e}")
            return PlainTextResponse("Internal Server Error", status_code=500)

        return Response(content=content, media_type=content_type_for(target))


def create_preview_app(root: Path, entry_point: str = ENTRY_POINT) -> FastAPI:
    """ASGI app that serves one extracted package."""
    handler = PreviewFileHandler(root, entry_point)
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/{request_path:path}")
    async def serve(request_path: str) -> Response:
        return await handler.respond(request_path)

    return app


# ---------------------------------------------------------------------------
# LISTENERS
# ---------------------------------------------------------------------------

class Listener(Protocol):
    async def close(self) -> None: ...


class _PreviewServer(uvicorn.Server):
    """uvicorn server that leaves process signals to the main server."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class UvicornListener:
    """A uvicorn server running as a task on an already bound socket."""

    def __init__(self, app: FastAPI, sock: socket.socket):
        self._sock = sock
        self._server = _PreviewServer(uvicorn.Config(app, log_level="warning", lifespan="off"))
        self._task = asyncio.create_task(self._server.serve(sockets=[sock]))

    async def close(self) -> None:
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._sock.close()


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a listening TCP socket or raise BindError."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
        sock.setblocking(False)
    except OSError as e:
        sock.close()
        raise BindError(f"Could not bind preview server to {host}:{port}: {e}", port=port) from e
    return sock


def local_network_ip() -> str:
    """First non-loopback IPv4 address, or 'localhost'."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; this only selects the outgoing interface
        probe.connect(("10.255.255.255", 1))
        address = probe.getsockname()[0]
    except OSError:
        return "localhost"
    finally:
        probe.close()
    return "localhost" if address.startswith("127.") else address


# ---------------------------------------------------------------------------
# ARCHIVE EXTRACTION
# ---------------------------------------------------------------------------

def extract_package(archive_path: Path, destination: Path) -> Path:
    """Extract every file member of the ZIP into ``destination``."""
    try:
        destination.mkdir(parents=True, exist_ok=True)
        root = destination.resolve()
        with zipfile.ZipFile(archive_path) as archive:
            for member in archive.infolist():
                if member.is_dir():
                    continue
                target = (root / member.filename).resolve()
                if root not in target.parents:
                    logger.warning(f"Skipping archive member outside root: {member.filename!r}")
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(archive.read(member))
    except (zipfile.BadZipFile, OSError, KeyError) as e:
        raise ExtractionError(f"Could not extract {archive_path}: {e}") from e

    return destination


# ---------------------------------------------------------------------------
# MANAGER
# ---------------------------------------------------------------------------

@dataclass
class PreviewServerEntry:
    """One running preview server."""
    job_id: str
    port: int
    url: str
    directory: Path
    listener: Listener = field(repr=False)

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {"port": self.port, "url": self.url}


class PortAllocator:
    """Monotonic port counter; ports are never handed out twice."""

    def __init__(self, base_port: int):
        self._counter = itertools.count(base_port)

    def next_port(self) -> int:
        return next(self._counter)


class PreviewServerManager:
    """
    Registry of job id -> running preview server.

    Usage:
        manager = PreviewServerManager(temp_root=Path("temp"))
        entry = await manager.start("1718000000000", Path("output/acme-guide.zip"))
        print(entry.url)
        await manager.stop("1718000000000")
    """

    def __init__(
        self,
        temp_root: Union[str, Path],
        host: str = "0.0.0.0",
        base_port: int = 9000,
        public_host: Optional[str] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        self.temp_root = Path(temp_root)
        self.host = host
        self.public_host = public_host
        self.ports = PortAllocator(base_port)
        self.diagnostics = diagnostics or DiagnosticsSink()
        self._servers: Dict[str, PreviewServerEntry] = {}
        self._starting: Dict[str, "asyncio.Future[PreviewServerEntry]"] = {}

    # -----------------------------------------------------------------------
    # LIFECYCLE
    # -----------------------------------------------------------------------

    async def start(self, job_id: str, package_path: Union[str, Path]) -> PreviewServerEntry:
        """
        Serve the package of ``job_id``; returns the existing entry if
        one is already running.

        Raises:
            ExtractionError: The package could not be read
            BindError: The port could not be bound
        """
        if job_id in self._servers:
            return self._servers[job_id]
        if job_id in self._starting:
            return await asyncio.shield(self._starting[job_id])

        future: "asyncio.Future[PreviewServerEntry]" = asyncio.get_running_loop().create_future()
        self._starting[job_id] = future
        try:
            entry = await self._launch_entry(job_id, Path(package_path))
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Retrieved here so an unawaited failure is not reported as lost
            future.exception()
            raise
        else:
            self._servers[job_id] = entry
            future.set_result(entry)
            return entry
        finally:
            del self._starting[job_id]

    async def stop(self, job_id: str) -> bool:
        """
        Stop the server of ``job_id``.

        Returns:
            False if no server was running for it
        """
        entry = self._servers.pop(job_id, None)
        if entry is None:
            return False

        try:
            await entry.listener.close()
        except Exception as e:
            logger.error(f"Error closing preview listener for {job_id}: {e}")

        await asyncio.to_thread(self.diagnostics.remove_tree, entry.directory, "preview_temp_dir")
        logger.info(f"Preview server stopped for {job_id} (port {entry.port})")
        return True

    async def stop_all(self) -> None:
        for job_id in list(self._servers):
            await self.stop(job_id)

    # -----------------------------------------------------------------------
    # QUERIES
    # -----------------------------------------------------------------------

    def get(self, job_id: str) -> Optional[PreviewServerEntry]:
        return self._servers.get(job_id)

    def state(self, job_id: str) -> PreviewState:
        if job_id in self._servers:
            return PreviewState.SERVING
        if job_id in self._starting:
            return PreviewState.STARTING
        return PreviewState.STOPPED

    def list_servers(self) -> List[PreviewServerEntry]:
        return list(self._servers.values())

    # -----------------------------------------------------------------------
    # INTERNALS
    # -----------------------------------------------------------------------

    async def _launch_entry(self, job_id: str, package_path: Path) -> PreviewServerEntry:
        directory = self.temp_root / job_id
        try:
            await asyncio.to_thread(extract_package, package_path, directory)
            port = self.ports.next_port()
            listener = await self._launch(create_preview_app(directory), port)
        except PreviewError:
            await asyncio.to_thread(self.diagnostics.remove_tree, directory, "preview_temp_dir")
            raise

        url = f"http://{self.public_host or local_network_ip()}:{port}"
        logger.info(f"Preview server started for {job_id} on port {port}")
        return PreviewServerEntry(job_id=job_id, port=port, url=url, directory=directory, listener=listener)

    async def _launch(self, app: FastAPI, port: int) -> Listener:
        sock = bind_socket(self.host, port)
        return UvicornListener(app, sock)
