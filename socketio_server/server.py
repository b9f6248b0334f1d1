#!/usr/bin/env python3
"""Roomchat Socket.IO Server

This module implements the Socket.IO server that connects chat clients to the
room/presence engine in core.hub. It owns the transport concerns only: the aiohttp
application, the Socket.IO event wiring, the diagnostic HTTP endpoints and the
static frontend.

Key Features:
- Socket.IO events for join, global chat, rooms, logout and RTT probes
- /health liveness probe and /info runtime snapshot (LAN addresses, uptime, clients)
- Optional static frontend served from the configured directory
- Handler faults are logged and never take the server down
"""
import os
import sys
import logging
import argparse
import asyncio
import functools
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import socketio
from aiohttp import web

# Ensure the project root is in the Python path
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from core.hub import ChatHub
from core.settings import ChatSettings
from utils.config_loader import ConfigManager, config as config_manager
from utils.message_utils import MessageType
from utils.network_utils import get_lan_ips, get_local_ip, get_process_uptime
from utils.path_config import get_logs_dir, get_static_dir
from socketio_server.transport import SocketIOTransport

logger = logging.getLogger(__name__)

HUB_KEY = web.AppKey("hub", ChatHub)
SIO_KEY = web.AppKey("sio", socketio.AsyncServer)
PORT_KEY = web.AppKey("port", int)
STATIC_DIR_KEY = web.AppKey("static_dir", str)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None,
                  log_format: Optional[str] = None) -> logging.Logger:
    """Configure logging with the specified level."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(os.path.join(get_logs_dir(), log_file)))

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format or '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    # engineio/socketio are chatty at INFO
    logging.getLogger('engineio').setLevel(logging.WARNING)
    logging.getLogger('socketio').setLevel(logging.WARNING)
    return logging.getLogger('roomchat')


def guarded(handler):
    """Log any exception raised by a Socket.IO handler instead of propagating it."""
    @functools.wraps(handler)
    async def wrapper(sid, *args, **kwargs):
        try:
            return await handler(sid, *args, **kwargs)
        except Exception as e:
            logger.error(f"Error handling '{handler.__name__}' for {sid}: {e}", exc_info=True)
            return None
    return wrapper


def register_handlers(sio: socketio.AsyncServer, hub: ChatHub) -> None:
    """Wire Socket.IO events to the chat hub."""

    @sio.event
    @guarded
    async def connect(sid: str, environ: Dict, auth: Optional[Dict] = None):
        """Handle new client connections."""
        logger.debug(f"Connection from {environ.get('REMOTE_ADDR', 'Unknown IP')}: {sid}")
        await hub.connect(sid)

    @sio.event
    @guarded
    async def disconnect(sid: str, reason: Any = None):
        """Handle client disconnections."""
        await hub.disconnect(sid)

    @sio.on(MessageType.JOIN.value)
    @guarded
    async def on_join(sid, data=None):
        await hub.join(sid, data)

    @sio.on(MessageType.CHAT_MESSAGE.value)
    @guarded
    async def on_chat_message(sid, data=None):
        await hub.send_message(sid, data)

    @sio.on(MessageType.ROOM_CREATE.value)
    @guarded
    async def on_room_create(sid, data=None):
        await hub.create_room(sid, data)

    @sio.on(MessageType.ROOM_JOIN.value)
    @guarded
    async def on_room_join(sid, data=None):
        await hub.join_room(sid, data)

    @sio.on(MessageType.ROOM_LEAVE.value)
    @guarded
    async def on_room_leave(sid, data=None):
        await hub.leave_room(sid, data)

    @sio.on(MessageType.ROOM_MESSAGE.value)
    @guarded
    async def on_room_message(sid, data=None):
        await hub.send_room_message(sid, data)

    @sio.on(MessageType.LOGOUT.value)
    @guarded
    async def on_logout(sid, data=None):
        await hub.logout(sid)

    @sio.on(MessageType.PING_RTT.value)
    @guarded
    async def on_ping_rtt(sid, data=None):
        await hub.ping(sid, data)


# --- HTTP endpoints ---

async def health(request: web.Request) -> web.Response:
    """Liveness probe."""
    return web.json_response({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    })

async def info(request: web.Request) -> web.Response:
    """Runtime snapshot: LAN addresses, port, uptime and connected clients."""
    return web.json_response({
        "ips": get_lan_ips(),
        "port": request.app[PORT_KEY],
        "uptime_s": round(get_process_uptime()),
        "clients": request.app[HUB_KEY].connection_count
    })

async def index(request: web.Request) -> web.StreamResponse:
    index_file = os.path.join(request.app[STATIC_DIR_KEY], "index.html")
    if not os.path.isfile(index_file):
        raise web.HTTPNotFound()
    return web.FileResponse(index_file)


def create_app(cfg: ConfigManager = config_manager) -> web.Application:
    """Build the aiohttp application with Socket.IO and the chat hub attached."""
    sio = socketio.AsyncServer(
        async_mode='aiohttp',
        cors_allowed_origins=cfg.get('server', 'cors_origins', default='*'),
        logger=False,
        engineio_logger=False
    )
    app = web.Application()
    sio.attach(app)

    hub = ChatHub(SocketIOTransport(sio), ChatSettings.from_config(cfg))
    register_handlers(sio, hub)

    static_dir = cfg.get('server', 'static_dir') or get_static_dir()
    app[SIO_KEY] = sio
    app[HUB_KEY] = hub
    app[PORT_KEY] = int(cfg.get('server', 'port', default=3000))
    app[STATIC_DIR_KEY] = static_dir

    app.router.add_get('/health', health)
    app.router.add_get('/info', info)
    if os.path.isdir(static_dir):
        app.router.add_get('/', index)
        app.router.add_static('/', static_dir, show_index=False)
        logger.info(f"Serving static files from {static_dir}")
    else:
        logger.info(f"Static directory {static_dir} not found; serving the API only")
    return app


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    """Log faults that escaped every handler; the server keeps running."""
    exc = context.get('exception')
    logger.error(f"Unhandled error in event loop: {context.get('message')}", exc_info=exc)


def log_banner(port: int) -> None:
    logger.info("Chat server running:")
    logger.info(f"  * Local:   http://localhost:{port}")
    ips = get_lan_ips()
    if not ips:
        fallback = get_local_ip()
        if fallback:
            ips = [{"iface": "default route", "ip": fallback}]
        else:
            logger.info("  * LAN:     (no external IPv4 addresses detected)")
    for entry in ips:
        logger.info(f"  * LAN ({entry['iface']}): http://{entry['ip']}:{port}")
    logger.info("  * Health:  GET /health   * Info: GET /info")


# --- Argument Parsing ---
def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Roomchat Socket.IO Server")
    parser.add_argument('--host', type=str, default=config_manager.get('server', 'host', default='0.0.0.0'),
                        help='Host IP address to bind the server to.')
    parser.add_argument('--port', type=int, default=config_manager.get('server', 'port', default=3000),
                        help='Port number to bind the server to.')
    parser.add_argument('--log-level', type=str, default=config_manager.get('logging', 'level', default='INFO'),
                        help='Logging level (DEBUG, INFO, WARNING, ...).')
    parser.add_argument('--static-dir', type=str, default=None,
                        help='Directory with the browser frontend.')
    return parser.parse_args(argv)

# --- Server Lifecycle ---

async def start_server(host: str, port: int, cfg: ConfigManager = config_manager):
    """Starts the Socket.IO server and keeps it running."""
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    app = create_app(cfg)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)

    logger.info(f"Starting Socket.IO server on {host}:{port}")
    await site.start()
    log_banner(port)

    try:
        # Keep server running
        await asyncio.Event().wait()
    finally:
        logger.info("Stopping Socket.IO server...")
        await runner.cleanup()


def main(argv=None):
    args = parse_args(argv)
    config_manager.set('server', 'host', args.host)
    config_manager.set('server', 'port', args.port)
    if args.static_dir:
        config_manager.set('server', 'static_dir', args.static_dir)

    setup_logging(
        args.log_level,
        log_file=config_manager.get('logging', 'file'),
        log_format=config_manager.get('logging', 'format')
    )

    try:
        asyncio.run(start_server(args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user (KeyboardInterrupt).")
    finally:
        logger.info("Server shutdown complete.")


# --- Main Execution ---

if __name__ == '__main__':
    main()
