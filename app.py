from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from routers.rooms import rooms_router
from backend import matching_backend
from connection import Connection
from schemas.rooms import HealthResponse
from constants import BANNER, CORS_ORIGINS, LOG_LEVEL, LOG_FILE
import asyncio
import json
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI(title="Pairchat")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


@app.get("/", response_class=PlainTextResponse)
async def index():
    return BANNER


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="healthy", **matching_backend.stats())


@app.websocket("/")
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Anonymous pairing endpoint.

    Every new connection is queued and auto-matched with the next arrival.
    Inbound frames are JSON objects tagged by `type`; anything unparsable is
    dropped and the connection stays open.
    """
    await websocket.accept()
    connection = Connection(websocket)
    writer = asyncio.create_task(connection.pump())
    matching_backend.on_connect(connection)

    try:
        while True:
            try:
                frame = await websocket.receive()
            except WebSocketDisconnect:
                logger.info(f"WebSocket disconnected normally for connection {connection.session_id}")
                break

            if frame["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection.session_id}")
                break

            data = frame.get("text")
            if data is None:
                logger.warning(f"Dropping non-text frame from connection {connection.session_id}")
                continue

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Dropping unparsable frame from connection {connection.session_id}")
                continue

            logger.debug(f"Received {message.get('type', 'unknown') if isinstance(message, dict) else 'non-object'} "
                         f"from connection {connection.session_id}")
            matching_backend.dispatch(connection, message)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.session_id}: {e}", exc_info=True)
    finally:
        connection.mark_closed()
        matching_backend.on_close(connection)
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")
