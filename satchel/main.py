#!/usr/bin/env python3
"""
Satchel - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the session storage
3. Runs the API server

All session logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from satchel.config.provider import ConfigProvider, EnvConfigProvider
from satchel.logging_config import get_logging_config
from satchel.modules.api import (
    CounterResponse,
    ErrorResponse,
    ExpirationRequest,
    HealthResponse,
    SectionResponse,
    SessionResponse,
    SetVariableRequest,
    VariableResponse,
    to_datetime,
    validate_name,
)
from satchel.modules.config import get_config
from satchel.modules.middleware import create_session_middleware
from satchel.modules.session import Section, SessionError, SessionManager
from satchel.modules.storage import RedisSessionStorage, StorageModule

# Get configuration
config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider(config)
session_config = config_provider.get_session_config()

# Module instances (initialized at startup)
storage_module = StorageModule(
    f"redis://{config.get('redis_host')}:{config.get('redis_port')}/{config.get('redis_db')}",
    password=config.get("redis_password"),
)
redis_client: Optional[redis.Redis] = None
session_storage: Optional[RedisSessionStorage] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global redis_client, session_storage

    logger.info("Starting Satchel API...")

    redis_client = await storage_module.connect()
    session_storage = await storage_module.session_storage(
        prefix=session_config.save_path,
        max_lifetime=session_config.max_lifetime,
    )
    logger.info(
        f"Session storage ready (auto_start={session_config.auto_start.value}, "
        f"expiration={session_config.expiration or 'end of visit'})"
    )

    yield

    logger.info("Shutting down Satchel API...")
    await storage_module.disconnect()
    redis_client = None
    session_storage = None
    logger.info("Satchel API shutdown complete")


app = FastAPI(
    title="Satchel API",
    description="Satchel - sectioned HTTP sessions",
    version="1.0.0",
    lifespan=lifespan,
)

session_middleware = create_session_middleware(
    lambda: session_storage,
    session_config,
    skip_paths={"/health": ["GET"]},
)


@app.middleware("http")
async def session_handler(request: Request, call_next):
    return await session_middleware(request, call_next)


# Dependency injection helpers
def get_session(request: Request) -> SessionManager:
    """Get the session bound to this request by the middleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(503, "Session not available")
    return session


async def start_session(session: SessionManager = Depends(get_session)) -> SessionManager:
    """Start the session before writing; the only way in when auto_start is 'never'."""
    await session.start()
    return session


async def resume_session(session: SessionManager = Depends(get_session)) -> SessionManager:
    """Resume a stored session without creating a new one."""
    if session.exists():
        await session.start()
    return session


def get_named_section(section: str, session: SessionManager = Depends(get_session)) -> Section:
    """Resolve the {section} path parameter to a session section."""
    try:
        return session.get_section(validate_name(section))
    except ValueError as e:
        raise HTTPException(422, str(e))


def check_key(key: str) -> str:
    try:
        return validate_name(key)
    except ValueError as e:
        raise HTTPException(422, str(e))


def section_response(section: Section) -> SectionResponse:
    return SectionResponse(
        section=section.name,
        variables=dict(section.items()),
        expires_at=to_datetime(section.get_expiration()),
    )


def variable_response(section: Section, key: str) -> VariableResponse:
    return VariableResponse(
        section=section.name,
        key=key,
        value=section.get(key),
        expires_at=to_datetime(section.get_expiration(key)),
    )


@app.post("/session", response_model=SessionResponse)
async def begin_session(session: SessionManager = Depends(start_session)):
    """Start or resume the session explicitly."""
    return SessionResponse(session_id=session.id, new_visit=session.is_new_visit)


@app.get("/counter", response_model=CounterResponse)
async def counter(session: SessionManager = Depends(start_session)):
    """Count requests made within this session."""
    section = session.get_section("counter")
    count = (section.get("count") or 0) + 1
    section.set("count", count)
    return CounterResponse(count=count, session_id=session.id)


@app.get("/sections/{section}", response_model=SectionResponse)
async def read_section(
    section: str,
    session: SessionManager = Depends(resume_session),
    handle: Section = Depends(get_named_section),
):
    """List the variables of a section."""
    if not session.is_started or not session.has_section(handle.name):
        raise HTTPException(404, f"Section {section} not found")
    return section_response(handle)


@app.put("/sections/{section}", response_model=SectionResponse)
async def update_section_expiration(
    request: ExpirationRequest,
    session: SessionManager = Depends(start_session),
    handle: Section = Depends(get_named_section),
):
    """Set the expiration of a whole section."""
    handle.set_expiration(request.expiration)
    return section_response(handle)


@app.delete("/sections/{section}/expiration", status_code=204)
async def remove_section_expiration(
    session: SessionManager = Depends(resume_session), handle: Section = Depends(get_named_section)
):
    """Clear the expiration of a whole section."""
    if session.is_started:
        handle.remove_expiration()


@app.delete("/sections/{section}", status_code=204)
async def remove_section(
    session: SessionManager = Depends(resume_session), handle: Section = Depends(get_named_section)
):
    """Delete a section with all its variables."""
    if session.is_started:
        handle.remove()


@app.get("/sections/{section}/variables/{key}", response_model=VariableResponse)
async def read_variable(
    key: str = Depends(check_key),
    session: SessionManager = Depends(resume_session),
    handle: Section = Depends(get_named_section),
):
    """Read a single variable."""
    if not session.is_started or not handle.has(key):
        raise HTTPException(404, f"Variable {key} not found in section {handle.name}")
    return variable_response(handle, key)


@app.put("/sections/{section}/variables/{key}", response_model=VariableResponse)
async def write_variable(
    request: SetVariableRequest,
    key: str = Depends(check_key),
    session: SessionManager = Depends(start_session),
    handle: Section = Depends(get_named_section),
):
    """Create or overwrite a variable, optionally with its own expiration."""
    handle.set(key, request.value, reset_expiration=request.reset_expiration)
    if request.expiration is not None:
        handle.set_expiration(request.expiration, key)
    return variable_response(handle, key)


@app.delete("/sections/{section}/variables/{key}", status_code=204)
async def delete_variable(
    key: str = Depends(check_key),
    session: SessionManager = Depends(resume_session),
    handle: Section = Depends(get_named_section),
):
    """Remove a variable and its expiration."""
    if session.is_started:
        handle.unset(key)


@app.delete("/session", status_code=204)
async def destroy_session(session: SessionManager = Depends(get_session)):
    """Destroy the whole session."""
    await session.destroy()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        200: Service healthy
        503: Storage unreachable
    """
    try:
        if not redis_client:
            return JSONResponse(status_code=503, content={"status": "unhealthy", "storage": "not initialized"})
        await redis_client.ping()
        return HealthResponse(status="healthy", storage="connected")
    except redis.RedisError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "storage": str(e)})


# Error handlers


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump(mode="json")
    )


@app.exception_handler(SessionError)
async def session_error_handler(request: Request, exc: SessionError):
    """Handle session lifecycle errors."""
    logger.warning(f"Session error on {request.url.path}: {exc}")
    return error_response(409, str(exc))


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request: Request, exc: redis.ConnectionError):
    """Handle Redis connection errors."""
    logger.error(f"Redis connection error: {exc}")
    return error_response(503, "Session storage connection failed")


@app.exception_handler(ValueError)
async def validation_error_handler(request: Request, exc: ValueError):
    """Handle invalid expiration values and names."""
    logger.error(f"Validation error: {exc}")
    return error_response(422, str(exc))


if __name__ == "__main__":
    # Use dict config for logging, not file path
    uvicorn.run(
        "satchel.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )
