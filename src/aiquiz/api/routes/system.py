"""Database bootstrap and health routes."""

import logging
import secrets
from datetime import datetime
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from aiquiz import config
from aiquiz.core.database import bootstrap_database, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["System"])


@router.post("/init-db", summary="Create tables and seed the default admin")
def init_db(
    db: Session = Depends(get_db),
    x_init_secret: Optional[str] = Header(default=None),
) -> dict:
    """Idempotent schema bootstrap.

    When INIT_SECRET is configured the request must carry the same value in
    the `X-Init-Secret` header.

    Raises:
        HTTPException: 401 if the secret does not match.
    """
    if config.INIT_SECRET and not secrets.compare_digest(
        (x_init_secret or "").encode(), config.INIT_SECRET.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid initialization secret",
        )

    admin_created = bootstrap_database(db)
    return {
        "success": True,
        "message": "Database initialized successfully",
        "defaultAdminCreated": admin_created,
    }


@router.get("/health", summary="Health check")
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok" and the server time.
    """
    return {"status": "ok", "timestamp": datetime.now(pytz.utc).isoformat()}
