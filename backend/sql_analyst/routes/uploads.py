"""
API route for uploading the database to analyse.

The uploaded SQLite file becomes the active database for all
subsequent chat turns; its schema is reloaded on the next turn.
"""

import logging
import os
import shutil

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from sql_analyst.config import settings
from sql_analyst.models import generate_uuid
from sql_analyst.schemas import UploadResult
from sql_analyst.services.session import (
    AnalystContext,
    get_analyst_context,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post(
    "/upload",
    response_model=UploadResult,
    summary="Upload a SQLite database",
)
def upload_database(
    dbfile: UploadFile = File(...),
    ctx: AnalystContext = Depends(get_analyst_context),
):
    """
    Store an uploaded SQLite file and make it the active database.

    The file is saved under a fresh name so a later upload never
    overwrites a database an in-flight turn is still reading.
    """
    if not dbfile or not dbfile.filename:
        raise HTTPException(
            status_code=400,
            detail="No file provided",
        )

    os.makedirs(settings.upload_dir, exist_ok=True)
    suffix = os.path.splitext(dbfile.filename)[1].lower() or ".db"
    filename = f"{generate_uuid()}{suffix}"
    path = os.path.join(settings.upload_dir, filename)

    with open(path, "wb") as out:
        shutil.copyfileobj(dbfile.file, out)

    if os.path.getsize(path) == 0:
        os.remove(path)
        raise HTTPException(
            status_code=400,
            detail="Uploaded file is empty",
        )

    logger.info(
        "[upload] %s stored as %s", dbfile.filename, path,
    )
    ctx.replace_database(path)
    return {"success": True, "filename": filename}
