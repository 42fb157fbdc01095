"""
Bulk family import endpoints.

``POST /imports`` runs the whole import inside the request and returns the
summary. ``POST /imports/async`` queues the same work as a background task;
the upload screen polls ``GET /imports/tasks/{task_id}`` for the running
counts.
"""
import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile

from famcare.api.dependencies import get_repository, import_task_store
from famcare.api.schemas.shared import (
    ImportProgressModel,
    ImportSummaryResponse,
    ImportTaskStatus,
)
from famcare.core.config import settings
from famcare.core.security import get_current_account
from famcare.db.repository import CaseRepository
from famcare.domain.imports.errors import AuthenticationError, EmptyImportError, ParseError
from famcare.domain.imports.pipeline import ImportSummary, import_file
from famcare.domain.imports.processors.tabular_processor import detect_file_kind
from famcare.domain.imports.progress import ImportProgress

router = APIRouter(prefix="/imports", tags=["imports"])

logger = logging.getLogger(__name__)


def _summary_response(summary: ImportSummary) -> ImportSummaryResponse:
    return ImportSummaryResponse(success=summary.succeeded, **summary.to_dict())


async def _read_upload(file: UploadFile) -> bytes:
    file_name = file.filename or ""
    try:
        detect_file_kind(file_name)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=e.message)

    content = await file.read()
    max_bytes = settings.import_max_file_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File is larger than {settings.import_max_file_size_mb} MB",
        )
    return content


@router.post("", response_model=ImportSummaryResponse)
async def import_families_endpoint(
    file: UploadFile = File(...),
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """
    Import a registration sheet (.csv, .txt, .xlsx or .xls).

    Returns:
    - Final {total, processed, success, errors} counts
    - ``status == "failed"`` when no family could be stored
    """
    content = await _read_upload(file)
    logger.info("Received import request for file '%s'", file.filename)

    try:
        summary = import_file(
            file.filename,
            content,
            account_id=account_id,
            repository=repository,
        )
    except ParseError as e:
        logger.warning("Import rejected, unreadable file: %s", e.message)
        raise HTTPException(status_code=400, detail=e.message)
    except EmptyImportError as e:
        logger.info("Nothing to import from '%s'", file.filename)
        raise HTTPException(status_code=422, detail=e.message)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)

    return _summary_response(summary)


def run_import_task(
    task_id: str,
    file_name: str,
    content: bytes,
    account_id: str,
    repository: CaseRepository,
) -> None:
    """Background task body: runs the import and keeps the task status current."""

    def _on_progress(progress: ImportProgress) -> None:
        import_task_store.update(
            ImportTaskStatus(
                task_id=task_id,
                status="processing",
                message="Importing families...",
                progress=ImportProgressModel(**progress.to_dict()),
            )
        )

    try:
        summary = import_file(
            file_name,
            content,
            account_id=account_id,
            repository=repository,
            on_progress=_on_progress,
        )
    except (ParseError, EmptyImportError, AuthenticationError) as e:
        import_task_store.update(ImportTaskStatus(task_id=task_id, status="failed", message=e.message))
        return
    except Exception as e:
        logger.exception("Background import %s crashed: %s", task_id, e)
        import_task_store.update(
            ImportTaskStatus(task_id=task_id, status="failed", message=f"Import failed: {str(e)}")
        )
        return

    import_task_store.update(
        ImportTaskStatus(
            task_id=task_id,
            status=summary.status,
            message=summary.message,
            progress=ImportProgressModel(**summary.progress.to_dict()),
            result=_summary_response(summary),
        )
    )


@router.post("/async", response_model=ImportTaskStatus, status_code=202)
async def import_families_async_endpoint(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """
    Queue an import and return immediately.

    Use the returned task_id with ``GET /imports/tasks/{task_id}`` to follow
    progress.
    """
    content = await _read_upload(file)
    task_id = str(uuid.uuid4())
    queued = ImportTaskStatus(task_id=task_id, status="pending", message="Import queued")
    import_task_store.create(account_id, queued)
    background_tasks.add_task(
        run_import_task,
        task_id,
        file.filename,
        content,
        account_id,
        repository,
    )
    return queued


@router.get("/tasks/{task_id}", response_model=ImportTaskStatus)
async def get_import_task_endpoint(task_id: str, account_id: str = Depends(get_current_account)):
    task = import_task_store.get(task_id, account_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
