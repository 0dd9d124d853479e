# api/routers/files.py

import logging

from typing import List

from fastapi import APIRouter, Depends, File, Response, UploadFile
from starlette import status

from ..dependencies import get_quote_service
from ...core.common_types import UploadedFile
from ...services.quote_service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["Files"],
    responses={404: {"description": "Not found"}}
)

@router.post(
    "",
    response_model=UploadedFile,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a model file and analyze it",
    responses={
        413: {"description": "File exceeds the upload size limit"},
        415: {"description": "File type not accepted"},
    },
)
async def upload_file(
    model_file: UploadFile = File(..., description="3D model file (.stl, .obj, .3mf, .step, .stp)"),
    service: QuoteService = Depends(get_quote_service),
):
    """
    Stores and analyzes an uploaded model. A file that fails analysis is still
    recorded, with status 'error' and the reasons in error_message.
    """
    content = await model_file.read()
    logger.info(f"API: Received upload '{model_file.filename}' ({len(content)} bytes)")
    return service.upload_file(content, model_file.filename or "", model_file.content_type)

@router.get("", response_model=List[UploadedFile], summary="List uploaded files, newest first")
def list_files(service: QuoteService = Depends(get_quote_service)):
    return service.list_files()

@router.get("/{file_id}", response_model=UploadedFile)
def get_file(file_id: str, service: QuoteService = Depends(get_quote_service)):
    return service.get_file(file_id)

@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(file_id: str, service: QuoteService = Depends(get_quote_service)):
    service.delete_file(file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
