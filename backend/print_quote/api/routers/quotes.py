# api/routers/quotes.py

import logging
from typing import List

from fastapi import APIRouter, Depends
from starlette import status

from ..dependencies import get_quote_service
from ...core.common_types import PrintConfiguration, QuoteRecord
from ...services.quote_service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quotes",
    tags=["Quoting"],
    responses={404: {"description": "Not found"}}
)

class CreateQuoteRequest(PrintConfiguration):
    """Request body: the file and material to quote plus the print configuration fields."""
    file_id: str
    material_id: str

    def to_configuration(self) -> PrintConfiguration:
        return PrintConfiguration(**self.model_dump(exclude={"file_id", "material_id"}))

@router.post("", response_model=QuoteRecord, status_code=status.HTTP_201_CREATED)
def create_quote(request: CreateQuoteRequest, service: QuoteService = Depends(get_quote_service)):
    """Prices an uploaded, successfully analyzed file and stores the quote."""
    logger.info(f"API: Quote requested for file {request.file_id}, material '{request.material_id}', "
                f"quantity {request.quantity}")
    return service.create_quote(request.file_id, request.material_id, request.to_configuration())

@router.get("", response_model=List[QuoteRecord])
def list_quotes(service: QuoteService = Depends(get_quote_service)):
    return service.list_quotes()

@router.get("/{quote_id}", response_model=QuoteRecord)
def get_quote(quote_id: str, service: QuoteService = Depends(get_quote_service)):
    return service.get_quote(quote_id)

@router.post("/{quote_id}/order", response_model=QuoteRecord)
def order_quote(quote_id: str, service: QuoteService = Depends(get_quote_service)):
    """Marks an active quote as ordered."""
    return service.mark_as_ordered(quote_id)
