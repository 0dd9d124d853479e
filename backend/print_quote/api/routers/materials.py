# api/routers/materials.py

import logging
from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_quote_service
from ...core.common_types import MaterialProfile
from ...services.quote_service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/materials",
    tags=["Materials"],
    responses={404: {"description": "Not found"}}
)

@router.get("", response_model=List[MaterialProfile])
def list_materials(service: QuoteService = Depends(get_quote_service)):
    """Lists active materials ordered for display."""
    return service.processor.list_available_materials()

@router.get("/{material_id}", response_model=MaterialProfile)
def get_material(material_id: str, service: QuoteService = Depends(get_quote_service)):
    return service.processor.get_material_info(material_id)
