# api/dependencies.py

from fastapi import Request

from ..services.quote_service import QuoteService

# Built once by create_app() and kept on app.state; tests can swap it with
# app.dependency_overrides[get_quote_service].
def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service
