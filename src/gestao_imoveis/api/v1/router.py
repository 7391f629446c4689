"""Main router for API v1.

This router combines all v1 endpoints under /api/v1 prefix.
"""

from fastapi import APIRouter

from gestao_imoveis.api.v1.contracts.routes import router as contracts_router
from gestao_imoveis.api.v1.installments.routes import router as installments_router

# Create main v1 router
api_router = APIRouter()

# Installment routes live under /contratos/parcelas and must be matched
# before /contratos/{contract_id}
api_router.include_router(installments_router)
api_router.include_router(contracts_router)
