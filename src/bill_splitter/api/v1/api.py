from fastapi import APIRouter
from .endpoints import bills, expenses, flow_state, groups

api_router = APIRouter()
api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(flow_state.router, prefix="/flow-state", tags=["flow-state"])
