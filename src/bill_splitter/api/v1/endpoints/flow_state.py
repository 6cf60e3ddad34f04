from fastapi import APIRouter, Depends, HTTPException, Query

from ....core.dependencies import get_current_user_id
from ....models.response_models import FlowStateListResponse, FlowStateResponse, SaveFlowStateRequest
from ....services.flow_state_store import flow_state_store

router = APIRouter()


@router.get("")
async def get_flow_state(
    type: str = Query("last", pattern="^(last|all)$"),
    user_id: str = Depends(get_current_user_id),
):
    """Last active draft, or every saved draft newest first"""
    if type == "all":
        return FlowStateListResponse(data=flow_state_store.get_all(user_id))
    return FlowStateResponse(data=flow_state_store.get_last(user_id))


@router.put("")
async def save_flow_state(request: SaveFlowStateRequest, user_id: str = Depends(get_current_user_id)):
    snapshot = flow_state_store.save(
        user_id,
        request.flow,
        request.current_step,
        request.bill_data,
        request.preview_image_url,
    )
    return {"success": True, "bill_id": snapshot.bill_id}


@router.delete("")
async def delete_flow_state(bill_id: str = Query(..., alias="billId"), user_id: str = Depends(get_current_user_id)):
    if not flow_state_store.delete(user_id, bill_id):
        raise HTTPException(status_code=404, detail="Flow state not found")
    return {"success": True}
