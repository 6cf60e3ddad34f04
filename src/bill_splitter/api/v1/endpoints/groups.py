from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ....core.dependencies import get_splitwise_client
from ....core.errors import SplitwiseAPIError
from ....models.bill_models import Member
from ....services.splitwise_client import SplitwiseClient

router = APIRouter()


@router.get("", response_model=List[Dict[str, Any]])
def list_groups(client: SplitwiseClient = Depends(get_splitwise_client)):
    try:
        return client.get_groups()
    except SplitwiseAPIError as e:
        raise HTTPException(status_code=e.status, detail=e.message)


@router.get("/{group_id}/members", response_model=List[Member])
def group_members(group_id: str, client: SplitwiseClient = Depends(get_splitwise_client)):
    try:
        return client.get_group_members(group_id)
    except SplitwiseAPIError as e:
        raise HTTPException(status_code=e.status, detail=e.message)


@router.get("/{group_id}", response_model=Dict[str, Any])
def get_group(group_id: str, client: SplitwiseClient = Depends(get_splitwise_client)):
    try:
        return client.get_group(group_id)
    except SplitwiseAPIError as e:
        raise HTTPException(status_code=e.status, detail=e.message)
