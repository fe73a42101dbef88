"""
Child management API endpoints.

Guardians register and maintain the children they check in for.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from emotiva.dependencies import require_auth, require_guardian, get_child_service
from emotiva.schemas.children import CreateChildrenRequest, UpdateChildRequest
from emotiva.services.children.child_service import ChildService


router = APIRouter(prefix="/children", tags=["Children"])


@router.get("")
async def list_children(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
):
    """List the guardian's children in creation order."""
    children = await child_service.list_children(user["_id"])
    return success_response({"children": children})


@router.post("", status_code=201)
async def create_children(
    body: CreateChildrenRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
):
    """Register one or more children."""
    children = await child_service.create_children(
        user["_id"],
        [child.model_dump() for child in body.children]
    )
    return success_response({"children": children})


@router.get("/{child_id}")
async def get_child(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
):
    child = await child_service.get_child(child_id, user["_id"])
    return success_response(child)


@router.patch("/{child_id}")
async def update_child(
    child_id: str,
    body: UpdateChildRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
):
    child = await child_service.update_child(child_id, user["_id"], body.name, body.age)
    return success_response(child)


@router.delete("/{child_id}")
async def delete_child(
    child_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_guardian)],
    child_service: Annotated[ChildService, Depends(get_child_service)],
):
    """Delete a child together with all of its check-ins."""
    await child_service.delete_child(child_id, user["_id"])
    return success_response(message="Child deleted")
