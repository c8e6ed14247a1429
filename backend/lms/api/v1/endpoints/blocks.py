from fastapi import APIRouter, status, Depends, Query
from typing import Optional
from lms.schemas.auth import MessageResponse
from lms.schemas.plugin import BlockCreate, BlockUpdate, BlockMove, BlockInstanceResponse
from lms.dependencies import get_current_teacher, get_locale, get_block_manager
from lms.core.block.manager import BlockManager

router = APIRouter()


@router.get("/available")
async def get_available_blocks(
    page_type: Optional[str] = None,
    locale: str = Depends(get_locale),
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Blocks that can be added to a page type"""
    return {"blocks": blocks.get_available_blocks(page_type, locale)}


@router.get("/page/{page_type}")
async def get_page_blocks(
    page_type: str,
    context_id: Optional[str] = Query(None, max_length=50),
    course_id: Optional[str] = Query(None, max_length=50),
    locale: str = Depends(get_locale),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Rendered blocks of a page, grouped by region"""
    context = {"context_id": context_id, "course_id": course_id, "locale": locale}

    return {
        "page_type": page_type,
        "regions": blocks.get_blocks_for_api(page_type, context)
    }


@router.post("/", response_model=BlockInstanceResponse, status_code=status.HTTP_201_CREATED)
async def add_block(
    block: BlockCreate,
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Add a block instance to a page"""
    return blocks.create_block_instance(
        block.block_name,
        block.page_type,
        block.region,
        block.config,
        {"context_id": block.context_id, "course_id": block.course_id}
    )


@router.put("/{instance_id}", response_model=BlockInstanceResponse)
async def update_block(
    instance_id: str,
    update: BlockUpdate,
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Update region, weight, config or visibility of a block instance"""
    return blocks.update_block_instance(instance_id, update.model_dump(exclude_unset=True))


@router.post("/{instance_id}/move", response_model=BlockInstanceResponse)
async def move_block(
    instance_id: str,
    move: BlockMove,
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Move a block to another region, at the end unless a weight is given"""
    return blocks.move_block(instance_id, move.region, move.weight)


@router.post("/{instance_id}/toggle")
async def toggle_block(
    instance_id: str,
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    return {"id": instance_id, "visible": blocks.toggle_block_visibility(instance_id)}


@router.delete("/{instance_id}", response_model=MessageResponse)
async def delete_block(
    instance_id: str,
    current_user: dict = Depends(get_current_teacher),
    blocks: BlockManager = Depends(get_block_manager)
):
    blocks.delete_block_instance(instance_id)
    return {"message": "Block deleted"}
