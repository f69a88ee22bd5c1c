"""
Comment router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_optional_auth_context, viewer_id_of
from routers.responses import api_response
from services.comments import (
    add_comment_service,
    delete_comment_service,
    list_video_comments_service,
    update_comment_service,
)
from services.pagination import parse_page_params

router = APIRouter()


class CommentContentRequest(BaseModel):
    content: Optional[str] = None


@router.get("/{video_id}")
async def list_video_comments(
    video_id: str,
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    params = parse_page_params(page, limit)
    comments = await list_video_comments_service(
        db=db,
        video_id=video_id,
        params=params,
        viewer_id=viewer_id_of(auth),
    )
    return api_response(comments, "Comments fetched successfully")


@router.post("/{video_id}")
async def add_comment(
    video_id: str,
    request: CommentContentRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    comment = await add_comment_service(db=db, auth_user_id=auth.user_id, video_id=video_id, content=request.content)
    return api_response(comment, "Comment added successfully", status_code=201)


@router.patch("/c/{comment_id}")
async def update_comment(
    comment_id: str,
    request: CommentContentRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    comment = await update_comment_service(
        db=db,
        auth_user_id=auth.user_id,
        comment_id=comment_id,
        content=request.content,
    )
    return api_response(comment, "Comment updated successfully")


@router.delete("/c/{comment_id}")
async def delete_comment(
    comment_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await delete_comment_service(db=db, auth_user_id=auth.user_id, comment_id=comment_id)
    return api_response({}, "Comment deleted successfully")
