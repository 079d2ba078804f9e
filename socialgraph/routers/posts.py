"""
Post endpoints:
  POST   /posts                 create a post
  GET    /posts/{id}            fetch a post
  DELETE /posts/{id}            delete a post (comments are kept)
  POST   /posts/{id}/like       like a post
  POST   /posts/{id}/unlike     remove one like
  POST   /posts/{id}/comments   comment on a post
  GET    /posts/{id}/comments   list comments, oldest first
"""
import logging

from fastapi import APIRouter, Depends, status

from socialgraph.dependencies import get_graph
from socialgraph.engine import SocialGraph
from socialgraph.schemas import (
    CommentCreate,
    CommentRecord,
    EntityKind,
    LikeRequest,
    PostCreate,
    PostRecord,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=PostRecord, status_code=status.HTTP_201_CREATED)
async def create_post(body: PostCreate, graph: SocialGraph = Depends(get_graph)):
    """
    Validate the post, check the author exists, persist it.

    The image is an opaque URL from the media host; nothing is uploaded here.
    """
    post = await graph.publish_post(body.model_dump(exclude_unset=True))
    logger.info("Post created: %s by account %s", post.id, post.user)
    return post


@router.get("/{post_id}", response_model=PostRecord)
async def get_post(post_id: str, graph: SocialGraph = Depends(get_graph)):
    return await graph.entities.get(EntityKind.POST, post_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, graph: SocialGraph = Depends(get_graph)):
    await graph.delete_post(post_id)


@router.post("/{post_id}/like", response_model=PostRecord)
async def like_post(post_id: str, body: LikeRequest, graph: SocialGraph = Depends(get_graph)):
    """Append a like and notify the author. Repeated likes are kept as separate entries."""
    result = await graph.like_post(body.user_id, post_id)
    return result.target


@router.post("/{post_id}/unlike", response_model=PostRecord)
async def unlike_post(post_id: str, body: LikeRequest, graph: SocialGraph = Depends(get_graph)):
    return await graph.unlike_post(body.user_id, post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentRecord,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: str,
    body: CommentCreate,
    graph: SocialGraph = Depends(get_graph),
):
    result = await graph.comment_on_post(body.user_id, post_id, body.content)
    return result.comment


@router.get("/{post_id}/comments", response_model=list[CommentRecord])
async def list_comments(post_id: str, graph: SocialGraph = Depends(get_graph)):
    return await graph.entities.find_many(
        EntityKind.COMMENT, {"post": post_id}, order_by=[("created_at", "asc")]
    )
