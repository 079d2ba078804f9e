"""
Comment endpoints:
  GET  /comments/{id}       fetch a comment (also after its post is gone)
  POST /comments/{id}/like  like a comment
"""
from fastapi import APIRouter, Depends

from socialgraph.dependencies import get_graph
from socialgraph.engine import SocialGraph
from socialgraph.schemas import CommentRecord, EntityKind, LikeRequest

router = APIRouter()


@router.get("/{comment_id}", response_model=CommentRecord)
async def get_comment(comment_id: str, graph: SocialGraph = Depends(get_graph)):
    return await graph.entities.get(EntityKind.COMMENT, comment_id)


@router.post("/{comment_id}/like", response_model=CommentRecord)
async def like_comment(
    comment_id: str,
    body: LikeRequest,
    graph: SocialGraph = Depends(get_graph),
):
    result = await graph.like_comment(body.user_id, comment_id)
    return result.target
