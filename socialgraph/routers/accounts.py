"""
Account endpoints:
  POST  /accounts                 register an account
  GET   /accounts/{id}            fetch an account
  PATCH /accounts/{id}            update profile fields
  POST  /accounts/follow          follow another account
  POST  /accounts/unfollow        unfollow
  GET   /accounts/{id}/followers  list followers
  GET   /accounts/{id}/following  list followed accounts
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from socialgraph.dependencies import get_graph
from socialgraph.engine import SocialGraph
from socialgraph.relationships import EdgeKind
from socialgraph.schemas import (
    AccountCreate,
    AccountRecord,
    AccountUpdate,
    EntityKind,
    FollowRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=AccountRecord, status_code=status.HTTP_201_CREATED)
async def create_account(body: AccountCreate, graph: SocialGraph = Depends(get_graph)):
    """
    Register an account for an identity-provider subject.

    Duplicate external_id, email or username comes back as 409.
    """
    return await graph.register_account(body.model_dump(exclude_unset=True))


@router.get("/{account_id}", response_model=AccountRecord)
async def get_account(account_id: str, graph: SocialGraph = Depends(get_graph)):
    return await graph.entities.get(EntityKind.ACCOUNT, account_id)


@router.patch("/{account_id}", response_model=AccountRecord)
async def update_account(
    account_id: str,
    body: AccountUpdate,
    graph: SocialGraph = Depends(get_graph),
):
    return await graph.update_account(account_id, body.model_dump(exclude_unset=True))


@router.post("/follow", status_code=status.HTTP_204_NO_CONTENT)
async def follow_account(body: FollowRequest, graph: SocialGraph = Depends(get_graph)):
    """Write both sides of the follow edge and notify the followee."""
    if body.follower_id == body.followee_id:
        raise HTTPException(status_code=400, detail="Cannot follow yourself")
    await graph.follow(body.follower_id, body.followee_id)


@router.post("/unfollow", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_account(body: FollowRequest, graph: SocialGraph = Depends(get_graph)):
    await graph.unfollow(body.follower_id, body.followee_id)


@router.get("/{account_id}/followers")
async def list_followers(account_id: str, graph: SocialGraph = Depends(get_graph)):
    followers = await graph.relationships.edges(EdgeKind.FOLLOWERS, account_id)
    return {"account_id": account_id, "followers": followers}


@router.get("/{account_id}/following")
async def list_following(account_id: str, graph: SocialGraph = Depends(get_graph)):
    following = await graph.relationships.edges(EdgeKind.FOLLOWING, account_id)
    return {"account_id": account_id, "following": following}
