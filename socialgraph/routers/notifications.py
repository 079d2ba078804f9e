"""
Notification endpoints:
  GET    /notifications?account_id=<id>  notifications for an account, newest first
  DELETE /notifications/{id}             delete one notification
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from socialgraph.dependencies import get_graph
from socialgraph.engine import SocialGraph
from socialgraph.schemas import EntityKind, NotificationRecord

router = APIRouter()


@router.get("/", response_model=list[NotificationRecord])
async def list_notifications(
    account_id: str = Query(..., description="Recipient account"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    graph: SocialGraph = Depends(get_graph),
):
    return await graph.notifications_for(account_id, limit=limit)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, graph: SocialGraph = Depends(get_graph)):
    await graph.entities.delete(EntityKind.NOTIFICATION, notification_id)
