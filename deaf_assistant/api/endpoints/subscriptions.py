# deaf_assistant/api/endpoints/subscriptions.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from deaf_assistant.api.deps import get_current_admin, get_current_user
from deaf_assistant.core import roles
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionPlan,
    SubscriptionPublic,
    SubscriptionUpdate,
)
from deaf_assistant.services import subscription_service, user_service
from deaf_assistant.services.subscription_service import SubscriptionExistsError

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/", response_model=List[SubscriptionPublic])
def list_subscriptions(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    skip: int = 0,
    limit: int = 100,
):
    return subscription_service.list_subscriptions(db, skip=skip, limit=limit)


@router.get("/plans", response_model=List[SubscriptionPlan])
def list_plans():
    return subscription_service.list_plans()


@router.get("/me", response_model=SubscriptionPublic)
def get_my_subscription(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    The caller's subscription; a free-tier one is created on first read.
    """
    return subscription_service.get_or_create_free_subscription(db, current_user.id)


@router.post("/me/cancel", response_model=SubscriptionPublic)
def cancel_my_subscription(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subscription = subscription_service.get_subscription_for_user(db, current_user.id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return subscription_service.cancel_subscription(db, db_obj=subscription)


@router.get("/{subscription_id}", response_model=SubscriptionPublic)
def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subscription = subscription_service.get_subscription(db, subscription_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")

    # non-admin users only see their own subscription
    if not current_user.has_role(roles.ADMIN) and subscription.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not allowed to view this subscription")
    return subscription


@router.post("/", response_model=SubscriptionPublic, status_code=status.HTTP_201_CREATED)
def create_subscription(
    obj_in: SubscriptionCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if user_service.get_user(db, obj_in.user_id) is None:
        raise HTTPException(status_code=400, detail="User does not exist")
    try:
        return subscription_service.create_subscription(db, obj_in=obj_in)
    except SubscriptionExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_subscription(
    subscription_id: int,
    obj_in: SubscriptionUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if subscription_id != obj_in.id:
        raise HTTPException(status_code=400, detail="Subscription id mismatch")

    subscription = subscription_service.get_subscription(db, subscription_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")

    try:
        subscription_service.update_subscription(db, db_obj=subscription, obj_in=obj_in)
    except StaleDataError:
        db.rollback()
        if subscription_service.get_subscription(db, subscription_id) is None:
            raise HTTPException(status_code=404, detail="Subscription not found")
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    subscription = subscription_service.get_subscription(db, subscription_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")

    subscription_service.delete_subscription(db, db_obj=subscription)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
