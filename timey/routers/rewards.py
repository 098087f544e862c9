"""
Rewards router.

GET /rewards     catalog of reward kinds a token can be redeemed for
"""
from fastapi import APIRouter

from timey.schemas.api import RewardResponse
from timey.services.rewards import REWARDS

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get(
    "",
    response_model=list[RewardResponse],
    summary="Reward catalog",
)
def list_rewards():
    return [RewardResponse.model_validate(r) for r in REWARDS]
