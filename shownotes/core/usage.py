"""
Monthly usage tracking and plan limit enforcement.

Minutes are counted in whole minutes, rounded up per file or video. A limit of
-1 means unlimited.
"""

import datetime
import math
from typing import Optional

from sqlalchemy.orm import Session

from shownotes.config import config
from shownotes.db import crud
from shownotes.db.models import UsageRecord
from shownotes.models.schemas import UsageCheck, UsageLimits
from shownotes.utils.logger import logging

PROCESS_AUDIO = "process_audio"
USE_GPT = "use_gpt"
UNLIMITED = -1


def current_month() -> str:
    """Month key in YYYY-MM format (UTC)."""
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m")


def seconds_to_minutes(seconds: float) -> int:
    return int(math.ceil(max(seconds or 0, 0) / 60))


def format_minutes(minutes: int) -> str:
    """Display duration: "N min" below an hour, "Hh Mm" otherwise."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m"


class UsageService:
    """Reads and updates the usage counters of users."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_limits(self, user_id: str) -> UsageLimits:
        """Limits of the user's active plan, Free when there is no subscription."""
        subscription = crud.get_active_subscription(self.db, user_id)
        plan_name = subscription.plan_name if subscription else config.DEFAULT_PLAN
        if plan_name not in config.PLAN_LIMITS:
            logging.warning(f"Unknown plan '{plan_name}' for user {user_id}, using {config.DEFAULT_PLAN}")
            plan_name = config.DEFAULT_PLAN

        limits = config.get_plan_limits(plan_name)
        return UsageLimits(
            max_minutes=limits["max_minutes"],
            max_gpt_prompts=limits["max_gpt_prompts"],
            plan_name=plan_name,
        )

    def get_current_usage(self, user_id: str) -> UsageLimits:
        """Plan limits together with this month's counters."""
        usage = self.get_user_limits(user_id)
        record = crud.get_usage_record(self.db, user_id, current_month())
        if record is not None:
            usage.current_minutes = record.total_minutes_processed or 0
            usage.current_gpt_prompts = record.gpt_prompts_used or 0
        return usage

    def update_usage(
        self,
        user_id: str,
        minutes_used: int = 0,
        gpt_prompts_used: int = 0,
        episodes_processed: int = 0,
        cost: float = 0.0,
    ) -> None:
        """
        Add to this month's counters, creating the record when needed.

        Negative amounts are ignored so counters never decrease.
        """
        record = crud.get_or_create_usage_record(self.db, user_id, current_month())
        record.total_minutes_processed = (record.total_minutes_processed or 0) + max(minutes_used, 0)
        record.gpt_prompts_used = (record.gpt_prompts_used or 0) + max(gpt_prompts_used, 0)
        record.episodes_processed = (record.episodes_processed or 0) + max(episodes_processed, 0)
        record.api_calls_made = (record.api_calls_made or 0) + 1
        record.cost = (record.cost or 0.0) + max(cost, 0.0)
        self.db.commit()
        logging.info(
            f"Usage for {user_id} ({record.month_year}): {record.total_minutes_processed} min, "
            f"{record.gpt_prompts_used} prompts"
        )

    def can_perform_action(self, user_id: str, action: str, amount: int = 1) -> UsageCheck:
        """
        Check whether an action fits in the remaining monthly allowance.

        Args:
            user_id: User ID
            action: "process_audio" (amount in minutes) or "use_gpt" (amount in prompts)
            amount: How much of the allowance the action uses

        Returns:
            UsageCheck with the reason when not allowed
        """
        usage = self.get_current_usage(user_id)

        if action == PROCESS_AUDIO:
            if usage.max_minutes == UNLIMITED:
                return UsageCheck(allowed=True)
            if usage.current_minutes + amount > usage.max_minutes:
                remaining = usage.max_minutes - usage.current_minutes
                if remaining > 0:
                    reason = (
                        f"This file would use {amount} minutes, but you only have {remaining} minutes "
                        f"remaining this month. Upgrade to Pro for unlimited processing."
                    )
                else:
                    reason = (
                        f"You've reached your monthly limit of {usage.max_minutes} minutes. "
                        f"Upgrade to Pro for unlimited processing."
                    )
                return UsageCheck(allowed=False, reason=reason)

        elif action == USE_GPT:
            if usage.max_gpt_prompts == UNLIMITED:
                return UsageCheck(allowed=True)
            if usage.current_gpt_prompts + amount > usage.max_gpt_prompts:
                return UsageCheck(
                    allowed=False,
                    reason=(
                        f"You've used all {usage.max_gpt_prompts} GPT prompts for this month. "
                        f"Upgrade to Pro for unlimited prompts."
                    ),
                )

        else:
            raise ValueError(f"Unknown usage action: {action}")

        return UsageCheck(allowed=True)

    def can_process_youtube_video(self, user_id: str, duration_seconds: float) -> UsageCheck:
        """Check a YouTube video against the minute allowance using its duration."""
        usage = self.get_current_usage(user_id)
        minutes = seconds_to_minutes(duration_seconds)
        estimated_duration = format_minutes(minutes)

        if usage.max_minutes == UNLIMITED:
            return UsageCheck(allowed=True, estimated_duration=estimated_duration)

        if usage.current_minutes + minutes > usage.max_minutes:
            remaining = usage.max_minutes - usage.current_minutes
            return UsageCheck(
                allowed=False,
                reason=(
                    f"This video is {minutes} minutes long, but you only have {remaining} minutes "
                    f"remaining this month. Upgrade to Pro for unlimited processing."
                ),
                estimated_duration=estimated_duration,
            )

        return UsageCheck(allowed=True, estimated_duration=estimated_duration)

    def update_usage_after_youtube_video(self, user_id: str, duration_seconds: float) -> None:
        self.update_usage(user_id, minutes_used=seconds_to_minutes(duration_seconds), episodes_processed=1)

    def reset_monthly_usage(self, month_year: Optional[str] = None) -> int:
        """
        Zero the counters of every user for a month.

        Args:
            month_year: Month key, defaults to the current month

        Returns:
            Number of records reset
        """
        month_year = month_year or current_month()
        records = self.db.query(UsageRecord).filter(UsageRecord.month_year == month_year).all()
        for record in records:
            record.total_minutes_processed = 0
            record.gpt_prompts_used = 0
            record.episodes_processed = 0
            record.api_calls_made = 0
            record.cost = 0.0
        self.db.commit()
        logging.info(f"Reset usage for {len(records)} users in {month_year}")
        return len(records)
