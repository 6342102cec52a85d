"""Metering service: checks and charges usage for the AI tools.

Prompt, voice and web scraper are capped per rolling 24h window. Image jobs
draw on the plan's monthly allowance first and spill the rest into credit
packs. Video jobs are paid from credit packs when the balance covers them
and from the plan's monthly video quota otherwise.

Each check-then-charge sequence for an owner runs under an ``asyncio.Lock``
keyed by tool and owner, and every charge is recorded under its job id so a
retried job is answered from the record instead of being charged again.
Credits are spent through the ledger's strict consumption, which checks the
balance under the per-user ledger lock shared by every tool. Ledger job ids
are prefixed per path (``image-``, ``video-``, ``admin-deduct-``) so a job id
reused across tools is never mistaken for a replay.
"""

import asyncio
import json
import math
import time
import uuid
from typing import Callable, Optional

from evohub.core.exceptions import (
    AuthenticationException,
    KeyValueStoreError,
    ValidationException,
)
from evohub.core.locks import KeyedLocks
from evohub.core.logging import logger
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.core.protocols.metrics import MeteringMetrics
from evohub.core.security_logger import log_user_event
from evohub.core.shared_models import Owner, OwnerType, Tool
from evohub.domains.credits.exceptions import InsufficientCreditsError, InsufficientQuotaError
from evohub.domains.credits.protocols import CreditLedgerProtocol, VideoQuotaProtocol
from evohub.domains.credits.types import CreditPack
from evohub.domains.entitlements.types import (
    TIER_CREDITS,
    Plan,
    compute_enhancer_cost,
    get_entitlements_for,
    get_video_entitlements,
    validate_enhancer_options,
    video_tier_cost_tenths,
)
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.domains.metering.types import (
    AdminDeductResult,
    BillingSummary,
    ImageChargeResult,
    UsageOverview,
    VideoChargeResult,
)
from evohub.domains.usage import keys
from evohub.domains.usage.exceptions import QuotaExceededError
from evohub.domains.usage.periods import DAY_SECONDS, end_of_month_epoch_ms, round_half_up
from evohub.domains.usage.protocols import UsageCounterStoreProtocol

CONSUMABLE_TOOLS = (Tool.PROMPT, Tool.VOICE, Tool.WEBSCRAPER)

CHARGE_RECORD_TTL_SECONDS = 7 * DAY_SECONDS

ADMIN_DEDUCT_DEFAULT = 1000
ADMIN_DEDUCT_MAX = 100_000
IDEMPOTENCY_KEY_MAX_LENGTH = 64


def charge_record_key(prefix: str, owner_type: str, owner_id: str, job_id: str) -> str:
    return f"{prefix}:charge:{owner_type}:{owner_id}:{job_id}"


class MeteringService(MeteringServiceProtocol):
    """Composes usage counters, the credit ledger and the video quota."""

    def __init__(
        self,
        kv: KeyValueStore,
        counters: UsageCounterStoreProtocol,
        ledger: CreditLedgerProtocol,
        video_quota: VideoQuotaProtocol,
        metrics: MeteringMetrics,
        *,
        prompt_user_limit: int = 20,
        prompt_guest_limit: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the service.

        Args:
            kv: Key-value backend for charge records.
            counters: Usage counter store.
            ledger: Credit pack ledger.
            video_quota: Monthly video quota ledger.
            metrics: Metering counters.
            prompt_user_limit: Daily prompt enhancer limit for signed-in users.
            prompt_guest_limit: Daily prompt enhancer limit for guests.
            clock: Epoch-seconds time source.
        """
        self._kv = kv
        self._counters = counters
        self._ledger = ledger
        self._video_quota = video_quota
        self._metrics = metrics
        self._prompt_user_limit = prompt_user_limit
        self._prompt_guest_limit = prompt_guest_limit
        self._clock = clock
        self._locks = KeyedLocks()

    def _get_lock(self, key: str) -> asyncio.Lock:
        return self._locks(key)

    async def _load_record(self, key: str) -> Optional[dict]:
        raw = await self._kv.get(key)
        if not raw:
            return None
        try:
            obj = json.loads(raw)
        except ValueError:
            logger.warning(f"[Metering] Ignoring malformed charge record at '{key}'")
            return None
        return obj if isinstance(obj, dict) else None

    async def _store_record(self, key: str, payload: dict) -> None:
        await self._kv.put(key, json.dumps(payload), ttl_seconds=CHARGE_RECORD_TTL_SECONDS)

    def _deny(self, tool: Tool, scope: str, used: float, limit: float) -> QuotaExceededError:
        self._metrics.record_quota_denied(tool.value, scope)
        return QuotaExceededError(scope=scope, used=used, limit=limit)

    # ------------------------------------------------------------------
    # Limits and usage
    # ------------------------------------------------------------------

    def get_limit(self, tool: Tool, owner: Owner, plan: Optional[Plan]) -> float:
        if tool == Tool.PROMPT:
            return self._prompt_user_limit if owner.is_user else self._prompt_guest_limit
        if tool == Tool.VIDEO:
            if owner.is_guest:
                return 0
            return get_video_entitlements(plan).monthly_credits_tenths / 10
        return get_entitlements_for(plan, is_guest=owner.is_guest).daily_burst_cap

    async def get_tool_usage(
        self, tool: Tool, owner: Owner, plan: Optional[Plan]
    ) -> UsageOverview:
        """Current usage of *tool*. ``reset_at`` is None when no window is open."""
        limit = self.get_limit(tool, owner, plan)
        if tool == Tool.VIDEO:
            if owner.is_guest:
                return UsageOverview(used=0, limit=0)
            used_tenths = await self._video_quota.get_used_tenths(owner.owner_id)
            return UsageOverview(
                used=used_tenths / 10,
                limit=limit,
                reset_at=end_of_month_epoch_ms(self._clock()),
            )

        usage = await self._counters.get_daily_rolling(
            tool.key_prefix, owner.owner_type.value, owner.owner_id
        )
        if usage is None:
            return UsageOverview(used=0, limit=limit)
        return UsageOverview(used=usage.count, limit=limit, reset_at=usage.reset_at * 1000)

    async def consume_tool_usage(
        self,
        tool: Tool,
        owner: Owner,
        plan: Optional[Plan],
        job_id: Optional[str] = None,
    ) -> UsageOverview:
        """Count one use of a daily-capped tool.

        Raises:
            ValidationException: If *tool* is not metered per request.
            QuotaExceededError: If the rolling daily limit is already used up.
        """
        if tool not in CONSUMABLE_TOOLS:
            raise ValidationException(f"Tool '{tool.value}' cannot be consumed directly")

        prefix = tool.key_prefix
        owner_type = owner.owner_type.value
        limit = int(self.get_limit(tool, owner, plan))
        tx_key = keys.usage_tx_key(prefix, owner_type, owner.owner_id, job_id) if job_id else None

        async with self._get_lock(f"{prefix}:{owner_type}:{owner.owner_id}"):
            if tx_key and await self._counters.has_marker(tx_key):
                logger.info(f"[Metering] Replayed {tool.value} job {job_id} for {owner_type}")
                return await self.get_tool_usage(tool, owner, plan)

            current = await self.get_tool_usage(tool, owner, plan)
            if current.used >= limit:
                raise self._deny(tool, "daily", current.used, limit)

            result = await self._counters.increment_daily_rolling(
                prefix, owner_type, owner.owner_id, limit
            )
            if tx_key:
                ttl = max(1, result.reset_at - math.floor(self._clock()))
                await self._counters.claim_once(tx_key, ttl_seconds=ttl)

        self._metrics.record_charge(tool.value, owner_type, "plan")
        return UsageOverview(used=result.count, limit=limit, reset_at=result.reset_at * 1000)

    # ------------------------------------------------------------------
    # Image enhancer
    # ------------------------------------------------------------------

    async def charge_image_job(
        self,
        owner: Owner,
        plan: Optional[Plan],
        job_id: str,
        model_slug: str,
        scale: Optional[int] = None,
        face_enhance: bool = False,
    ) -> ImageChargeResult:
        """Charge one enhancer run.

        The plan's remaining monthly allowance pays first; whatever it cannot
        cover must come from credit packs. Guests have no packs, so a guest
        whose monthly allowance is exhausted is refused.

        Counters bumped for a charge whose record cannot be written are rolled
        back before the error propagates, so a retry counts the job once.

        Raises:
            ValidationException: For unknown models or options beyond the plan.
            QuotaExceededError: With scope ``monthly`` or ``daily``.
        """
        if not job_id:
            raise ValidationException("jobId is required")

        entitlements = get_entitlements_for(plan, is_guest=owner.is_guest)
        validate_enhancer_options(entitlements, scale, face_enhance)
        cost = compute_enhancer_cost(model_slug, scale, face_enhance)
        cost_tenths = round_half_up(cost * 10)

        prefix = Tool.IMAGE.key_prefix
        owner_type = owner.owner_type.value
        owner_id = owner.owner_id
        record_key = charge_record_key(prefix, owner_type, owner_id, job_id)

        async with self._get_lock(f"{prefix}:{owner_type}:{owner_id}"):
            replay = await self._load_record(record_key)
            if replay is not None:
                result = ImageChargeResult.from_json(replay)
                result.idempotent = True
                return result

            monthly_limit_tenths = entitlements.monthly_images * 10
            monthly_used_tenths = await self._counters.get_monthly_usage_tenths(
                prefix, owner_type, owner_id
            )
            plan_portion = min(cost_tenths, max(0, monthly_limit_tenths - monthly_used_tenths))
            credits_portion = cost_tenths - plan_portion

            balance: Optional[int] = None
            if owner.is_user:
                balance = await self._ledger.get_balance_tenths(owner_id)
            monthly_denial = (
                Tool.IMAGE, "monthly", monthly_used_tenths / 10, entitlements.monthly_images
            )
            if credits_portion > 0 and (balance is None or balance < credits_portion):
                raise self._deny(*monthly_denial)

            daily = await self._counters.get_daily_rolling(prefix, owner_type, owner_id)
            daily_used = daily.count if daily else 0
            if daily_used >= entitlements.daily_burst_cap:
                raise self._deny(Tool.IMAGE, "daily", daily_used, entitlements.daily_burst_cap)

            # Credits go first: the ledger re-checks the balance under its own
            # lock and replays the same consumption when the job is retried.
            if credits_portion > 0:
                try:
                    consumption = await self._ledger.consume_tenths(
                        owner_id, credits_portion, f"image-{job_id}", strict=True
                    )
                except InsufficientCreditsError:
                    raise self._deny(*monthly_denial) from None
                balance = consumption.remaining_tenths

            daily_counted = False
            plan_counted = False
            try:
                increment = await self._counters.increment_daily_rolling(
                    prefix, owner_type, owner_id, entitlements.daily_burst_cap
                )
                daily_counted = True
                if plan_portion > 0:
                    monthly_used_tenths = await self._counters.increment_monthly_by(
                        prefix, owner_type, owner_id, plan_portion / 10
                    )
                    plan_counted = True

                result = ImageChargeResult(
                    job_id=job_id,
                    cost=cost,
                    plan_portion_tenths=plan_portion,
                    credits_portion_tenths=credits_portion,
                    daily=UsageOverview(
                        used=increment.count,
                        limit=entitlements.daily_burst_cap,
                        reset_at=increment.reset_at * 1000,
                    ),
                    monthly_used_tenths=monthly_used_tenths,
                    monthly_limit_tenths=monthly_limit_tenths,
                    credits_remaining_tenths=balance,
                )
                await self._store_record(record_key, result.to_json())
            except Exception:
                await self._release_image_usage(
                    owner_type,
                    owner_id,
                    daily=daily_counted,
                    plan_tenths=plan_portion if plan_counted else 0,
                )
                raise

        self._metrics.record_charge(
            Tool.IMAGE.value, owner_type, "credits" if credits_portion > 0 else "plan"
        )
        self._metrics.record_credits_consumed(Tool.IMAGE.value, credits_portion)
        logger.info(
            f"[Metering] Charged image job {job_id} for {owner_type}: "
            f"{plan_portion} plan + {credits_portion} credit tenths"
        )
        return result

    async def _release_image_usage(
        self, owner_type: str, owner_id: str, *, daily: bool, plan_tenths: int
    ) -> None:
        """Roll back the counters of an image charge whose record was never written."""
        prefix = Tool.IMAGE.key_prefix
        try:
            if daily:
                await self._counters.release_daily_rolling(prefix, owner_type, owner_id)
            if plan_tenths > 0:
                await self._counters.release_monthly_by(
                    prefix, owner_type, owner_id, plan_tenths / 10
                )
        except KeyValueStoreError as exc:
            logger.error(
                f"[Metering] Could not roll back image usage for {owner_type} {owner_id}: {exc}"
            )

    # ------------------------------------------------------------------
    # Video
    # ------------------------------------------------------------------

    async def charge_video_job(
        self, owner: Owner, plan: Optional[Plan], job_id: str, tier: str
    ) -> VideoChargeResult:
        """Charge one video job, preferring credit packs over the monthly quota.

        The monthly quota only covers the tiers included in the plan.

        Raises:
            AuthenticationException: For guests.
            ValidationException: For unknown tiers or a missing job id.
            InsufficientQuotaError: When neither credits nor quota cover the job.
        """
        if owner.is_guest:
            raise AuthenticationException("Video generation requires a signed-in user")
        if not job_id:
            raise ValidationException("jobId is required")

        needed = video_tier_cost_tenths(tier)
        entitlements = get_video_entitlements(plan)
        user_id = owner.owner_id
        prefix = Tool.VIDEO.key_prefix
        record_key = charge_record_key(prefix, OwnerType.USER.value, user_id, job_id)

        async with self._get_lock(f"{prefix}:user:{user_id}"):
            replay = await self._load_record(record_key)
            if replay is not None:
                result = VideoChargeResult.from_json(replay)
                result.idempotent = True
                return result

            try:
                consumption = await self._ledger.consume_tenths(
                    user_id, needed, f"video-{job_id}", strict=True
                )
            except InsufficientCreditsError:
                consumption = None

            if consumption is not None:
                result = VideoChargeResult(
                    job_id=job_id,
                    tier=tier,
                    credits=TIER_CREDITS[tier],
                    balance=consumption.remaining_tenths // 10,
                )
            else:
                limit = entitlements.monthly_credits_tenths if tier in entitlements.tiers else 0
                try:
                    await self._video_quota.consume(user_id, limit, needed, job_id)
                except InsufficientQuotaError:
                    self._metrics.record_quota_denied(Tool.VIDEO.value, "monthly")
                    raise
                result = VideoChargeResult(job_id=job_id, tier=tier, credits=0, quota=True)

            await self._store_record(record_key, result.to_json())

        self._metrics.record_charge(
            Tool.VIDEO.value, OwnerType.USER.value, "quota" if result.quota else "credits"
        )
        if not result.quota:
            self._metrics.record_credits_consumed(Tool.VIDEO.value, needed)
        return result

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_billing_summary(self, user_id: str, plan: Optional[Plan]) -> BillingSummary:
        owner = Owner(OwnerType.USER, user_id)
        entitlements = get_entitlements_for(plan)
        balance = await self._ledger.get_balance_tenths(user_id)
        used_tenths = await self._counters.get_monthly_usage_tenths(
            Tool.IMAGE.key_prefix, OwnerType.USER.value, user_id
        )
        tools = {tool.value: await self.get_tool_usage(tool, owner, plan) for tool in Tool}
        return BillingSummary(
            plan=(plan or Plan.FREE).value,
            credits_remaining=balance // 10,
            credits_remaining_tenths=balance,
            monthly_limit=entitlements.monthly_images,
            monthly_used=used_tenths / 10,
            period_ends_at=end_of_month_epoch_ms(self._clock()),
            tools=tools,
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def admin_deduct_credits(
        self,
        user_id: str,
        amount: Optional[float] = None,
        idempotency_key: Optional[str] = None,
        strict: bool = True,
        actor_id: Optional[str] = None,
    ) -> AdminDeductResult:
        """Deduct whole credits from *user_id*.

        *amount* defaults to 1000 and is clamped to 1..100000. In strict mode
        the balance must cover the full amount, checked under the ledger lock;
        otherwise whatever is left is taken. Retries with the same
        *idempotency_key* replay the first result.

        Raises:
            InsufficientCreditsError: In strict mode when the balance is short.
        """
        if amount is None or not math.isfinite(amount):
            amount = ADMIN_DEDUCT_DEFAULT
        requested = max(1, min(ADMIN_DEDUCT_MAX, math.floor(amount)))
        requested_tenths = requested * 10

        key = (idempotency_key or "").strip()
        if not key:
            key = f"{int(self._clock() * 1000)}-{uuid.uuid4().hex[:8]}"
        job_id = f"admin-deduct-{key[:IDEMPOTENCY_KEY_MAX_LENGTH]}"

        consumption = await self._ledger.consume_tenths(
            user_id, requested_tenths, job_id, strict=strict
        )
        balance_tenths = await self._ledger.get_balance_tenths(user_id)

        result = AdminDeductResult(
            user_id=user_id,
            requested=requested,
            deducted=consumption.total_consumed_tenths // 10,
            requested_tenths=requested_tenths,
            deducted_tenths=consumption.total_consumed_tenths,
            remaining_tenths=consumption.remaining_tenths,
            balance=balance_tenths // 10,
            breakdown=consumption.breakdown,
            idempotent=consumption.idempotent,
            job_id=job_id,
        )
        log_user_event(
            actor_id or "system",
            "credit_deduct",
            {
                "target_user_id": user_id,
                "requested": requested,
                "deducted": result.deducted,
                "strict": strict,
                "job_id": job_id,
                "idempotent": result.idempotent,
            },
        )
        return result

    async def grant_credit_pack(
        self,
        user_id: str,
        units: float,
        pack_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CreditPack:
        """Issue a pack worth *units* credits. Re-using *pack_id* is a no-op."""
        if not math.isfinite(units) or units <= 0:
            raise ValidationException("units must be a positive number")

        pack_id = pack_id or f"grant-{uuid.uuid4().hex}"
        pack = await self._ledger.add_credit_pack_tenths(
            user_id, pack_id, round_half_up(units * 10)
        )
        log_user_event(
            actor_id or "system",
            "credit_grant",
            {"target_user_id": user_id, "pack_id": pack.id, "units_tenths": pack.units_tenths},
        )
        return pack
