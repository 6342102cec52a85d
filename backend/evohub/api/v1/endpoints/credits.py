"""Credit balance of the signed-in user."""

from fastapi import APIRouter

from evohub.api.context import ApiContext
from evohub.api.deps import Inject, api_guard
from evohub.api.envelope import ok
from evohub.domains.credits.protocols import CreditLedgerProtocol

router = APIRouter()


@router.get("/balance")
async def get_balance(
    ctx: ApiContext = api_guard(require_auth=True),
    ledger: CreditLedgerProtocol = Inject(CreditLedgerProtocol),
) -> dict:
    packs = await ledger.list_active_packs(ctx.user_id)
    tenths = sum(p.units_tenths for p in packs)
    return ok(
        {
            "balanceTenths": tenths,
            "credits": tenths // 10,
            "packs": [p.to_json() for p in packs],
        }
    )
