from __future__ import annotations

from fastapi import APIRouter, Depends

from bank import BankLoadError, reload_bank
from deps.auth import require_admin

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/reload")
def reload_questions():
    try:
        n = reload_bank()
    except BankLoadError as e:
        # previous bank stays in place
        return {"ok": False, "error": str(e)}
    return {"ok": True, "count": n}
