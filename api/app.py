import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from api.schemas import (
    ApproveIn, CategoryIn, CategoryOut, MerchantIn, MerchantOut, OccurrenceOut,
    RuleIn, RuleOut, RuleUpdateIn, SkipIn, TransactionOut,
)
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.merchant_dao import MerchantDAO
from database.recurring_dao import RecurringDAO
from database.skipped_occurrence_dao import SkippedOccurrenceDAO
from database.transaction_dao import TransactionDAO
from database.user_dao import UserDAO
from services.approval_service import ApprovalService
from services.category_service import CategoryService
from services.errors import NotFoundError, OwnershipError
from services.merchant_service import MerchantService
from services.occurrence_service import OccurrenceService
from services.recurring_service import RecurringService
from utils.app_config import Settings, get_settings
from utils.constants import APP_NAME
from utils.date_helpers import parse_wire_date

LOGGER = logging.getLogger("recurring_ledger.api")


def create_app(
    settings: Settings | None = None,
    db: DatabaseManager | None = None,
    clock=None,
) -> FastAPI:
    """Wire DAOs and services around one DatabaseManager and build the app."""
    settings = settings or get_settings()
    db = db or DatabaseManager(settings.db_path)
    db.initialize()

    # ── DAOs ─────────────────────────────────────────────────────────────────
    user_dao = UserDAO(db)
    category_dao = CategoryDAO(db)
    merchant_dao = MerchantDAO(db)
    recurring_dao = RecurringDAO(db)
    tx_dao = TransactionDAO(db)
    skip_dao = SkippedOccurrenceDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    category_svc = CategoryService(category_dao)
    merchant_svc = MerchantService(merchant_dao)
    recurring_svc = RecurringService(
        db, recurring_dao, category_dao, merchant_dao,
        clock=clock, require_merchant=settings.require_merchant,
    )
    occurrence_svc = OccurrenceService(
        recurring_dao, tx_dao, skip_dao, clock=clock,
        tolerance_days=settings.match_tolerance_days,
        lookback_months=settings.lookback_months,
        lookahead_months=settings.lookahead_months,
    )
    approval_svc = ApprovalService(
        recurring_svc, tx_dao, skip_dao, discard_mode=settings.discard_mode,
    )

    app = FastAPI(title=APP_NAME, version="1.0.0")
    app.state.db = db

    def current_user(x_user_id: int | None = Header(None)) -> int:
        if x_user_id is None or user_dao.get_by_id(x_user_id) is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return x_user_id

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        LOGGER.info("Request: %s %s", request.method, request.url.path)
        response = await call_next(request)
        LOGGER.info("Response: %s", response.status_code)
        return response

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(OwnershipError)
    async def _ownership(request: Request, exc: OwnershipError):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(ValueError)
    async def _invalid(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Something went wrong"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ── Categories / merchants ───────────────────────────────────────────────

    @app.get("/categories", response_model=list[CategoryOut])
    def list_categories(user_id: int = Depends(current_user)):
        return category_svc.get_all(user_id)

    @app.post("/categories", response_model=CategoryOut, status_code=201)
    def create_category(payload: CategoryIn, user_id: int = Depends(current_user)):
        return category_svc.create(user_id, payload.name, payload.type, payload.color_hex)

    @app.get("/merchants", response_model=list[MerchantOut])
    def list_merchants(user_id: int = Depends(current_user)):
        return merchant_svc.get_all(user_id)

    @app.post("/merchants", response_model=MerchantOut, status_code=201)
    def create_merchant(payload: MerchantIn, user_id: int = Depends(current_user)):
        return merchant_svc.create(user_id, payload.name)

    # ── Recurring rules ──────────────────────────────────────────────────────

    @app.get("/recurring/occurrences", response_model=list[OccurrenceOut])
    def list_occurrences(
        from_: str | None = Query(None, alias="from"),
        to: str | None = Query(None),
        user_id: int = Depends(current_user),
    ):
        range_start = parse_wire_date(from_) if from_ else None
        range_end = parse_wire_date(to) if to else None
        return occurrence_svc.get_occurrences(user_id, range_start, range_end)

    @app.post("/recurring/approve", response_model=TransactionOut)
    def approve_occurrence(payload: ApproveIn, user_id: int = Depends(current_user)):
        return approval_svc.approve(
            user_id, payload.rule_id, payload.date, payload.amount, payload.description,
        )

    @app.post("/recurring/skip")
    def skip_occurrence(payload: SkipIn, user_id: int = Depends(current_user)):
        if payload.action == "skip":
            approval_svc.discard(user_id, payload.rule_id, payload.date, payload.description)
        else:
            approval_svc.unskip(user_id, payload.rule_id, payload.date)
        return {"success": True}

    @app.get("/recurring", response_model=list[RuleOut])
    def list_rules(user_id: int = Depends(current_user)):
        return recurring_svc.get_all(user_id)

    @app.post("/recurring", response_model=RuleOut, status_code=201)
    def create_rule(payload: RuleIn, user_id: int = Depends(current_user)):
        fields = payload.to_fields()
        fields["type_"] = fields.pop("type")
        return recurring_svc.create(user_id, **fields)

    @app.get("/recurring/{rule_id}", response_model=RuleOut)
    def get_rule(rule_id: int, user_id: int = Depends(current_user)):
        return recurring_svc.get_by_id(user_id, rule_id)

    @app.get("/recurring/{rule_id}/history", response_model=list[RuleOut])
    def rule_history(rule_id: int, user_id: int = Depends(current_user)):
        return recurring_svc.history(user_id, rule_id)

    @app.put("/recurring/{rule_id}", response_model=RuleOut)
    def update_rule(rule_id: int, payload: RuleUpdateIn, user_id: int = Depends(current_user)):
        return recurring_svc.update(user_id, rule_id, payload.to_fields(), mode=payload.update_mode)

    @app.delete("/recurring/{rule_id}", status_code=204)
    def delete_rule(rule_id: int, user_id: int = Depends(current_user)):
        recurring_svc.delete(user_id, rule_id)
        return Response(status_code=204)

    return app
