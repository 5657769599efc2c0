from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from vault.integrations.market_data.symbols import detect_asset_class
from vault.models.db import get_db_session
from vault.models.holding import Holding, HoldingCreate, HoldingUpdate
from vault.models.portfolio import RiskAssessment
from vault.models.schemas import AssetClassDetection, PortfolioView, PriceRefreshResult
from vault.services.portfolio_service import PortfolioService
from vault.services.price_service import PriceLookupService
from vault.storage.repository import AssetClassConflictError, HoldingNotFoundError, HoldingsRepository
from vault.utils.validation import validate_symbol

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["vault"])

price_service = PriceLookupService()


def get_price_service() -> PriceLookupService:
    return price_service


def get_user_id(x_user_id: str = Header(..., min_length=1, max_length=64)) -> str:
    return x_user_id.strip()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/holdings", response_model=list[Holding])
def list_holdings(user_id: str = Depends(get_user_id), db: Session = Depends(get_db_session)):
    return HoldingsRepository(db).list(user_id)


@router.post("/holdings", response_model=Holding, status_code=status.HTTP_201_CREATED)
def create_holding(
    payload: HoldingCreate,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        return HoldingsRepository(db).create(user_id, payload)
    except AssetClassConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.patch("/holdings/{holding_id}", response_model=Holding)
def update_holding(
    holding_id: str,
    payload: HoldingUpdate,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        return HoldingsRepository(db).update(user_id, holding_id, payload)
    except HoldingNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/holdings/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holding(
    holding_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
):
    try:
        HoldingsRepository(db).delete(user_id, holding_id)
    except HoldingNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/portfolio", response_model=PortfolioView)
def get_portfolio(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
    prices: PriceLookupService = Depends(get_price_service),
):
    return PortfolioService(db=db, price_service=prices).view(user_id)


@router.get("/portfolio/risk", response_model=RiskAssessment)
def get_portfolio_risk(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
    prices: PriceLookupService = Depends(get_price_service),
):
    return PortfolioService(db=db, price_service=prices).view(user_id).risk


@router.post("/portfolio/refresh", response_model=PriceRefreshResult)
def refresh_portfolio_prices(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_session),
    prices: PriceLookupService = Depends(get_price_service),
):
    try:
        return PortfolioService(db=db, price_service=prices).refresh_prices(user_id)
    except Exception as exc:
        logger.exception("Price refresh failed", extra={"user_id": user_id, "error": str(exc)})
        raise HTTPException(status_code=500, detail="Price refresh failed") from exc


@router.get("/assets/detect", response_model=AssetClassDetection)
def detect_asset(symbol: str = Query(..., min_length=1, max_length=20)):
    try:
        clean = validate_symbol(symbol)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AssetClassDetection(symbol=clean, asset_class=detect_asset_class(clean))
