from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from vault.models.holding import AssetClass, Holding, HoldingCreate, HoldingUpdate
from vault.models.tables import HoldingRecord

logger = logging.getLogger(__name__)


class HoldingNotFoundError(LookupError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(f"Holding not found: {holding_id}")
        self.holding_id = holding_id


class AssetClassConflictError(ValueError):
    def __init__(self, symbol: str, existing: str) -> None:
        super().__init__(f"{symbol} is already held as {existing}")
        self.symbol = symbol
        self.existing = existing


class HoldingsRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def to_holding(row: HoldingRecord) -> Holding:
        return Holding(
            id=row.id,
            symbol=row.symbol,
            name=row.name,
            asset_class=AssetClass(row.asset_class),
            quantity=float(row.quantity),
            purchase_price=float(row.purchase_price),
            current_price=float(row.current_price),
            day_change_percent=float(row.day_change_percent or 0.0),
        )

    def _get_row(self, user_id: str, holding_id: str) -> HoldingRecord | None:
        return self.db.execute(
            select(HoldingRecord).where(HoldingRecord.id == holding_id, HoldingRecord.user_id == user_id)
        ).scalar_one_or_none()

    def list(self, user_id: str) -> list[Holding]:
        rows = self.db.execute(
            select(HoldingRecord)
            .where(HoldingRecord.user_id == user_id)
            .order_by(HoldingRecord.created_at.desc())
        ).scalars().all()
        return [self.to_holding(row) for row in rows]

    def get(self, user_id: str, holding_id: str) -> Holding | None:
        row = self._get_row(user_id, holding_id)
        return self.to_holding(row) if row is not None else None

    def create(self, user_id: str, payload: HoldingCreate) -> Holding:
        # Prices are looked up per symbol, so one symbol maps to one asset class per user.
        existing = self.db.execute(
            select(HoldingRecord.asset_class)
            .where(HoldingRecord.user_id == user_id, HoldingRecord.symbol == payload.symbol)
            .limit(1)
        ).scalar_one_or_none()
        if existing is not None and existing != payload.asset_class.value:
            raise AssetClassConflictError(payload.symbol, existing)

        row = HoldingRecord(
            user_id=user_id,
            symbol=payload.symbol,
            name=payload.name,
            asset_class=payload.asset_class.value,
            quantity=float(payload.quantity),
            purchase_price=float(payload.purchase_price),
            current_price=float(payload.current_price),
            day_change_percent=float(payload.day_change_percent),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Holding created", extra={"user_id": user_id, "holding_id": row.id, "symbol": row.symbol})
        return self.to_holding(row)

    def update(self, user_id: str, holding_id: str, payload: HoldingUpdate) -> Holding:
        row = self._get_row(user_id, holding_id)
        if row is None:
            raise HoldingNotFoundError(holding_id)

        for field, value in payload.changes().items():
            if field == "name":
                value = value.strip() or row.symbol
            setattr(row, field, value)
        row.updated_at = datetime.utcnow()
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return self.to_holding(row)

    def delete(self, user_id: str, holding_id: str) -> None:
        row = self._get_row(user_id, holding_id)
        if row is None:
            raise HoldingNotFoundError(holding_id)
        self.db.delete(row)
        self.db.commit()
        logger.info("Holding deleted", extra={"user_id": user_id, "holding_id": holding_id})

    def save_prices(self, user_id: str, holdings: Iterable[Holding]) -> int:
        updated = 0
        for holding in holdings:
            row = self._get_row(user_id, holding.id)
            if row is None:
                # Deleted after the snapshot was taken.
                continue
            row.current_price = holding.current_price
            row.day_change_percent = holding.day_change_percent
            row.name = holding.name
            row.updated_at = datetime.utcnow()
            self.db.add(row)
            updated += 1
        self.db.commit()
        return updated

    def user_ids_with_holdings(self) -> list[str]:
        rows = self.db.execute(
            select(HoldingRecord.user_id).distinct().order_by(HoldingRecord.user_id.asc())
        ).all()
        return [row[0] for row in rows]
