"""
Rate-shopping ingestion: store competitor quotes for the pricing signals.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock, RandomSource
from app.models.base.enums import ChangeType
from app.models.pricing import CompetitorRateSheet
from app.repositories.audit import AuditRepository
from app.repositories.pricing import CompetitorRateRepository
from app.schemas.audit import AuditEntry
from app.schemas.pricing import CompetitorSheetResult, CompetitorSheetUpsert
from app.services.base import BaseService

SHEET_TABLE = "competitor_rate_sheets"
SOURCE_RATE_SHOPPING = "rate_shopping"


def _sheet_values(sheet: CompetitorRateSheet) -> Dict[str, Any]:
    return {
        "name": sheet.competitor_name,
        "is_active": sheet.is_active,
        "rates": {quote.date.isoformat(): quote.rate for quote in sheet.rates},
    }


class CompetitorRateService(BaseService):
    """Upserts one sheet per competitor, each in its own audited transaction."""

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        config: Optional[Settings] = None,
        competitors: Optional[CompetitorRateRepository] = None,
        audit: Optional[AuditRepository] = None,
    ):
        super().__init__(db_session, clock=clock, rng=rng, config=config)
        self.competitors = competitors or CompetitorRateRepository(db_session)
        self.audit = audit or AuditRepository(db_session)

    def store(self, sheets: List[CompetitorSheetUpsert], actor: str) -> List[CompetitorSheetResult]:
        return [
            self._with_retry(lambda: self._store_one(sheet, actor), f"{sheet.hotel_id}:{sheet.competitor_id}")
            for sheet in sheets
        ]

    def _store_one(self, payload: CompetitorSheetUpsert, actor: str) -> CompetitorSheetResult:
        existing = self.competitors.find_sheet(payload.hotel_id, payload.competitor_id)
        old_values = _sheet_values(existing) if existing is not None else None

        sheet, created = self.competitors.upsert_sheet(
            payload.hotel_id,
            payload.competitor_id,
            payload.name,
            payload.is_active,
            payload.rates,
            updated_at=self.clock.now(),
            default_currency=self.settings.DEFAULT_CURRENCY,
        )
        self.audit.record(AuditEntry(
            hotel_id=sheet.hotel_id,
            table_name=SHEET_TABLE,
            record_key=f"{sheet.hotel_id}:{sheet.competitor_ref}",
            change_type=ChangeType.CREATE if created else ChangeType.UPDATE,
            old_values=old_values,
            new_values=_sheet_values(sheet),
            actor=actor,
            source=SOURCE_RATE_SHOPPING,
            timestamp=self.clock.now(),
        ))

        self._logger.info(
            f"Stored {len(payload.rates)} quote(s) from competitor {sheet.competitor_ref}",
            extra={"hotel_id": sheet.hotel_id},
        )
        return CompetitorSheetResult(
            hotel_id=sheet.hotel_id,
            competitor_id=sheet.competitor_ref,
            created=created,
            rates_stored=len(payload.rates),
            is_active=sheet.is_active,
        )
