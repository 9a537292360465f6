# app/repositories/pricing/competitor_rate_repository.py
"""
Competitor rate sheets: the competitor rate source collaborator.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError, UpstreamError
from app.models.pricing import CompetitorRate, CompetitorRateSheet
from app.repositories.base.base_repository import BaseRepository

SERVICE_NAME = "CompetitorRates"


class QuoteValues(Protocol):
    date: date
    rate: int
    currency: Optional[str]
    availability: Optional[bool]


class CompetitorRateRepository(BaseRepository[CompetitorRateSheet]):
    """
    Quotes from competitor sheets.

    Read failures surface as UpstreamError so pricing can degrade; the
    rate-shopping write path raises RepositoryError instead.
    """

    def __init__(self, session: Session):
        super().__init__(CompetitorRateSheet, session)

    def rates_for(self, hotel_id: str, day: date) -> List[CompetitorRate]:
        stmt = (
            select(CompetitorRate)
            .join(CompetitorRateSheet, CompetitorRate.sheet_id == CompetitorRateSheet.id)
            .where(
                CompetitorRateSheet.hotel_id == hotel_id,
                CompetitorRateSheet.is_active.is_(True),
                CompetitorRate.date == day,
            )
            .order_by(CompetitorRateSheet.competitor_ref)
        )
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Competitor rate query failed: {e}") from e

    def find_sheet(self, hotel_id: str, competitor_ref: str) -> Optional[CompetitorRateSheet]:
        stmt = select(CompetitorRateSheet).where(
            CompetitorRateSheet.hotel_id == hotel_id,
            CompetitorRateSheet.competitor_ref == competitor_ref,
        )
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Competitor sheet lookup failed: {e}") from e

    def upsert_sheet(
        self,
        hotel_id: str,
        competitor_ref: str,
        name: str,
        is_active: bool,
        quotes: Iterable[QuoteValues],
        updated_at: datetime,
        default_currency: str,
    ) -> Tuple[CompetitorRateSheet, bool]:
        """
        Create or refresh one competitor's sheet.

        Quotes replace stored quotes for the same date; stored dates that
        are not quoted again are left alone. Returns ``(sheet, created)``.
        """
        sheet = self.find_sheet(hotel_id, competitor_ref)
        created = sheet is None
        if created:
            sheet = CompetitorRateSheet(hotel_id=hotel_id, competitor_ref=competitor_ref)
            self.db.add(sheet)
        sheet.competitor_name = name
        sheet.is_active = is_active

        by_date: Dict[date, CompetitorRate] = {quote.date: quote for quote in sheet.rates}
        for values in quotes:
            quote = by_date.get(values.date)
            if quote is None:
                quote = CompetitorRate(date=values.date)
                sheet.rates.append(quote)
                by_date[values.date] = quote
            quote.rate = values.rate
            quote.currency = values.currency or default_currency
            quote.availability = values.availability
            quote.last_updated = updated_at

        self.flush()
        return sheet, created
