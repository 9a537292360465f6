# app/repositories/pricing/pricing_rule_repository.py
"""
Pricing rule store.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError, ResourceNotFoundError
from app.models.base.enums import PricingRuleType
from app.models.pricing import PricingRule, PricingRuleRoomType
from app.repositories.base.base_repository import BaseRepository


class PricingRuleRepository(BaseRepository[PricingRule]):
    """
    Repository for PricingRule entity.

    Every listing is in evaluation order: priority descending, then
    ``rule_id`` ascending.
    """

    def __init__(self, session: Session):
        super().__init__(PricingRule, session)

    @staticmethod
    def _ordered(stmt):
        return stmt.order_by(PricingRule.priority.desc(), PricingRule.rule_id.asc())

    def find_by_rule_id(self, rule_id: str) -> Optional[PricingRule]:
        stmt = select(PricingRule).where(PricingRule.rule_id == rule_id)
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Pricing rule lookup failed: {str(e)}") from e

    def require(self, rule_id: str) -> PricingRule:
        rule = self.find_by_rule_id(rule_id)
        if rule is None:
            raise ResourceNotFoundError("PricingRule", rule_id)
        return rule

    def list_rules(
        self,
        hotel_id: Optional[str] = None,
        room_type_id: Optional[str] = None,
        rule_type: Optional[PricingRuleType] = None,
        active_only: bool = False,
    ) -> List[PricingRule]:
        stmt = select(PricingRule)
        if hotel_id:
            stmt = stmt.where(or_(PricingRule.hotel_id == hotel_id, PricingRule.hotel_id.is_(None)))
        if rule_type:
            stmt = stmt.where(PricingRule.rule_type == rule_type)
        if active_only:
            stmt = stmt.where(PricingRule.is_active.is_(True))
        try:
            rules = list(self.db.scalars(self._ordered(stmt)))
        except SQLAlchemyError as e:
            raise RepositoryError(f"Pricing rule listing failed: {str(e)}") from e
        if room_type_id:
            rules = [rule for rule in rules if rule.applies_to(room_type_id)]
        return rules

    def list_applicable(self, room_type_id: str, day: date, hotel_id: Optional[str] = None) -> List[PricingRule]:
        """
        Active rules valid on ``day`` whose scope covers ``room_type_id``.

        Scope is filtered in SQL: rules without scope rows apply to every
        room type.
        """
        scoped = select(PricingRuleRoomType.pricing_rule_id).where(
            PricingRuleRoomType.room_type_id == room_type_id
        )
        unscoped = ~select(PricingRuleRoomType.pricing_rule_id).where(
            PricingRuleRoomType.pricing_rule_id == PricingRule.id
        ).exists()
        stmt = select(PricingRule).where(
            PricingRule.is_active.is_(True),
            PricingRule.valid_from <= day,
            or_(PricingRule.valid_to.is_(None), PricingRule.valid_to >= day),
            or_(PricingRule.id.in_(scoped), unscoped),
        )
        if hotel_id:
            stmt = stmt.where(or_(PricingRule.hotel_id == hotel_id, PricingRule.hotel_id.is_(None)))
        try:
            return list(self.db.scalars(self._ordered(stmt)))
        except SQLAlchemyError as e:
            raise RepositoryError(f"Applicable rule query failed: {str(e)}") from e
