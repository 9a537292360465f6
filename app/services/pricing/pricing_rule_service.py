"""
Pricing rule management with audit.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock
from app.core.exceptions import ConflictError, ValidationError
from app.models.base.enums import ChangeType, PricingRuleType
from app.models.pricing import PricingRule
from app.repositories.audit import AuditRepository
from app.repositories.pricing import PricingRuleRepository
from app.schemas.audit import AuditEntry
from app.schemas.pricing import PricingRuleCreate, PricingRuleUpdate, parse_conditions
from app.services.base import BaseService

RULE_TABLE = "pricing_rules"


def _rule_values(rule: PricingRule) -> Dict[str, Any]:
    return {
        "name": rule.name,
        "type": rule.rule_type.value,
        "priority": rule.priority,
        "is_active": rule.is_active,
        "hotel_id": rule.hotel_id,
        "applicable_room_types": rule.applicable_room_types,
        "valid_from": rule.valid_from.isoformat(),
        "valid_to": rule.valid_to.isoformat() if rule.valid_to else None,
        "adjustment_type": rule.adjustment_type.value,
        "conditions": rule.conditions,
    }


class PricingRuleService(BaseService):
    """CRUD over pricing rules; conditions are checked against the rule type."""

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        rules: Optional[PricingRuleRepository] = None,
        audit: Optional[AuditRepository] = None,
    ):
        super().__init__(db_session, clock=clock, config=config)
        self.rules = rules or PricingRuleRepository(db_session)
        self.audit = audit or AuditRepository(db_session)

    def list_rules(
        self,
        hotel_id: Optional[str] = None,
        room_type_id: Optional[str] = None,
        rule_type: Optional[PricingRuleType] = None,
        active_only: bool = False,
    ) -> List[PricingRule]:
        return self.rules.list_rules(hotel_id, room_type_id, rule_type, active_only)

    def get_rule(self, rule_id: str) -> PricingRule:
        return self.rules.require(rule_id)

    def create_rule(self, payload: PricingRuleCreate, actor: str) -> PricingRule:
        """
        Store a new rule.

        Raises:
            ConflictError: ``rule_id`` already taken
        """
        if self.rules.find_by_rule_id(payload.rule_id) is not None:
            raise ConflictError(f"Pricing rule {payload.rule_id} already exists")

        rule = PricingRule(
            rule_id=payload.rule_id,
            hotel_id=payload.hotel_id,
            name=payload.name,
            description=payload.description,
            rule_type=PricingRuleType(payload.type),
            priority=payload.priority,
            is_active=payload.is_active,
            valid_from=payload.valid_from,
            valid_to=payload.valid_to,
            adjustment_type=payload.adjustment_type,
            conditions=payload.conditions.model_dump(mode="json", by_alias=True),
        )
        rule.set_scope(payload.applicable_room_types)

        with self.transaction():
            self.rules.create(rule)
            self._audit(rule, ChangeType.CREATE, None, actor)

        self._logger.info(f"Created pricing rule {rule.rule_id} ({rule.rule_type.value})")
        return rule

    def update_rule(self, rule_id: str, payload: PricingRuleUpdate, actor: str) -> PricingRule:
        """
        Partially update a rule.

        Raises:
            ResourceNotFoundError: unknown rule
            ValidationError: conditions do not fit the rule type, or an
                inverted validity window
        """
        rule = self.rules.require(rule_id)
        old_values = _rule_values(rule)
        data = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key in ("description", "valid_to")
        }

        if "conditions" in data:
            data["conditions"] = self._validated_conditions(rule.rule_type, data["conditions"])
        scope = data.pop("applicable_room_types", None)

        valid_from = data.get("valid_from", rule.valid_from)
        valid_to = data.get("valid_to", rule.valid_to)
        if valid_to is not None and valid_from is not None and valid_to < valid_from:
            raise ValidationError(
                "validTo must not be before validFrom",
                field_errors={"validTo": ["before validFrom"]},
            )

        with self.transaction():
            self.rules.update(rule, data, flush=False)
            if scope is not None:
                rule.set_scope(scope)
            self.rules.flush()
            self._audit(rule, ChangeType.UPDATE, old_values, actor)

        self._logger.info(f"Updated pricing rule {rule_id}: {sorted(data)}")
        return rule

    def delete_rule(self, rule_id: str, actor: str) -> None:
        rule = self.rules.require(rule_id)
        old_values = _rule_values(rule)
        with self.transaction():
            self.rules.delete(rule)
            self.audit.record(AuditEntry(
                hotel_id=rule.hotel_id,
                table_name=RULE_TABLE,
                record_key=rule_id,
                change_type=ChangeType.DELETE,
                old_values=old_values,
                actor=actor,
                source="pricing_rules",
                timestamp=self.clock.now(),
            ))
        self._logger.info(f"Deleted pricing rule {rule_id}")

    # ------------------------------------------------------------------

    @staticmethod
    def _validated_conditions(rule_type: PricingRuleType, raw: Dict[str, Any]) -> Dict[str, Any]:
        try:
            conditions = parse_conditions(rule_type, raw)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Conditions do not match rule type {rule_type.value}",
                field_errors={
                    ".".join(str(p) for p in err["loc"]) or "conditions": [err["msg"]]
                    for err in e.errors()
                },
            ) from e
        return conditions.model_dump(mode="json", by_alias=True)

    def _audit(self, rule: PricingRule, change_type: ChangeType, old_values: Optional[Dict[str, Any]], actor: str):
        self.audit.record(AuditEntry(
            hotel_id=rule.hotel_id,
            table_name=RULE_TABLE,
            record_key=rule.rule_id,
            change_type=change_type,
            old_values=old_values,
            new_values=_rule_values(rule),
            actor=actor,
            source="pricing_rules",
            timestamp=self.clock.now(),
        ))
