"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from gite_booking import config
from gite_booking.domain.enums import AuditAction, AuditEntity


class DateRange(BaseModel):
    """Half-open stay period [start_date, end_date)"""
    start_date: date
    end_date: date

    @validator('end_date')
    def end_after_start(cls, v, values):
        if 'start_date' in values and v <= values['start_date']:
            raise ValueError('End date must be after start date')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.end_date - self.start_date).days

    def overlaps(self, other: "DateRange") -> bool:
        return self.start_date < other.end_date and other.start_date < self.end_date

    class Config:
        frozen = True


class Money(BaseModel):
    """Value Object for monetary amounts"""
    amount: Decimal = Field(ge=0)
    currency: str = config.CURRENCY

    @staticmethod
    def of(amount: Decimal, currency: Optional[str] = None) -> "Money":
        """Build a Money rounded to cents"""
        return Money(
            amount=Decimal(amount).quantize(config.MONEY_QUANTUM, rounding=ROUND_HALF_UP),
            currency=currency or config.CURRENCY
        )

    class Config:
        frozen = True


class GuestDetails(BaseModel):
    """Guest contact data supplied with a booking request"""
    name: str
    email: str
    phone: Optional[str] = None
    street: str = ""
    house_number: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""

    class Config:
        frozen = True


class AuditEvent(BaseModel):
    """Audit trail record handed to the audit sink"""
    action: str
    entity_type: AuditEntity
    entity_id: Optional[str] = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)

    @staticmethod
    def of(action, entity_type: AuditEntity, entity_id=None) -> "AuditEvent":
        if isinstance(action, AuditAction):
            action = action.value
        return AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None
        )

    class Config:
        frozen = True
