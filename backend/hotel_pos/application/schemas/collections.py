"""Per-collection record validators.

Each model describes the fields a collection's records must carry; unknown
fields are allowed through untouched. Rules mirror the data checks the POS
front end has always applied before writing. Validation is strict: a price
sent as ``"35"`` is rejected rather than coerced.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from hotel_pos.domain import collections as c
from hotel_pos.domain.exceptions import InvalidPayloadError

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Amount = Annotated[float, Field(ge=0)]


class _RecordModel(BaseModel):
    model_config = ConfigDict(extra="allow", strict=True)


class OrderRecord(_RecordModel):
    total: float
    items: list[Any]
    tableId: NonBlank


class DishRecord(_RecordModel):
    name: NonBlank
    price: Amount


class ExpenseRecord(_RecordModel):
    amount: Annotated[float, Field(gt=0)]
    category: NonBlank
    description: NonBlank


class InventoryRecord(_RecordModel):
    name: NonBlank
    quantity: Amount
    unit: NonBlank


class HotelRoomRecord(_RecordModel):
    roomNumber: NonBlank
    status: Literal["available", "occupied", "maintenance", "cleaning"]


class KTVRoomRecord(_RecordModel):
    name: NonBlank
    status: Literal["available", "occupied", "maintenance"]


class SignBillAccountRecord(_RecordModel):
    accountName: NonBlank
    creditLimit: Amount


class PartnerAccountRecord(_RecordModel):
    name_cn: NonBlank
    name_en: NonBlank
    contact_person: NonBlank
    phone: NonBlank
    credit_limit: Amount
    current_balance: Amount


RECORD_VALIDATORS: dict[str, type[BaseModel]] = {
    c.ORDERS: OrderRecord,
    c.DISHES: DishRecord,
    c.EXPENSES: ExpenseRecord,
    c.INVENTORY: InventoryRecord,
    c.HOTEL_ROOMS: HotelRoomRecord,
    c.KTV_ROOMS: KTVRoomRecord,
    c.SIGN_BILL_ACCOUNTS: SignBillAccountRecord,
    c.PARTNER_ACCOUNTS: PartnerAccountRecord,
}


def validate_record(
    collection: str,
    record: dict[str, Any],
    validators: dict[str, type[BaseModel]] | None = None,
) -> None:
    """Raise InvalidPayloadError if *record* breaks its collection's rules.

    Collections without a registered model are accepted as-is.
    """
    registry = RECORD_VALIDATORS if validators is None else validators
    model = registry.get(collection)
    if model is None:
        return
    try:
        model.model_validate(record)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'record'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidPayloadError(collection, problems) from exc
