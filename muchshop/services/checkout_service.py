# muchshop/services/checkout_service.py
from datetime import date, datetime, time, timedelta
from typing import List

from muchshop.domain.schemas import TimeSlot
from muchshop.utils.settings import PREP_TIME_MINUTES, SHOP_OPEN_HOUR, SHOP_CLOSE_HOUR


def available_pickup_slots(
    day: date,
    now: datetime | None = None,
    open_hour: int = SHOP_OPEN_HOUR,
    close_hour: int = SHOP_CLOSE_HOUR,
    prep_minutes: int = PREP_TIME_MINUTES,
) -> List[TimeSlot]:
    """
    Half hour pickup slots between opening and closing hour.
    Today only offers slots at least prep_minutes from now, past days offer none.
    """
    now = now or datetime.now()
    if day < now.date():
        return []

    earliest = now + timedelta(minutes=prep_minutes)
    slots = []
    for hour in range(open_hour, close_hour):
        for minute in (0, 30):
            slot_time = datetime.combine(day, time(hour, minute))
            if day == now.date() and slot_time < earliest:
                continue
            slots.append(TimeSlot(value=f"{hour:02d}:{minute:02d}", label=slot_time.strftime("%I:%M %p")))
    return slots
