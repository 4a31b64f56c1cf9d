"""
Preferences module data models.

Preferences is the locally persisted document; PreferencesRow is its
flattened shape in the remote user_preferences table.
"""

from datetime import date, time, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, PositiveInt


class Weekday(str, Enum):
    """Day of the week, stored by its English name."""

    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @property
    def short_name(self) -> str:
        return self.value[:3]

    @property
    def is_weekend(self) -> bool:
        return self in WEEKENDS

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        return _BY_ISO_WEEKDAY[day.isoweekday()]


WEEKDAYS = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
)
WEEKENDS = (Weekday.SATURDAY, Weekday.SUNDAY)

_BY_ISO_WEEKDAY = {
    1: Weekday.MONDAY,
    2: Weekday.TUESDAY,
    3: Weekday.WEDNESDAY,
    4: Weekday.THURSDAY,
    5: Weekday.FRIDAY,
    6: Weekday.SATURDAY,
    7: Weekday.SUNDAY,
}


class WakeUpMethod(str, Enum):
    """How the user proves they are up."""

    STEPS = "steps"
    LOCATION = "location"


class MotivationMethod(str, Enum):
    """What happens when the user fails to get up."""

    PHONE = "phone"
    MONEY = "money"
    NOISE = "noise"
    NONE = "none"


class Location(BaseModel):
    """A named geofence the user must leave to dismiss the alarm."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    geofence_radius: float = Field(..., gt=0, description="Radius in meters")
    name: str

    model_config = {"frozen": True}


class Preferences(BaseModel):
    """
    A user's wake-up schedule and challenge settings.

    wake_up_times holds per-weekday overrides; the three optional times
    cover every day, Monday-Friday and the weekend respectively.
    """

    wake_up_times: dict[Weekday, time] = Field(default_factory=dict)
    everyday_time: Optional[time] = None
    weekdays_time: Optional[time] = None
    weekends_time: Optional[time] = None
    wake_up_method: Optional[WakeUpMethod] = None
    step_goal: Optional[PositiveInt] = None
    location: Optional[Location] = None
    grace_period: Optional[timedelta] = None
    motivation_method: Optional[MotivationMethod] = None

    model_config = {"validate_assignment": True}

    def has_any_wake_up_time(self) -> bool:
        return (
            self.everyday_time is not None
            or self.weekdays_time is not None
            or self.weekends_time is not None
            or bool(self.wake_up_times)
        )

    def effective_wake_up_time(self, day: date) -> Optional[time]:
        """
        Wake-up time that applies on the given day.

        Precedence: that weekday's own time, then the everyday time, then
        the weekdays or weekends time depending on the day.
        """
        weekday = Weekday.from_date(day)

        specific = self.wake_up_times.get(weekday)
        if specific is not None:
            return specific
        if self.everyday_time is not None:
            return self.everyday_time
        if weekday.is_weekend:
            return self.weekends_time
        return self.weekdays_time


class PreferencesRow(BaseModel):
    """
    Row shape of the remote user_preferences table.

    Times are stored as "HH:MM:SS" strings, the grace period in seconds,
    and the location flattened into four columns.
    """

    firebase_uid: str
    wake_up_times: Optional[dict[str, str]] = None
    everyday_time: Optional[str] = None
    weekdays_time: Optional[str] = None
    weekends_time: Optional[str] = None
    wake_up_method: Optional[str] = None
    step_goal: Optional[int] = None
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_radius: Optional[float] = None
    location_name: Optional[str] = None
    grace_period: Optional[float] = None
    motivation_method: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"extra": "ignore"}

    @classmethod
    def from_preferences(cls, identity_id: str, preferences: Preferences) -> "PreferencesRow":
        location = preferences.location
        return cls(
            firebase_uid=identity_id,
            wake_up_times={
                weekday.value: t.isoformat() for weekday, t in preferences.wake_up_times.items()
            } or None,
            everyday_time=_time_to_str(preferences.everyday_time),
            weekdays_time=_time_to_str(preferences.weekdays_time),
            weekends_time=_time_to_str(preferences.weekends_time),
            wake_up_method=_enum_value(preferences.wake_up_method),
            step_goal=preferences.step_goal,
            location_latitude=location.latitude if location else None,
            location_longitude=location.longitude if location else None,
            location_radius=location.geofence_radius if location else None,
            location_name=location.name if location else None,
            grace_period=(
                preferences.grace_period.total_seconds()
                if preferences.grace_period is not None
                else None
            ),
            motivation_method=_enum_value(preferences.motivation_method),
        )

    def to_record(self) -> dict[str, Any]:
        """Column values for an upsert; timestamps are set by the database."""
        return self.model_dump(exclude={"created_at", "updated_at"})

    def to_preferences(self) -> Preferences:
        """
        Rebuild Preferences from the row.

        Unknown weekdays, unparseable times and unknown enum values are
        dropped; the location is restored only if all four columns are set.
        """
        wake_up_times: dict[Weekday, time] = {}
        for name, value in (self.wake_up_times or {}).items():
            parsed = _parse_time(value)
            if name in Weekday._value2member_map_ and parsed is not None:
                wake_up_times[Weekday(name)] = parsed

        location = None
        if (
            self.location_latitude is not None
            and self.location_longitude is not None
            and self.location_radius is not None
            and self.location_name is not None
        ):
            location = Location(
                latitude=self.location_latitude,
                longitude=self.location_longitude,
                geofence_radius=self.location_radius,
                name=self.location_name,
            )

        return Preferences(
            wake_up_times=wake_up_times,
            everyday_time=_parse_time(self.everyday_time),
            weekdays_time=_parse_time(self.weekdays_time),
            weekends_time=_parse_time(self.weekends_time),
            wake_up_method=_parse_enum(WakeUpMethod, self.wake_up_method),
            step_goal=self.step_goal if self.step_goal and self.step_goal > 0 else None,
            location=location,
            grace_period=(
                timedelta(seconds=self.grace_period) if self.grace_period is not None else None
            ),
            motivation_method=_parse_enum(MotivationMethod, self.motivation_method),
        )


def _time_to_str(value: Optional[time]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _enum_value(value: Optional[Enum]) -> Optional[str]:
    return value.value if value is not None else None


def _parse_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def _parse_enum(enum_cls: type[Enum], value: Optional[str]) -> Any:
    if value is None or value not in enum_cls._value2member_map_:
        return None
    return enum_cls(value)
