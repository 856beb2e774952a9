"""Calendar-aware age arithmetic.

Ages are computed the way people count birthdays: the year difference,
minus one if this year's birthday has not happened yet.  In non-leap years a
Feb 29 birthday is reached on Mar 1.
"""

from datetime import date, timedelta


def shift_years(day: date, years: int) -> date:
    """Move ``day`` by whole calendar years, clamping Feb 29 to Feb 28."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def age_on(date_of_birth: date, today: date) -> int:
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)


def birth_date_range(age_min: int, age_max: int, today: date) -> tuple[date, date]:
    """Return the inclusive ``(earliest, latest)`` birth dates whose age on
    ``today`` lies within ``[age_min, age_max]``.

    ``earliest = today - (age_max + 1) years + 1 day`` and
    ``latest = today - age_min years``.
    """
    earliest = shift_years(today, -(age_max + 1)) + timedelta(days=1)
    latest = shift_years(today, -age_min)
    return earliest, latest
