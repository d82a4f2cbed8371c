from datetime import date, datetime, time

def format_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"

def format_time(value: time | None) -> str:
    if value is None:
        return ""
    hour12 = value.hour % 12 or 12
    ampm = "PM" if value.hour >= 12 else "AM"
    return f"{hour12}:{value.minute:02d} {ampm}"

def format_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    return f"{format_date(value)}, {format_time(value.time())}"

def format_number(value: float | int | None) -> str:
    """70.0 -> "70", 36.55 -> "36.55", None -> ""."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"

def format_money(value: float | int | None) -> str:
    if value is None:
        return "0"
    return format_number(value)
