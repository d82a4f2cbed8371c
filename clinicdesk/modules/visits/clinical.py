TIMING_SLOTS = ("morning", "afternoon", "evening", "night")
FOOD_TIMINGS = ("before_food", "after_food", "with_food", "empty_stomach")

# timing preselected when a prescriber picks a frequency
_DEFAULT_TIMINGS = {
    1: ["morning"],
    2: ["morning", "evening"],
    3: ["morning", "afternoon", "evening"],
    4: ["morning", "afternoon", "evening", "night"],
}

def default_timings(frequency_times: int) -> list[str]:
    return list(_DEFAULT_TIMINGS.get(frequency_times, ["morning"]))

def total_quantity(frequency_times: int, duration_days: int) -> int:
    return int(frequency_times) * int(duration_days)

def compute_bmi(height_cm: float | None, weight_kg: float | None) -> float | None:
    if not height_cm or not weight_kg or height_cm <= 0:
        return None
    meters = height_cm / 100
    return round(weight_kg / (meters * meters), 1)

def food_timing_label(value: str | None) -> str:
    return (value or "").replace("_", " ")
