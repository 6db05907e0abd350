# workflow/validation.py

from datetime import date, datetime

from constants import (
    DEFAULT_PRIORITY,
    LEAVE_TYPES,
    PRIORITIES,
    REQUEST_TYPES,
    TYPE_CONFERENCE_TRAINING,
    TYPE_LEAVE,
    TYPE_RESOURCE_REQUISITION,
)
from workflow.errors import ValidationError

# JSON (camelCase) key -> ServiceRequest attribute
FIELD_MAP = {
    "requestType": "request_type",
    "title": "title",
    "description": "description",
    "priority": "priority",
    "leaveType": "leave_type",
    "startDate": "start_date",
    "endDate": "end_date",
    "totalWorkingDays": "total_working_days",
    "substituteStaffName": "substitute_staff_name",
    "eventName": "event_name",
    "organizer": "organizer",
    "eventDates": "event_dates",
    "location": "location",
    "estimatedCost": "estimated_cost",
    "conferencePaper": "conference_paper",
    "travelRequest": "travel_request",
    "itemList": "item_list",
    "justification": "justification",
    "deliveryLocation": "delivery_location",
    "budgetCode": "budget_code",
}

PAYLOAD_FIELDS = tuple(FIELD_MAP.values())


def normalize_keys(data):
    """Accept either camelCase (API) or snake_case keys."""
    out = {}
    for key, value in (data or {}).items():
        attr = FIELD_MAP.get(key, key)
        if attr in PAYLOAD_FIELDS:
            out[attr] = value
    return out


def payload_from_request(req):
    return {attr: getattr(req, attr) for attr in PAYLOAD_FIELDS}


def _text(value):
    if value is None:
        return ""
    return str(value).strip()


def _parse_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError:
        return None


def _as_bool(value):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def count_working_days(start: date, end: date) -> int:
    """Mon-Fri days in [start, end]."""
    if end < start:
        return 0
    weeks, rest = divmod((end - start).days + 1, 7)
    first = start.weekday()
    return weeks * 5 + sum(1 for i in range(rest) if (first + i) % 7 < 5)


def _require(errors, cleaned, attr, label, min_len=1):
    value = _text(cleaned.get(attr))
    if len(value) < min_len:
        if min_len > 1:
            errors[attr] = f"{label} must be at least {min_len} characters"
        else:
            errors[attr] = f"{label} is required"
    else:
        cleaned[attr] = value


def _clean_items(raw, errors):
    if not isinstance(raw, list) or not raw:
        errors["item_list"] = "At least one item is required"
        return None

    items = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            errors["item_list"] = f"Item #{idx + 1} is invalid"
            return None
        name = _text(item.get("name"))
        try:
            qty = int(item.get("qty", 1))
        except (TypeError, ValueError):
            qty = 0
        if not name or qty < 1:
            errors["item_list"] = f"Item #{idx + 1} needs a name and a quantity of at least 1"
            return None
        items.append({"name": name, "qty": qty, "cost": _text(item.get("cost")) or None})
    return items


def validate_request_payload(data):
    """Validate a request payload and return model-ready attributes.

    Raises ValidationError with per-field messages; nothing is persisted.
    """
    cleaned = normalize_keys(data)
    errors = {}

    request_type = _text(cleaned.get("request_type")).lower()
    if request_type not in REQUEST_TYPES:
        errors["request_type"] = "Request type is required"
    cleaned["request_type"] = request_type

    _require(errors, cleaned, "title", "Title", min_len=3)
    _require(errors, cleaned, "description", "Description", min_len=10)

    priority = _text(cleaned.get("priority")).lower() or DEFAULT_PRIORITY
    if priority not in PRIORITIES:
        errors["priority"] = "Unknown priority"
    cleaned["priority"] = priority

    if request_type == TYPE_LEAVE:
        leave_type = _text(cleaned.get("leave_type")).lower()
        if leave_type not in LEAVE_TYPES:
            errors["leave_type"] = "Leave type is required"
        cleaned["leave_type"] = leave_type

        start = _parse_date(cleaned.get("start_date"))
        end = _parse_date(cleaned.get("end_date"))
        if not start:
            errors["start_date"] = "Start date is required"
        if not end:
            errors["end_date"] = "End date is required"
        if start and end and end < start:
            errors["end_date"] = "End date cannot be before start date"
        cleaned["start_date"] = start
        cleaned["end_date"] = end

        span = count_working_days(start, end) if start and end and end >= start else None
        days = cleaned.get("total_working_days")
        if days in (None, ""):
            cleaned["total_working_days"] = span
        else:
            try:
                days = int(days)
            except (TypeError, ValueError):
                errors["total_working_days"] = "Working days must be a number"
            else:
                if days < 1:
                    errors["total_working_days"] = "Working days must be at least 1"
                elif span is not None and days > span:
                    errors["total_working_days"] = f"Working days cannot exceed {span} for these dates"
                cleaned["total_working_days"] = days

        _require(errors, cleaned, "substitute_staff_name", "Substitute staff name")

    elif request_type == TYPE_CONFERENCE_TRAINING:
        _require(errors, cleaned, "event_name", "Event name")
        _require(errors, cleaned, "organizer", "Organizer")
        _require(errors, cleaned, "event_dates", "Event dates")
        _require(errors, cleaned, "location", "Location")
        cleaned["estimated_cost"] = _text(cleaned.get("estimated_cost")) or None
        cleaned["conference_paper"] = _as_bool(cleaned.get("conference_paper"))
        cleaned["travel_request"] = _as_bool(cleaned.get("travel_request"))

    elif request_type == TYPE_RESOURCE_REQUISITION:
        cleaned["item_list"] = _clean_items(cleaned.get("item_list"), errors)
        _require(errors, cleaned, "justification", "Justification", min_len=10)
        _require(errors, cleaned, "delivery_location", "Delivery location")
        cleaned["budget_code"] = _text(cleaned.get("budget_code")) or None

    if errors:
        raise ValidationError("Invalid request data.", fields=errors)

    return cleaned
