from kanji_quiz.errors import ValidationError

OPTION_COUNT = 3

REQUIRED_TEXT = (
    ("kanji", "Kanji is required"),
    ("imagePath", "Image is required"),
    ("questionJa", "Japanese question is required"),
    ("questionEn", "English question is required"),
)

# fields where an explicit null/false must win over the stored value
PRESENCE_CHECKED = ("hintJa", "hintEn", "isActive", "isGlobal")

# fields where a missing or null value keeps the stored one
COALESCED = ("kanji", "options", "imagePath", "questionJa", "questionEn")

MISSING = object()


def _text(data: dict, field: str, message: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _optional_text(data: dict, field: str):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text")
    value = value.strip()
    return value or None


def _flag(data: dict, field: str, default: bool) -> bool:
    value = data.get(field, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def validate_question(data: dict) -> dict:
    """Check a full question payload and return its normalized form.

    Raises ValidationError carrying the first rule that fails.
    """
    if not isinstance(data, dict):
        raise ValidationError("Question payload must be an object")

    kanji = _text(data, *REQUIRED_TEXT[0])
    if len(kanji) != 1:
        raise ValidationError("Kanji must be a single character")

    options = data.get("options")
    if not isinstance(options, (list, tuple)) or not all(isinstance(o, str) for o in options):
        raise ValidationError("Options must be a list of characters")
    options = [o.strip() for o in options]
    if len(options) != OPTION_COUNT:
        raise ValidationError(f"Options must contain exactly {OPTION_COUNT} entries")
    if any(len(o) != 1 for o in options):
        raise ValidationError("Each option must be a single character")
    if len(set(options)) != len(options):
        raise ValidationError("Options must all be different")
    if kanji not in options:
        raise ValidationError("Options must include the correct kanji")

    out = {"kanji": kanji, "options": options}
    for field, message in REQUIRED_TEXT[1:]:
        out[field] = _text(data, field, message)

    out["hintJa"] = _optional_text(data, "hintJa")
    out["hintEn"] = _optional_text(data, "hintEn")
    out["isActive"] = _flag(data, "isActive", True)
    out["isGlobal"] = _flag(data, "isGlobal", False)

    owner = data.get("ownerUserId")
    if not isinstance(owner, str) or not owner:
        raise ValidationError("Owner is required")
    out["ownerUserId"] = owner
    return out


def merge_question(existing: dict, updates: dict) -> dict:
    if not isinstance(updates, dict):
        raise ValidationError("Question payload must be an object")

    merged = dict(existing)
    for field in COALESCED:
        value = updates.get(field)
        if value is not None:
            merged[field] = value

    for field in PRESENCE_CHECKED:
        value = updates.get(field, MISSING)
        if value is MISSING:
            continue
        if value is None and field in ("isActive", "isGlobal"):
            raise ValidationError(f"{field} must be true or false")
        merged[field] = value

    # ownership is fixed at creation
    merged["ownerUserId"] = existing["ownerUserId"]
    merged.pop("id", None)
    return merged
