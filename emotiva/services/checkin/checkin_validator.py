"""
Check-in input validation.

Validates a guardian's check-in answers before anything is written.
"""

from datetime import date
from typing import Tuple, Optional, Dict, Any

from emotiva.services.checkin.dates import parse_day


MOOD_HAPPY = "happy"
MOOD_NEUTRAL = "neutral"
MOOD_SAD = "sad"

MOODS = [MOOD_HAPPY, MOOD_NEUTRAL, MOOD_SAD]


class CheckInValidator:
    """
    Validates check-in answers: mood, sleep, adverse event, day and note.
    """

    REQUIRED_FLAGS = ["sleptWell", "adverseEvent"]

    MAX_NOTE_LENGTH = 500

    INTENSITY_RANGE = (1, 5)

    @classmethod
    def validate(cls, data: Dict[str, Any], today: date) -> Tuple[bool, Optional[str]]:
        """
        Validate all required answers are present and well-formed.

        Args:
            data: dict with mood, sleptWell, adverseEvent, date, note
            today: Current calendar day in the app timezone

        Returns:
            tuple of (is_valid, error_message)
        """
        mood = data.get("mood")
        if not mood:
            return False, "Missing required field: mood"
        if mood not in MOODS:
            return False, f"Field 'mood' must be one of: {', '.join(MOODS)}"

        for flag in cls.REQUIRED_FLAGS:
            if data.get(flag) is None:
                return False, f"Missing required field: {flag}"
            if not isinstance(data[flag], bool):
                return False, f"Field '{flag}' must be a boolean"

        if not data.get("date"):
            return False, "Missing required field: date"

        chosen = parse_day(data["date"])
        if chosen is None:
            return False, "Field 'date' must be in YYYY-MM-DD format"
        if chosen > today:
            return False, "Check-in date cannot be in the future"

        intensity = data.get("intensity")
        if intensity is not None:
            low, high = cls.INTENSITY_RANGE
            if not isinstance(intensity, int) or isinstance(intensity, bool) or not low <= intensity <= high:
                return False, f"Field 'intensity' must be between {low} and {high}"

        return cls.validate_note(data.get("note"))

    @classmethod
    def validate_note(cls, note: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate optional free-text note.

        Rules:
            - Max 500 characters after trimming
        """
        if note is None:
            return True, None

        if not isinstance(note, str):
            return False, "Note must be a string"

        if len(note.strip()) > cls.MAX_NOTE_LENGTH:
            return False, f"Note cannot exceed {cls.MAX_NOTE_LENGTH} characters"

        return True, None
