"""Fixed vocabularies shared by templates, entries and tags."""

from enum import StrEnum

from nutrition_helper.domain.errors import InvalidInputError


class SlotType(StrEnum):
    """The five meal slots of a day, in chronological order."""

    BREAKFAST = "breakfast"
    MORNING_SNACK = "morning_snack"
    LUNCH = "lunch"
    AFTERNOON_SNACK = "afternoon_snack"
    DINNER = "dinner"

    @classmethod
    def all(cls) -> list["SlotType"]:
        """Return every slot in day order."""
        return list(cls)

    @classmethod
    def parse(cls, raw: str) -> "SlotType":
        """Parse a stored or submitted slot value."""
        try:
            return cls(raw)
        except ValueError:
            raise InvalidInputError(f"Invalid slot type: {raw}") from None

    @property
    def order(self) -> int:
        return SlotType.all().index(self)


class LocationType(StrEnum):
    """Where a meal can be prepared or eaten."""

    HOME = "home"
    OFFICE = "office"
    RESTAURANT = "restaurant"
    ANY = "any"

    @classmethod
    def parse(cls, raw: str) -> "LocationType":
        """Parse a stored or submitted location value."""
        try:
            return cls(raw)
        except ValueError:
            raise InvalidInputError(f"Invalid location type: {raw}") from None

    def is_compatible_with(self, other: "LocationType") -> bool:
        """Return whether two locations can host the same meal."""
        return LocationType.ANY in (self, other) or self == other


class TagCategory(StrEnum):
    """Grouping used to organise tags in the UI."""

    INGREDIENT = "ingredient"
    DIETARY = "dietary"
    PREP_TIME = "prep_time"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str) -> "TagCategory":
        """Parse a stored or submitted tag category."""
        try:
            return cls(raw)
        except ValueError:
            raise InvalidInputError(f"Invalid tag category: {raw}") from None
