from townmatch.models.location import City, Town

__all__ = [
    "City",
    "Town",
]
