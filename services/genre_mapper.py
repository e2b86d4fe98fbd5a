"""
Maps Google Books categories onto the item Genre values
"""
from typing import Iterable

from models.item import Genre

# priority order: the first genre with a matching keyword wins
GENRE_KEYWORDS = [
    (Genre.BIOGRAPHY, ["biography", "autobiography", "memoir"]),
    (Genre.CHILDRENS, ["juvenile", "children", "young adult", "ya "]),
    (Genre.HISTORY, ["history", "historical", "war", "military"]),
    (Genre.SCIENCE_TECH, ["science", "technology", "computers", "programming", "mathematics",
                          "engineering", "medical"]),
    (Genre.ARTS_ENTERTAINMENT, ["art", "music", "film", "photography", "cooking", "crafts", "games",
                                "sports", "travel"]),
    (Genre.FICTION, ["fiction", "novel", "literary", "romance", "mystery", "thriller", "fantasy",
                     "science fiction", "horror"]),
    (Genre.NON_FICTION, ["nonfiction", "non-fiction", "self-help", "business", "economics",
                         "psychology", "philosophy"]),
    (Genre.REFERENCE_OTHER, ["reference", "education", "study aids", "language", "religion"]),
]


def map_categories_to_genre(categories: Iterable[str]) -> str:
    """
    Returns the genre value for the categories, or "" when nothing matches
    so a resync does not overwrite a genre chosen by the user
    """
    lowered = [category.lower() for category in categories or []]
    if not lowered:
        return ""

    for genre, keywords in GENRE_KEYWORDS:
        for category in lowered:
            if any(keyword in category for keyword in keywords):
                return genre.value
    return ""
