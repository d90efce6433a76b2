"""
Core records shared by the fetcher, formatter and pipeline.
"""

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Kind of opportunity a feed publishes."""

    SCHOLARSHIPS = "scholarships"
    VOLUNTEER = "volunteer"
    NGO = "ngo"
    TECH = "tech"


@dataclass(frozen=True)
class Opportunity:
    """
    One normalized feed item eligible for posting.

    Attributes
    ----------
    identifier : str
        Stable identifier derived from the item's link or guid.
    title : str
        Cleaned item title.
    link : str
        Permalink (or guid when no link is given).
    description : str
        Cleaned item description.
    published_label : str
        Short human-readable publication date.
    source_name : str
        Name of the feed the item came from.
    category : Category
        Category of the source feed.
    """

    identifier: str
    title: str
    link: str
    description: str
    published_label: str
    source_name: str
    category: Category
