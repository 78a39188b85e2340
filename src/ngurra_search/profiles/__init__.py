"""
Per-content-type search profiles.
"""

from ngurra_search.profiles.base import FacetDefinition, SearchProfile
from ngurra_search.profiles.jobs import JobsProfile
from ngurra_search.profiles.courses import CoursesProfile
from ngurra_search.profiles.mentors import MentorsProfile
from ngurra_search.profiles.forums import ForumsProfile

PROFILES = (JobsProfile, CoursesProfile, MentorsProfile, ForumsProfile)

__all__ = [
    "FacetDefinition",
    "SearchProfile",
    "JobsProfile",
    "CoursesProfile",
    "MentorsProfile",
    "ForumsProfile",
    "PROFILES",
]
