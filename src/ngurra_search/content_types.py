"""Logical content types that own a search index."""

from enum import Enum


class ContentType(str, Enum):
    """Searchable record categories, one index each."""
    
    JOBS = "jobs"
    COURSES = "courses"
    MENTORS = "mentors"
    FORUMS = "forums"
