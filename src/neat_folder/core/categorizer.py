"""Map a file to the category directory it belongs in.

Everything here is pure: the same filename, size, modification time and
grouping method always produce the same relative directory. Undo and redo
rely on that when they trust a logged mapping.
"""

import re
from datetime import datetime
from typing import Iterable, Optional, Pattern, Sequence, Tuple

from ..models.organization import GroupingMethod
from ..utils.sizes import MB

# Ordered (pattern, category) rules; the first matching rule wins.
FILE_CATEGORIES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"\.(jpg|jpeg|png|gif|bmp|webp|svg|ico)$", re.IGNORECASE), "images"),
    (re.compile(r"\.(pdf|doc|docx|txt|md|rtf|odt|xlsx|xls|csv)$", re.IGNORECASE), "documents"),
    (re.compile(r"\.(mp3|wav|flac|m4a|aac|ogg|wma)$", re.IGNORECASE), "audio"),
    (re.compile(r"\.(mp4|avi|mkv|mov|wmv|flv|webm)$", re.IGNORECASE), "video"),
    (re.compile(r"\.(zip|rar|7z|tar|gz|bz2)$", re.IGNORECASE), "archives"),
    (re.compile(r"\.(js|ts|py|java|cpp|cs|php|html|css|json|xml)$", re.IGNORECASE), "code"),
    (re.compile(r"\.(exe|msi|app|dmg|apk)$", re.IGNORECASE), "executables"),
    (re.compile(r"\.(ttf|otf|woff|woff2)$", re.IGNORECASE), "fonts"),
)

DEFAULT_CATEGORY = "others"
OTHER_NAME_BUCKET = "other"

# Upper bounds (exclusive) for the size buckets; anything larger is "large".
SIZE_BREAKPOINTS: Tuple[Tuple[int, str], ...] = (
    (1 * MB, "small"),
    (100 * MB, "medium"),
)
LARGEST_SIZE_BUCKET = "large"


class PathCategorizer:
    """Decides the relative target directory for a file."""

    def __init__(self,
                 categories: Optional[Iterable[Tuple[Pattern[str], str]]] = None,
                 size_breakpoints: Optional[Sequence[Tuple[int, str]]] = None):
        self.categories = tuple(categories) if categories is not None else FILE_CATEGORIES
        self.size_breakpoints = tuple(size_breakpoints) if size_breakpoints is not None else SIZE_BREAKPOINTS

    def category_for(self, filename: str) -> str:
        """Category of a filename by its extension, or "others"."""
        for pattern, category in self.categories:
            if pattern.search(filename):
                return category
        return DEFAULT_CATEGORY

    def name_bucket(self, filename: str) -> str:
        first = filename[:1].lower()
        if first and first.isalnum():
            return first
        return OTHER_NAME_BUCKET

    def size_bucket(self, size: int) -> str:
        for upper_bound, bucket in self.size_breakpoints:
            if size < upper_bound:
                return bucket
        return LARGEST_SIZE_BUCKET

    def target_directory(self, filename: str, size: int, modified_time: datetime,
                         method) -> str:
        """Relative directory (using "/" separators) that ``filename`` belongs in.

        Args:
            filename: Base name of the file, without any directory part
            size: File size in bytes
            modified_time: Last modification time of the file
            method: A GroupingMethod or its string value

        Raises:
            ConfigurationError: If ``method`` is not a known grouping method.
        """
        method = GroupingMethod.parse(method)

        if method is GroupingMethod.NAME:
            return self.name_bucket(filename)
        if method is GroupingMethod.SIZE:
            return self.size_bucket(size)
        if method is GroupingMethod.DATE:
            category = self.category_for(filename)
            return f"{category}/{modified_time.year:04d}/{modified_time.month:02d}"
        return self.category_for(filename)
