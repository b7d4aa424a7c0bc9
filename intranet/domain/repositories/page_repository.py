"""
Page Repository Interface.
Defines the listing, search and aggregate queries over published Pages.
"""

from typing import Any, Dict, List, Optional, Set

from intranet.domain.models.page import Page
from intranet.domain.repositories.base import BaseRepository
from intranet.domain.schemas.page import PageListParams, SearchParams


class PageRepository(BaseRepository[Page]):
    """Interface for Page-specific operations."""

    def get_list(self, params: PageListParams) -> Dict[str, Any]:
        """Filtered, sorted, paginated published pages: {"items", "total"}."""
        ...

    def search(self, params: SearchParams) -> Dict[str, Any]:
        """Multi-term search over published pages: {"items", "total"}."""
        ...

    def get_unread(self, read_ids: Set[int]) -> List[Page]:
        """Published pages whose id is not in read_ids, newest first."""
        ...

    def get_detail(self, page_id: int) -> Optional[Page]:
        """Page with author, tags, files and comments loaded."""
        ...

    def count_related(self, page_ids: List[int]) -> Dict[int, Dict[str, int]]:
        """Comment and file counts keyed by page id."""
        ...

    def get_tag_counts(self) -> List[Dict[str, Any]]:
        """Distinct tags on published pages with usage counts."""
        ...

    def get_global_stats(self) -> Dict[str, Any]:
        """Totals across pages, users, files and comments."""
        ...
