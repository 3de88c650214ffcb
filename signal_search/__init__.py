"""Signal Search: unified search over threads, spaces, collections, files and tasks."""

from signal_search.config import ConfigManager, SearchConfig, apply_env_overrides
from signal_search.decoders import (
    decode_collections,
    decode_files,
    decode_notes,
    decode_recent_queries,
    decode_selected_thread_ids,
    decode_space_tags,
    decode_spaces,
    decode_tasks,
    decode_threads,
    decode_verbatim_flag,
    load_stored_json,
)
from signal_search.engine import (
    SearchDataset,
    SearchEngine,
    SearchHit,
    SearchResults,
    UnifiedSearchResults,
)
from signal_search.file_search import FileSearchResult, search_library_files
from signal_search.filters import (
    apply_timeline_window,
    filter_collection_entries,
    filter_file_entries,
    filter_space_entries,
    filter_task_entries,
    filter_thread_entries,
)
from signal_search.highlight import HighlightPart, build_highlight_parts
from signal_search.models import Citation, Collection, LibraryFile, Space, Task, Thread
from signal_search.query import (
    NormalizedQuery,
    ParsedQuery,
    SearchOperators,
    normalize_query,
    parse_unified_search_query,
    tokenize_query,
)
from signal_search.ranking import sort_search_results, top_k_search_results
from signal_search.saved_searches import (
    SavedSearch,
    decode_saved_search_storage,
    encode_saved_search_storage,
)
from signal_search.scoring import (
    compute_relevance_score,
    compute_thread_match_badges,
    matches_query,
)
from signal_search.selection import (
    apply_bulk_thread_update,
    prune_selected_ids,
    push_recent_query,
    resolve_active_selected_ids,
    resolve_thread_space_meta,
    toggle_visible_selection,
)
from signal_search.undo import (
    DeletedAnchor,
    capture_deleted_anchors,
    restore_deleted_anchors,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "Thread",
    "Space",
    "Collection",
    "LibraryFile",
    "Task",
    "Citation",
    # Query module
    "NormalizedQuery",
    "SearchOperators",
    "ParsedQuery",
    "normalize_query",
    "tokenize_query",
    "parse_unified_search_query",
    # Scoring module
    "matches_query",
    "compute_relevance_score",
    "compute_thread_match_badges",
    # Filters module
    "apply_timeline_window",
    "filter_thread_entries",
    "filter_space_entries",
    "filter_collection_entries",
    "filter_file_entries",
    "filter_task_entries",
    # Ranking module
    "sort_search_results",
    "top_k_search_results",
    # Selection module
    "apply_bulk_thread_update",
    "prune_selected_ids",
    "toggle_visible_selection",
    "resolve_active_selected_ids",
    "resolve_thread_space_meta",
    "push_recent_query",
    # Undo module
    "DeletedAnchor",
    "capture_deleted_anchors",
    "restore_deleted_anchors",
    # Decoders module
    "load_stored_json",
    "decode_threads",
    "decode_spaces",
    "decode_collections",
    "decode_files",
    "decode_tasks",
    "decode_notes",
    "decode_space_tags",
    "decode_recent_queries",
    "decode_selected_thread_ids",
    "decode_verbatim_flag",
    # Saved searches module
    "SavedSearch",
    "decode_saved_search_storage",
    "encode_saved_search_storage",
    # Highlight module
    "HighlightPart",
    "build_highlight_parts",
    # File search module
    "FileSearchResult",
    "search_library_files",
    # Engine module
    "SearchDataset",
    "SearchEngine",
    "SearchHit",
    "SearchResults",
    "UnifiedSearchResults",
    # Config module
    "SearchConfig",
    "ConfigManager",
    "apply_env_overrides",
]
