"""Fixed storage identifiers for persisted search data."""

from __future__ import annotations

SIGNAL_HISTORY_KEY = "signal-history-v2"
SIGNAL_SPACES_KEY = "signal-spaces-v1"
SIGNAL_SPACE_TAGS_KEY = "signal-space-tags-v1"
SIGNAL_TASKS_KEY = "signal-tasks-v1"
SIGNAL_FILES_KEY = "signal-files-v1"
SIGNAL_COLLECTIONS_KEY = "signal-collections-v1"
SIGNAL_NOTES_KEY = "signal-notes-v1"

SIGNAL_UNIFIED_RECENT_SEARCH_KEY = "signal-unified-recent-v1"
SIGNAL_UNIFIED_SAVED_SEARCH_KEY = "signal-unified-saved-searches-v1"
SIGNAL_UNIFIED_SAVED_SEARCH_LEGACY_KEYS = ("signal-unified-saved-v1",)
SIGNAL_UNIFIED_VERBATIM_KEY = "signal-unified-verbatim-v1"

# Keys the unified search reads from a storage export
UNIFIED_SEARCH_STORAGE_KEYS = (
    SIGNAL_NOTES_KEY,
    SIGNAL_HISTORY_KEY,
    SIGNAL_SPACES_KEY,
    SIGNAL_SPACE_TAGS_KEY,
    SIGNAL_COLLECTIONS_KEY,
    SIGNAL_FILES_KEY,
    SIGNAL_TASKS_KEY,
    SIGNAL_UNIFIED_RECENT_SEARCH_KEY,
    SIGNAL_UNIFIED_SAVED_SEARCH_KEY,
    *SIGNAL_UNIFIED_SAVED_SEARCH_LEGACY_KEYS,
    SIGNAL_UNIFIED_VERBATIM_KEY,
)
