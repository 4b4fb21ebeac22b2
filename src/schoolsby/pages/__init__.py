"""One extractor class per Schools.by page type."""
