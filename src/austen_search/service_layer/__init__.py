"""Service layer - orchestrates the text pipeline around the search index."""
