"""Application services implementing contribution attribution."""
