"""Click command groups for the gitcms CLI."""
