"""AutoCard feature modules."""
