"""Cross-cutting utilities shared by the directory packages."""
