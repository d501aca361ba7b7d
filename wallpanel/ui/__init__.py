"""Interactive menus (dialog based)."""
