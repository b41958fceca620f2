"""Role, department and ownership permission helpers."""
