"""Code shared by every countdown timer backend service."""
