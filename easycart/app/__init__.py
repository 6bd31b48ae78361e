"""Application composition: runtime settings shared by the web runtime."""
