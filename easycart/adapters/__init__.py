"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (pricing engine and VIP
    catalog over HTTP, plus an offline mock) used by use cases.

Dependencies:
    HTTP submodules depend on ``requests``; the mock depends on domain types only.

Call context:
    Imported by ``easycart.web_ui.runtime`` for runtime wiring and by tests for
    transport-level behavior verification.
"""
