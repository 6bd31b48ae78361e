"""ViewModel package for cart UI state.

Call context:
    ``easycart/web_ui/runtime.py`` subscribes ``CartVM`` to the cart store and
    the NiceGUI page renders the DTOs it produces.

Dependencies:
    Modules in this package depend on domain types and formatting helpers only.
    I/O adapters and use-case orchestration remain outside.
"""
