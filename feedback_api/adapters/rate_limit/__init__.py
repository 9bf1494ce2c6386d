"""Rate limiting adapters.

``windows`` holds the pure rollover/verdict logic, ``policies`` the static
per-scope limits, and ``store_backed`` the limiter that runs both against a
shared counter store.
"""
