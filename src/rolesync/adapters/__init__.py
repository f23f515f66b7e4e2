"""Adapters connecting the reconciliation core to Discord and SQL storage."""
