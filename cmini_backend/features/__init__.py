"""Feature modules: object_info normalization and workflow binding."""
