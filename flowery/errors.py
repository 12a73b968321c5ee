class FloweryError(Exception):
    """Raised for failures that are reported to the user as-is."""
