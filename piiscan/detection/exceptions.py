class DetectionError(Exception):
    """Raised when a detection pattern or validator fails unexpectedly.

    Indicates a defect in the detector itself, not in the scanned text.
    """
