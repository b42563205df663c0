class AcademyError(Exception):
    """Root of every request-scoped error raised by the entitlement engine."""

    code = "E_ACADEMY"
    retryable = False
