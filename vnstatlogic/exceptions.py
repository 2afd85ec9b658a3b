class VnStatLogicError(Exception): ...


class ConstraintConfigError(VnStatLogicError): ...


class DataIntegrityError(VnStatLogicError): ...


class CollectorError(VnStatLogicError): ...


def require(
    condition: bool, message: str, exc: type[VnStatLogicError] = VnStatLogicError
):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
