class NemTariffError(Exception): ...


class DecodeError(NemTariffError): ...


class StateError(NemTariffError): ...


class UnitConversionError(NemTariffError): ...


class PricingError(NemTariffError): ...


class UnsupportedPricingModelError(PricingError): ...


class NemTariffWarning(UserWarning): ...


class UnsupportedBlockWarning(NemTariffWarning): ...


class MissingTerminatorWarning(NemTariffWarning): ...


class UnrecognisedRecordWarning(NemTariffWarning): ...


def require(condition: bool, message: str, exc: type[NemTariffError] = NemTariffError):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
