class GasOracleError(Exception):
    """Base class for failures while obtaining fee data from upstream oracles."""


class MalformedUpstreamData(GasOracleError):
    """An upstream payload did not match any known shape or carried unusable values."""


class UpstreamUnavailable(GasOracleError):
    """Neither the primary nor the fallback oracle produced a snapshot."""


class InvalidTransactionIntent(ValueError):
    """A caller-supplied transaction intent failed boundary validation."""
