"""Error types raised by the BFV scheme."""


class BFVError(Exception):
    """Base class for all scheme errors."""


class ConfigurationError(BFVError, ValueError):
    """Invalid scheme parameters. Raised before any key material exists."""


class UsageError(BFVError, ValueError):
    """A programmer error: mismatched parameters or a ciphertext in the wrong shape."""
