# netmap/core/exceptions.py

class NetMapError(Exception):
    """Base exception for netmap errors."""
    pass

class ContractError(NetMapError):
    """Raised when a caller passes input missing required identity fields."""
    pass

class TopologyError(NetMapError):
    """Raised when the topology graph violates one of its integrity rules."""
    pass

class DocumentError(NetMapError):
    """Raised when a topology document does not have the expected shape."""
    pass

class ConfigError(NetMapError):
    """Raised when a configuration file cannot be read or validated."""
    pass
