class HexbinException(Exception):
    """Base Exception Class"""
    pass
class ConfigError(HexbinException):
    """Config Error"""
    pass
class GridConfigError(ConfigError):
    """Error for an unusable grid configuration (radius, origin)"""
    pass
class ViewportError(ConfigError):
    """Error for a viewport whose edges are not finite numbers"""
    pass
class MalformedFeatureError(HexbinException):
    """Error for a feature whose geometry or properties cannot be parsed"""
    pass
class FeatureSourceError(HexbinException):
    """Error class for when theres an issue fetching features from the API"""
    pass
class RecomputeSuperseded(HexbinException):
    """Raised inside a grid recompute once a newer viewport has been requested"""
    pass
