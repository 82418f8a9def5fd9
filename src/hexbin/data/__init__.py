from .feature_source import FeatureSourceClient

__all__ = ["FeatureSourceClient"]
