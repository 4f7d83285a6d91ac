from piiscan.enhancement.base import BaseRiskEnhancer
from piiscan.enhancement.enhancer import RiskEnhancer
from piiscan.enhancement.factory import EnhancerFactory

__all__ = ["BaseRiskEnhancer", "EnhancerFactory", "RiskEnhancer"]
