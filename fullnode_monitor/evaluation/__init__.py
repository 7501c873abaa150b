"""阈值评估模块"""

from .threshold import ThresholdEvaluator, UNABLE_TO_EVALUATE

__all__ = ['ThresholdEvaluator', 'UNABLE_TO_EVALUATE']
