from .fxrates import FXRatesClient

__all__ = ['FXRatesClient']
