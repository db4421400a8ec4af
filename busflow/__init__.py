"""
Transit demand forecasting, dispatch frequency recommendation and bunching detection.
"""
__version__ = '0.1.0'
