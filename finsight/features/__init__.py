"""
Feature Engineering Module

This module contains all behavioral signal detection algorithms for FinSight.

Modules:
    - signals: Main orchestrator for all feature calculations
    - credit: Credit utilization and payment pattern analysis
    - income: Income stability and cash flow analysis
    - savings: Savings behavior and emergency fund analysis
    - subscriptions: Recurring merchant and subscription detection
    - lifestyle: Discretionary spending relative to income
    - window_utils: Date range and time window utilities
"""

from .signals import detect_signals, detect_signals_batch, SignalBundle

__all__ = ['detect_signals', 'detect_signals_batch', 'SignalBundle']
