"""
Regime layer: classification, strategy weighting, strategy selection and
parameter adaptation.

Pipeline per decision:
    classifier.classify -> weighting.calculate_strategy_weights
    -> selector.StrategySelector.select -> adapter.ParameterAdapter.adapt
"""
