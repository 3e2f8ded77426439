"""
scoring/ — Pure scoring and coefficient calculations

Modules:
    utils.py             - Decimal utilities
    score_aggregator.py  - Weighted criterion total (ScoreAggregator)
    reach_classifier.py  - Reach figure -> tier -> factor (ReachTierClassifier)
    vote_weighting.py    - Reach-adjusted public vote tallies (VoteWeighting)
"""
