"""
rollstat test suite.

Tests compare every rolling statistic against direct per-window computations
with numpy, pandas, scipy and statsmodels, and check that results do not
depend on the partition axis or the number of worker threads.
"""
