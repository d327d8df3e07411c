"""
Runnable experiments for the finality benchmark.
"""
