"""
Launch script for the Finality Latency Experiment.
"""
import sys
from scenarios import exp_finality

if __name__ == "__main__":
    print("Launching Finality Latency Experiment...")
    sys.exit(exp_finality.main())
