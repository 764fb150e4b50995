"""
Task ETA Risk — deadline and workload risk for tracker issues.
"""

__version__ = "1.0.0"
