"""
racestats
=========
Runs the kart race statistics pipeline as a chain of map/reduce jobs on a
remote object-store compute service.
"""

__version__ = "0.1.0"
