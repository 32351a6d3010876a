"""
Utilities for the Banker's Resource Allocation Simulator.
Contains the logger and the scenario file loader.
"""
