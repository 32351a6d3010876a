"""
Analysis package for the Banker's Resource Allocation Simulator.
Contains the event log and run metrics.
"""
