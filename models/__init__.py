"""
Models package for the Banker's Resource Allocation Simulator.
Contains resource types, processes, verdicts and the system state store.
"""
