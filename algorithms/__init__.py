"""
Algorithms package for the Banker's Resource Allocation Simulator.
Contains the Banker's safety check and the request/release arbiter.
"""
