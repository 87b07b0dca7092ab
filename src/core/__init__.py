"""Core domain package for turnwatch.

Core contains text filtering, outcome classification, extraction and the
monitor session without any browser, file or delivery-specific code, keeping
the detection logic portable.
"""
