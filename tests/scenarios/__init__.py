"""
End-to-end scenario tests for the request-sending protocol.

Each module drives a RequestSender against a simulated receiver and marker
store the way a caller's retry loop would.
"""
