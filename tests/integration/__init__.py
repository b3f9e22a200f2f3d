"""Integration tests for CamWatch.

These tests drive the full tick path:
- Detections -> Registry -> Escalation -> Alert recording
- Alert log persistence across pipeline restarts
- Tick loop shutdown and flushing
"""
