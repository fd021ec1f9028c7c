"""
Job processing core.

This package provides the in-process job system:
- Job record with its lifecycle state machine
- In-memory store feeding a single-consumer queue
- Cooperative cancellation registry linked to process shutdown
- Background worker streaming results unit by unit
"""
