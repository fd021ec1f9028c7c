"""
Notification delivery for job progress.

Events are delivered live to a subscribed hub session or buffered until one
joins; the WebSocket hub is the transport adapter.
"""
