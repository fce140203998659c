"""
Realtime app for push notifications over WebSockets.

This app provides:
- The Notifier interface and its backends (Channels layer, logging, in-memory)
- Booking event notification helpers
- A WebSocket consumer that delivers pushes to connected devices
- JWT authentication middleware for WebSocket connections

Key Components:
    - notifier.py: Notifier backends and push group naming
    - notifications.py: Booking event notification helpers
    - consumers/: WebSocket consumers
    - middleware.py: JWT querystring authentication

Usage:
    from realtime.notifications import notify_driver_event, notify_passenger_event
    from realtime.notifier import get_notifier
"""
