"""Real-time fan-out of call events to connected helpdesk clients.

The pieces are deliberately small and composable:
ConnectionRegistry -> EventBroadcaster -> CallTimeline, with a MessageRouter
handling whatever each client sends back. CTIHub wires one of each together
for the lifetime of the application.
"""
