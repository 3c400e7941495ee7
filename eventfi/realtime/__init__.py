"""Socket.IO transport for live features.

``socketio`` owns the single server and handshake auth, ``chat`` the event
chat namespace, ``registry`` per-process connection state and ``events``
the publishers used from synchronous request code.
"""
