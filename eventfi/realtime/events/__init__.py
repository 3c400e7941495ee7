"""Publishers that push changes made over REST to live Socket.IO rooms.

Modules here build a payload and emit it; connection handling lives in
``eventfi.realtime.chat``.
"""
