"""Notification dispatcher — PG LISTEN/NOTIFY → HTTP → callback.

Learn: The dispatcher is a long-running process that:
1. LISTENs on one PostgreSQL channel
2. Spawns an independent task per notification
3. Calls the URL described by the payload and passes the response to the
   callback statement through a bounded connection pool
"""
