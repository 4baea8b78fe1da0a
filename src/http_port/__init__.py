"""http_port — REST API requests from Postgres.

Listens on a PostgreSQL NOTIFY channel, turns each notification payload into
an outbound HTTP call, and hands the response back to the database by
executing the callback statement named in the payload.
"""

__version__ = "0.1.0"
