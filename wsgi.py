from shiptivity import create_app

app = create_app()

# Reorders are serialized per process; with several gunicorn workers the
# per-reorder transaction (SELECT ... FOR UPDATE on PostgreSQL) covers the rest.
# gunicorn -w 2 wsgi:app
