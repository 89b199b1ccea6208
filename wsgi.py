"""WSGI entrypoint for production deployment.

Socket.IO needs a single worker process, because the campaign rooms live in
that process's memory:

Usage with Gunicorn:
    gunicorn -w 1 --threads 100 -b 0.0.0.0:5000 wsgi:app

Environment variables:
    JWT_SECRET_KEY=<secret>   Secret key for JWT signing (required in production)
    DATABASE_PATH=<path>      sqlite database file
    OPENAI_API_KEY=<key>      Enables LLM generation (fallback content otherwise)
"""

from api import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
