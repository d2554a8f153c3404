import os

# Keep the app's global engine off disk while tests run.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
