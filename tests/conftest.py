import os

# Point the engine at a throwaway database before the app modules are imported
os.environ.setdefault("INSCRIBO_DATABASE_URL", "sqlite:///./test_inscribo.db")
os.environ.setdefault("INSCRIBO_SECRET_KEY", "test-secret")
