import os
import sys

from dotenv import load_dotenv


def ensure_env():
    env_path = ".env.test"
    if os.path.exists(env_path):
        print(f"📦 Loading test env from {env_path}")
        load_dotenv(dotenv_path=env_path, override=True)
    else:
        print("⚠️ No .env.test file found. Continuing without custom env.")


if __name__ == "__main__":
    ensure_env()
    import pytest
    sys.exit(pytest.main(["-v", "tests", *sys.argv[1:]]))
