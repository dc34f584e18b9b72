import sys

from core.encryption.fernet import generate_key

if len(sys.argv) != 2:
    print("usage: python scripts/init_env.py RECIPIENT")
    sys.exit(2)

generate_key(sys.argv[1])
