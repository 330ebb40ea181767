"""Pytest configuration — project root importable, throwaway environment set before config loads."""

import os
import sys
import tempfile
from pathlib import Path

from cryptography.fernet import Fernet

sys.path.insert(0, str(Path(__file__).parent))

_tmp = Path(tempfile.mkdtemp(prefix="landledger-test-"))
os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp / 'registry.db'}"
os.environ["LOG_FILE"] = str(_tmp / "landledger.log")
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTHORITY_ALLOWLIST"] = "[]"
