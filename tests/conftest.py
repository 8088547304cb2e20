# tests/conftest.py
import os, sys, pathlib

# Offline model + local defaults unless overridden
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("JWT_PUBLIC_KEY", "")
os.environ.setdefault("IMAGE_CONCURRENCY", "4")

# Add <repo>/src to sys.path so `import slidegen...` works under pytest
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
