# -*- coding: utf-8 -*-
import sys
from pathlib import Path

def ok(msg): print(f"[OK] {msg}")
def warn(msg): print(f"[WARN] {msg}")
def fail(msg):
    print(f"[FAIL] {msg}")
    sys.exit(1)

def main():
    # repo root = one level above scripts/
    root = Path(__file__).resolve().parents[1]
    ok(f"Repo root: {root}")

    # 1) Python version
    if sys.version_info < (3, 9):
        fail(f"Python {sys.version.split()[0]} is too old. Use Python 3.9+")
    ok(f"Python: {sys.version.split()[0]}")

    # 2) Required files
    if not (root / "pyproject.toml").exists():
        fail("pyproject.toml not found (run from repo root)")
    ok("pyproject.toml exists")

    entry = root / "advisor" / "main.py"
    if not entry.exists():
        fail("advisor/main.py not found (run from repo root)")
    ok("advisor/main.py exists")

    # 3) Model artifacts and recipe catalog, honouring env overrides
    sys.path.insert(0, str(root))
    from advisor import config

    artifacts = {
        "sleep model": config.SLEEP_MODEL_PATH,
        "calorie model": config.CALORIE_MODEL_PATH,
        "diet model": config.DIET_MODEL_PATH,
        "recipe catalog": config.RECIPES_PATH,
    }
    for label, path in artifacts.items():
        if path.exists():
            ok(f"{label}: {path}")
        else:
            warn(f"{label} not found: {path} (predictions using it will report a failure)")

    ok(f"Calorie schema version: {config.CALORIE_SCHEMA_VERSION}")
    if config.CALORIE_SCHEMA_VERSION not in (1, 2):
        fail("ADVISOR_CALORIE_SCHEMA_VERSION must be 1 or 2")

    # 4) DB file check (should NOT be tracked)
    db = root / "advisor.db"
    if db.exists():
        warn("advisor.db exists locally (OK). Make sure it is ignored by git.")
    else:
        ok("No local advisor.db found (it will be created at runtime).")

    ok("Doctor check finished.")

if __name__ == "__main__":
    main()
