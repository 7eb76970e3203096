#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid surprises during config load
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import cashier_gate.main
    print("Import cashier_gate.main: OK")

    import cashier_gate.core.gate
    print("Import cashier_gate.core.gate: OK")

    from cashier_gate.settings import settings
    if not settings.CASHIER_API_URL:
        print("[WARN] CASHIER_API_URL is empty; /api/cashier/session will surface transport errors.")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
